"""Serving static files from a document root in answer to HTTP requests."""

from __future__ import annotations

import os
import re

from splicenet.http_types import Header, Request
from splicenet.mime_types import extension_to_type
from splicenet.reply import Reply, StatusType

_HEX = re.compile(rb"[+-]?[0-9a-fA-F]+")
_SPACE = b" \t\n\r\v\f"


def _parse_hex(chunk: bytes) -> int | None:
    match = _HEX.match(chunk.lstrip(_SPACE))
    return int(match.group(), 16) if match else None


def url_decode(text: str) -> str:
    """Decode ``%xx`` escapes and ``+`` in a URL; raise ValueError if malformed."""
    raw = text.encode("utf-8", "surrogateescape")
    out = bytearray()
    pos = 0
    while pos < len(raw):
        byte = raw[pos]
        if byte == ord("%"):
            if pos + 3 > len(raw):
                raise ValueError(f"truncated escape in URL: {text!r}")
            value = _parse_hex(raw[pos + 1 : pos + 3])
            if value is None:
                raise ValueError(f"invalid escape in URL: {text!r}")
            out.append(value & 0xFF)
            pos += 3
        else:
            out.append(ord(" ") if byte == ord("+") else byte)
            pos += 1
    return out.decode("utf-8", "surrogateescape")


class RequestHandler:
    """Answers requests with files found below a document root."""

    def __init__(self, doc_root: str | os.PathLike[str]) -> None:
        self.doc_root = os.fspath(doc_root)

    def handle_request(self, request: Request) -> Reply:
        """Produce the reply for a request."""
        try:
            request_path = url_decode(request.uri)
        except ValueError:
            return Reply.stock_reply(StatusType.BAD_REQUEST)

        if not request_path.startswith("/") or ".." in request_path:
            return Reply.stock_reply(StatusType.BAD_REQUEST)

        if request_path.endswith("/"):
            request_path += "index.html"

        last_slash = request_path.rfind("/")
        last_dot = request_path.rfind(".")
        extension = request_path[last_dot + 1 :] if last_dot > last_slash else ""

        try:
            with open(self.doc_root + request_path, "rb") as stream:
                content = stream.read()
        except OSError:
            return Reply.stock_reply(StatusType.NOT_FOUND)

        return Reply(
            status=StatusType.OK,
            headers=[
                Header("Content-Length", str(len(content))),
                Header("Content-Type", extension_to_type(extension)),
            ],
            content=content,
        )