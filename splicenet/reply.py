"""HTTP replies: status lines, stock error pages and wire serialisation."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from splicenet.http_types import Header

_NAME_VALUE_SEPARATOR = b": "
_CRLF = b"\r\n"


class StatusType(enum.IntEnum):
    """Status codes a reply may carry."""

    OK = 200
    CREATED = 201
    ACCEPTED = 202
    NO_CONTENT = 204
    MULTIPLE_CHOICES = 300
    MOVED_PERMANENTLY = 301
    MOVED_TEMPORARILY = 302
    NOT_MODIFIED = 304
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503


_REASONS = {
    StatusType.OK: "OK",
    StatusType.CREATED: "Created",
    StatusType.ACCEPTED: "Accepted",
    StatusType.NO_CONTENT: "No Content",
    StatusType.MULTIPLE_CHOICES: "Multiple Choices",
    StatusType.MOVED_PERMANENTLY: "Moved Permanently",
    StatusType.MOVED_TEMPORARILY: "Moved Temporarily",
    StatusType.NOT_MODIFIED: "Not Modified",
    StatusType.BAD_REQUEST: "Bad Request",
    StatusType.UNAUTHORIZED: "Unauthorized",
    StatusType.FORBIDDEN: "Forbidden",
    StatusType.NOT_FOUND: "Not Found",
    StatusType.INTERNAL_SERVER_ERROR: "Internal Server Error",
    StatusType.NOT_IMPLEMENTED: "Not Implemented",
    StatusType.BAD_GATEWAY: "Bad Gateway",
    StatusType.SERVICE_UNAVAILABLE: "Service Unavailable",
}


def _known(status: int) -> StatusType:
    try:
        return StatusType(status)
    except ValueError:
        return StatusType.INTERNAL_SERVER_ERROR


def _status_line(status: int) -> bytes:
    known = _known(status)
    return f"HTTP/1.0 {int(known)} {_REASONS[known]}\r\n".encode("ascii")


def _stock_body(status: int) -> bytes:
    known = _known(status)
    if known is StatusType.OK:
        return b""
    title = _REASONS[known]
    # The no-content page has always read "204 Content" in its heading.
    heading = "204 Content" if known is StatusType.NO_CONTENT else f"{int(known)} {title}"
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><h1>{heading}</h1></body></html>"
    ).encode("ascii")


@dataclass
class Reply:
    """A reply to be sent to a client."""

    status: int = StatusType.OK
    headers: list[Header] = field(default_factory=list)
    content: bytes = b""

    def to_buffers(self) -> list[bytes]:
        """The reply as the sequence of byte chunks written to the socket."""
        buffers = [_status_line(self.status)]
        for header in self.headers:
            buffers.extend(
                (
                    header.name.encode("latin-1"),
                    _NAME_VALUE_SEPARATOR,
                    header.value.encode("latin-1"),
                    _CRLF,
                )
            )
        buffers.append(_CRLF)
        buffers.append(bytes(self.content))
        return buffers

    def to_bytes(self) -> bytes:
        """The whole reply as one byte string."""
        return b"".join(self.to_buffers())

    @classmethod
    def stock_reply(cls, status: int) -> Reply:
        """A reply with a canned HTML page for the status."""
        content = _stock_body(status)
        return cls(
            status=status,
            headers=[
                Header("Content-Length", str(len(content))),
                Header("Content-Type", "text/html"),
            ],
            content=content,
        )