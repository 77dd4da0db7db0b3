"""Incremental parser for HTTP request heads.

Parsing is tri-state: ``True`` once a complete request head has been read,
``False`` when the data cannot be a request, and ``None`` while more data is
needed.
"""

from __future__ import annotations

import enum
from typing import Optional, Tuple, Union

from splicenet.http_types import Header, Request
from splicenet.logger import reduce

_TSPECIALS = frozenset(b'()<>@,;:\\"/[]?={} \t')
_CR = ord("\r")
_LF = ord("\n")
_SP = ord(" ")
_HT = ord("\t")


def _is_char(c: int) -> bool:
    return 0 <= c <= 127


def _is_ctl(c: int) -> bool:
    return 0 <= c <= 31 or c == 127


def _is_digit(c: int) -> bool:
    return ord("0") <= c <= ord("9")


def _is_token(c: int) -> bool:
    return _is_char(c) and not _is_ctl(c) and c not in _TSPECIALS


class _State(enum.Enum):
    METHOD_START = enum.auto()
    METHOD = enum.auto()
    URI = enum.auto()
    HTTP_VERSION_H = enum.auto()
    HTTP_VERSION_T_1 = enum.auto()
    HTTP_VERSION_T_2 = enum.auto()
    HTTP_VERSION_P = enum.auto()
    HTTP_VERSION_SLASH = enum.auto()
    HTTP_VERSION_MAJOR_START = enum.auto()
    HTTP_VERSION_MAJOR = enum.auto()
    HTTP_VERSION_MINOR_START = enum.auto()
    HTTP_VERSION_MINOR = enum.auto()
    EXPECTING_NEWLINE_1 = enum.auto()
    HEADER_LINE_START = enum.auto()
    HEADER_LWS = enum.auto()
    HEADER_NAME = enum.auto()
    SPACE_BEFORE_HEADER_VALUE = enum.auto()
    HEADER_VALUE = enum.auto()
    EXPECTING_NEWLINE_2 = enum.auto()
    EXPECTING_NEWLINE_3 = enum.auto()


_LITERALS = {
    _State.HTTP_VERSION_H: (ord("H"), _State.HTTP_VERSION_T_1),
    _State.HTTP_VERSION_T_1: (ord("T"), _State.HTTP_VERSION_T_2),
    _State.HTTP_VERSION_T_2: (ord("T"), _State.HTTP_VERSION_P),
    _State.HTTP_VERSION_P: (ord("P"), _State.HTTP_VERSION_SLASH),
}


class RequestParser:
    """Parser for incoming requests, fed one chunk of bytes at a time."""

    def __init__(self) -> None:
        self._state = _State.METHOD_START

    def reset(self) -> None:
        """Return to the initial state, ready to parse a request method."""
        self._state = _State.METHOD_START

    def parse(self, request: Request, data: Union[bytes, str]) -> Tuple[Optional[bool], int]:
        """Feed data into ``request``; return the tri-state result and bytes consumed."""
        raw = data.encode("latin-1") if isinstance(data, str) else bytes(data)
        for consumed, byte in enumerate(raw, start=1):
            result = self._consume(request, byte)
            if result is not None:
                return result, consumed
        return None, len(raw)

    def _consume(self, req: Request, c: int) -> Optional[bool]:
        state = self._state
        S = _State

        if state is S.METHOD_START:
            if not _is_token(c):
                return False
            self._state = S.METHOD
            req.method += chr(c)
            return None

        if state is S.METHOD:
            if c == _SP:
                self._state = S.URI
                return None
            if not _is_token(c):
                return False
            req.method += chr(c)
            return None

        if state is S.URI:
            if c == _SP:
                self._state = S.HTTP_VERSION_H
                return None
            if _is_ctl(c):
                return False
            req.uri += chr(c)
            return None

        if state in _LITERALS:
            expected, following = _LITERALS[state]
            if c != expected:
                return False
            self._state = following
            return None

        if state is S.HTTP_VERSION_SLASH:
            if c != ord("/"):
                return False
            req.http_version_major = 0
            req.http_version_minor = 0
            self._state = S.HTTP_VERSION_MAJOR_START
            return None

        if state is S.HTTP_VERSION_MAJOR_START:
            if not _is_digit(c):
                return False
            req.http_version_major = req.http_version_major * 10 + c - ord("0")
            self._state = S.HTTP_VERSION_MAJOR
            return None

        if state is S.HTTP_VERSION_MAJOR:
            if c == ord("."):
                self._state = S.HTTP_VERSION_MINOR_START
                return None
            if not _is_digit(c):
                return False
            req.http_version_major = req.http_version_major * 10 + c - ord("0")
            return None

        if state is S.HTTP_VERSION_MINOR_START:
            if not _is_digit(c):
                return False
            req.http_version_minor = req.http_version_minor * 10 + c - ord("0")
            self._state = S.HTTP_VERSION_MINOR
            return None

        if state is S.HTTP_VERSION_MINOR:
            if c == _CR:
                self._state = S.EXPECTING_NEWLINE_1
                return None
            if not _is_digit(c):
                return False
            req.http_version_minor = req.http_version_minor * 10 + c - ord("0")
            return None

        if state is S.EXPECTING_NEWLINE_1 or state is S.EXPECTING_NEWLINE_2:
            if c != _LF:
                return False
            self._state = S.HEADER_LINE_START
            return None

        if state is S.HEADER_LINE_START:
            if c == _CR:
                self._state = S.EXPECTING_NEWLINE_3
                return None
            if req.headers and c in (_SP, _HT):
                self._state = S.HEADER_LWS
                return None
            if not _is_token(c):
                return False
            req.headers.append(Header(name=chr(c)))
            self._state = S.HEADER_NAME
            return None

        if state is S.HEADER_LWS:
            if c == _CR:
                self._state = S.EXPECTING_NEWLINE_2
                return None
            if c in (_SP, _HT):
                return None
            if _is_ctl(c):
                return False
            self._state = S.HEADER_VALUE
            req.headers[-1].value += chr(c)
            return None

        if state is S.HEADER_NAME:
            if c == ord(":"):
                self._state = S.SPACE_BEFORE_HEADER_VALUE
                return None
            if not _is_token(c):
                return False
            req.headers[-1].name += chr(c)
            return None

        if state is S.SPACE_BEFORE_HEADER_VALUE:
            if c != _SP:
                return False
            self._state = S.HEADER_VALUE
            return None

        if state is S.HEADER_VALUE:
            if c == _CR:
                self._state = S.EXPECTING_NEWLINE_2
                return None
            if _is_ctl(c):
                return False
            req.headers[-1].value += chr(c)
            return None

        if state is S.EXPECTING_NEWLINE_3:
            return c == _LF

        return False


def _tribool_text(result: Optional[bool]) -> str:
    if result is None:
        return "indeterminate"
    return "true" if result else "false"


def describe_incoming(err_msg: str, data: bytes) -> str:
    """A trace line describing incoming data and whether it parses as HTTP."""
    data = bytes(data)
    result, _ = RequestParser().parse(Request(), data)
    return (
        f"bytes_transferred={len(data)} "
        f' bytes="{reduce(data)}"'
        f' error="{err_msg}"'
        f" result={_tribool_text(result)}"
    )