"""Pluggable session loggers and helpers that shorten data for log lines."""

from __future__ import annotations

import enum
import logging
import sys
import threading
from typing import Any, TextIO

TRACE_LEVEL = 5
"""Standard-library logging level used for trace messages."""

_REDUCE_LIMIT = 2 * 10 + 5
_HEAD = 10
_TAIL = 10


class Severity(enum.Enum):
    """Log severity, valued by its one-letter tag."""

    TRACE = "T"
    DEBUG = "D"
    INFO = "I"
    WARNING = "W"
    ERROR = "E"
    FATAL = "F"


_LEVELS = {
    Severity.TRACE: TRACE_LEVEL,
    Severity.DEBUG: logging.DEBUG,
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.FATAL: logging.CRITICAL,
}


def _render_byte(byte: int) -> str:
    if 0x20 <= byte <= 0x7E:
        return chr(byte)
    signed = byte - 256 if byte > 127 else byte
    return f"\\{signed}"


def reduce(data: bytes) -> str:
    """Quote data for a log line, keeping only its ends when it is long."""
    data = bytes(data)
    if len(data) < _REDUCE_LIMIT:
        return f'"{data.decode("latin-1")}"'
    head = "".join(_render_byte(b) for b in data[:_HEAD])
    tail = "".join(_render_byte(b) for b in data[-_TAIL:])
    return f'"{head} ... {tail}"'


def extract_file_name(path: str) -> str:
    """The part of a path after its last separator."""
    return path[max(path.rfind(sep) for sep in "\\/:") + 1 :]


def extract_func_name(func: str) -> str:
    """The part of a qualified function name after its last ``::``."""
    index = func.rfind("::")
    return func if index < 0 else func[index + 2 :]


def _address(obj: Any) -> str:
    if obj is None:
        return "0"
    if isinstance(obj, int) and not isinstance(obj, bool):
        return f"{obj:x}"
    return f"{id(obj):x}"


def _tag(severity: Severity | str) -> str:
    return severity.value if isinstance(severity, Severity) else str(severity)


def file_func_name(severity: Severity | str, path: str, line: int, func: str, obj: Any) -> str:
    """Prefix of a log line: severity, file, line, object address and function."""
    return (
        f"{_tag(severity)}|{extract_file_name(path)}@{line}"
        f"|(0x{_address(obj)})->{extract_func_name(func)}"
    )


class LogInterface:
    """Base logger; every message is dropped unless a subclass overrides ``log``."""

    def log(self, severity: Severity, file: str, line: int, func: str, obj: Any, msg: str) -> None:
        """Record one message."""

    def log_data(
        self,
        severity: Severity,
        file: str,
        line: int,
        func: str,
        obj: Any,
        msg: str,
        data: bytes,
    ) -> None:
        """Record a message followed by a shortened copy of some data."""
        if severity is Severity.INFO:
            text = f"{msg} size={len(data)}{reduce(data)}"
        else:
            text = msg + reduce(data)
        self.log(severity, extract_file_name(file), line, func, obj, text)


class NoLog(LogInterface):
    """Logger that discards everything."""


class LoggingLog(LogInterface):
    """Logger that forwards to a standard-library ``logging.Logger``."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger if logger is not None else logging.getLogger("splicenet")

    def log(self, severity: Severity, file: str, line: int, func: str, obj: Any, msg: str) -> None:
        address = f"0x{_address(obj)}"
        parts = [f"[{address}]", f"[{extract_file_name(file)}@{line}]:"]
        if severity is Severity.WARNING:
            parts.append(f"[{func}][{address}]")
        elif severity not in (Severity.ERROR, Severity.FATAL):
            parts.append(f"[{func}]")
        parts.append(f' msg="{msg}"')
        self.logger.log(_LEVELS[severity], "".join(parts))


class TrackLog(LogInterface):
    """Logger that writes one line per message to a text stream."""

    _lock = threading.Lock()

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream

    def log(self, severity: Severity, file: str, line: int, func: str, obj: Any, msg: str) -> None:
        stream = self.stream if self.stream is not None else sys.stdout
        text = f"{file_func_name(severity, file, line, func, obj)} {msg}\n"
        with self._lock:
            stream.write(text)
            stream.flush()