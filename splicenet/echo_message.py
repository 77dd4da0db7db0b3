"""Timed echo messages of the multi-protocol echo server, with their encodings."""

from __future__ import annotations

import enum
import json
import time
from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping

_INT64 = (-(2**63), 2**63 - 1)
_INT8 = (-128, 127)


def utc_millis() -> int:
    """Milliseconds since midnight, January 1, 1970 UTC."""
    return time.time_ns() // 1_000_000


class MessageIdentification(enum.IntEnum):
    """Message identifiers; FIRST and LAST only bound the valid range."""

    FIRST = 0
    CLIENT_ECHO_TIMED = 1
    SERVER_ECHO_TIMED = 2
    LAST = 3

    def __str__(self) -> str:
        return self.name.lower()


def _get(tree: Mapping[str, Any], key: str) -> Any:
    try:
        return tree[key]
    except (KeyError, TypeError):
        raise ValueError(f"No such node ({key})") from None


def _get_int(tree: Mapping[str, Any], key: str, bounds: tuple[int, int]) -> int:
    value = _get(tree, key)
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"conversion of data to integer failed ({key})")
    try:
        number = int(value)
    except ValueError:
        raise ValueError(f"conversion of data to integer failed ({key})") from None
    low, high = bounds
    if not low <= number <= high:
        raise ValueError(f"value of {key} out of range: {number}")
    return number


def _get_str(tree: Mapping[str, Any], key: str) -> str:
    value = _get(tree, key)
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return json.dumps(value)
    raise ValueError(f"conversion of data to string failed ({key})")


class ClientServerProtocol:
    """Base of every message exchanged between echo client and server."""

    id: ClassVar[MessageIdentification]

    @staticmethod
    def message_id(tree: Mapping[str, Any]) -> MessageIdentification:
        """The identifier of a parsed JSON message, which must lie strictly inside the range."""
        number = _get_int(tree, "id", _INT8)
        if not MessageIdentification.FIRST < number < MessageIdentification.LAST:
            raise ValueError(f"unknown protocol message id: {number}")
        return MessageIdentification(number)


@dataclass
class ClientEchoTimed(ClientServerProtocol):
    """A message sent by a client, stamped with its sending time."""

    msg: str = ""
    sent: int = field(default_factory=utc_millis)
    id: ClassVar[MessageIdentification] = MessageIdentification.CLIENT_ECHO_TIMED

    @classmethod
    def from_tree(cls, tree: Mapping[str, Any]) -> ClientEchoTimed:
        return cls(_get_str(tree, "msg_"), _get_int(tree, "sent_", _INT64))


@dataclass
class ServerEchoTimed(ClientServerProtocol):
    """The server's echo of a client message with both timestamps."""

    msg: str = ""
    client_sent: int = 0
    server_sent: int = 0
    id: ClassVar[MessageIdentification] = MessageIdentification.SERVER_ECHO_TIMED

    @classmethod
    def from_client(cls, client: ClientEchoTimed) -> ServerEchoTimed:
        return cls(client.msg, client.sent, utc_millis())

    def to_json(self) -> str:
        tree = {
            "id": str(int(self.id)),
            "client_sent_": str(self.client_sent),
            "msg_": self.msg,
            "server_sent_": str(self.server_sent),
        }
        return json.dumps(tree, indent=4) + "\n"


def _encode_str(text: str) -> bytes:
    raw = text.encode("utf-8")
    return f"{len(raw)} ".encode("ascii") + raw


def dumps(msg: ClientServerProtocol) -> bytes:
    """Serialise a message into its text archive form."""
    if isinstance(msg, ClientEchoTimed):
        parts = [b"1", _encode_str(msg.msg), str(msg.sent).encode("ascii")]
    elif isinstance(msg, ServerEchoTimed):
        parts = [
            b"2",
            _encode_str(msg.msg),
            str(msg.client_sent).encode("ascii"),
            str(msg.server_sent).encode("ascii"),
        ]
    else:
        raise TypeError(f"cannot serialise {type(msg).__name__}")
    return b" ".join(parts)


class _Archive:
    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        self.pos = 0

    def _separator(self) -> None:
        if self.pos < len(self.data):
            if self.data[self.pos] != ord(" "):
                raise ValueError(f"expected separator at offset {self.pos}")
            self.pos += 1

    def token(self) -> bytes:
        end = self.data.find(b" ", self.pos)
        end = len(self.data) if end < 0 else end
        token = self.data[self.pos : end]
        if not token:
            raise ValueError(f"missing field at offset {self.pos}")
        self.pos = end
        self._separator()
        return token

    def integer(self) -> int:
        token = self.token()
        try:
            value = int(token)
        except ValueError:
            raise ValueError(f"invalid integer: {token!r}") from None
        if not _INT64[0] <= value <= _INT64[1]:
            raise ValueError(f"integer out of range: {value}")
        return value

    def string(self) -> str:
        length = self.integer()
        if length < 0 or self.pos + length > len(self.data):
            raise ValueError("string length exceeds archive")
        raw = self.data[self.pos : self.pos + length]
        self.pos += length
        self._separator()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueError(f"invalid string: {exc}") from None

    def finish(self) -> None:
        if self.pos != len(self.data):
            raise ValueError(f"trailing data at offset {self.pos}")


def loads(data: bytes) -> ClientServerProtocol:
    """Rebuild a message from its text archive form; raise ValueError if malformed."""
    archive = _Archive(data)
    kind = archive.token()
    msg: ClientServerProtocol
    if kind == b"1":
        msg = ClientEchoTimed(archive.string(), archive.integer())
    elif kind == b"2":
        msg = ServerEchoTimed(archive.string(), archive.integer(), archive.integer())
    else:
        raise ValueError(f"unregistered message class: {kind!r}")
    archive.finish()
    return msg