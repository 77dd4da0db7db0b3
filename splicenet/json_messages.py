"""JSON messages exchanged with the browser client of the JSON server.

Values are written as JSON strings, the way a property tree writes them, and
read back from either strings or numbers.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping

_INT64 = (-(2**63), 2**63 - 1)
_UINT32 = (0, 2**32 - 1)
_INT8 = (-128, 127)


class MessageId(enum.IntEnum):
    """Identifier carried in the ``id`` field of every message."""

    QUESTION_ECHO_TIMED = 1
    RESPONSE_ECHO_TIMED = 2
    QUESTION_FILES_CURRENT_DIRECTORY = 3
    RESPONSE_FILES_CURRENT_DIRECTORY = 4


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


def _dump(tree: dict[str, Any]) -> str:
    return json.dumps(tree, indent=4) + "\n"


def message_id(tree: Mapping[str, Any]) -> MessageId:
    """The identifier of a parsed JSON message."""
    number = _get_int(tree, "id", _INT8)
    try:
        return MessageId(number)
    except ValueError:
        raise ValueError(f"unknown protocol message id: {number}") from None


def _expect(tree: Mapping[str, Any], expected: MessageId) -> None:
    found = message_id(tree)
    if found is not expected:
        raise ValueError(f"expected message {expected.name}, got {found.name}")


@dataclass(frozen=True)
class QuestionEchoTimed:
    """Client request to echo a message; ``client_sent`` is in ms since 1970."""

    client_sent: int
    message: str
    id: ClassVar[MessageId] = MessageId.QUESTION_ECHO_TIMED

    @classmethod
    def from_tree(cls, tree: Mapping[str, Any]) -> QuestionEchoTimed:
        _expect(tree, cls.id)
        return cls(_get_int(tree, "client_sent", _INT64), _get_str(tree, "message"))


@dataclass
class ResponseEchoTimed:
    """Echo of a question with the time the server received it, in ms since 1970."""

    client_to_server: QuestionEchoTimed
    server_received: int = 0
    id: ClassVar[MessageId] = MessageId.RESPONSE_ECHO_TIMED

    def to_json(self) -> str:
        return _dump(
            {
                "id": str(int(self.id)),
                "client_sent": str(self.client_to_server.client_sent),
                "message": self.client_to_server.message,
                "server_received": str(self.server_received),
            }
        )


@dataclass(frozen=True)
class QuestionFilesCurrentDirectory:
    """Client request for the regular files in the server's working directory."""

    max_length: int
    id: ClassVar[MessageId] = MessageId.QUESTION_FILES_CURRENT_DIRECTORY

    @classmethod
    def from_tree(cls, tree: Mapping[str, Any]) -> QuestionFilesCurrentDirectory:
        _expect(tree, cls.id)
        return cls(_get_int(tree, "max_length", _UINT32))


@dataclass
class ResponseFilesCurrentDirectory:
    """List of file names sent back to the client."""

    files: list[str] = field(default_factory=list)
    id: ClassVar[MessageId] = MessageId.RESPONSE_FILES_CURRENT_DIRECTORY

    def to_json(self) -> str:
        return _dump({"id": str(int(self.id)), "files": list(self.files)})