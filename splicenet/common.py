"""Types shared by sessions: handshake stages and the data read during a handshake."""

from __future__ import annotations

import enum
from dataclasses import dataclass

INCOMING_BUFFER_SIZE = 8192
"""Size of the buffer a single read fills."""

VERSION = 0
"""Library version number: major * 100000 + minor * 100 + sub-minor."""


class HandShake(enum.Enum):
    """Stage of protocol negotiation that produced a piece of incoming data."""

    HTTP = "http"
    WEB_SOCKET = "web_socket"
    WS_GUID = "ws_guid"
    NONE = "none"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class HandShakeData:
    """Bytes received during a handshake, tagged with the stage that read them."""

    data: bytes
    tag: HandShake = HandShake.NONE

    def __post_init__(self) -> None:
        data = bytes(self.data)
        if len(data) > INCOMING_BUFFER_SIZE:
            raise ValueError(
                f"handshake data of {len(data)} bytes exceeds the "
                f"{INCOMING_BUFFER_SIZE} byte buffer"
            )
        object.__setattr__(self, "data", data)

    @property
    def size(self) -> int:
        """Number of bytes transferred."""
        return len(self.data)

    def text(self) -> str:
        """The received bytes as a string, one character per byte."""
        return self.data.decode("latin-1")


def format_version(version: int) -> str:
    """Render a packed version number as ``major.minor.sub``."""
    if version < 0:
        raise ValueError(f"version must not be negative: {version}")
    major, rest = divmod(version, 100000)
    minor, sub = divmod(rest, 100)
    return f"{major}.{minor:02d}.{sub}"