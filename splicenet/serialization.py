"""Sessions that exchange serialised messages in length-prefixed frames.

Each frame is an 8-byte header holding the payload length in hexadecimal,
right-aligned and padded with spaces, followed by the serialised payload.
"""

from __future__ import annotations

import asyncio
import inspect
import re
from typing import Any, Optional, Union

from splicenet import echo_message
from splicenet.logger import LogInterface, Severity
from splicenet.tcp_session import TcpSession

HEADER_LENGTH = 8
"""Size of the fixed-length frame header, in bytes."""

_HEX = re.compile(rb"[0-9a-fA-F]+")
_SPACE = b" \t\n\r\v\f"


class FrameError(ValueError):
    """A frame header is malformed or a payload is too large to frame."""


async def _settle(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


def _format_header(size: int) -> bytes:
    header = f"{size:>{HEADER_LENGTH}x}".encode("ascii")
    if len(header) != HEADER_LENGTH:
        raise FrameError(f"payload of {size} bytes does not fit a {HEADER_LENGTH} byte header")
    return header


def encode_frame(payload: bytes) -> bytes:
    """The header followed by the payload, ready to be written."""
    payload = bytes(payload)
    return _format_header(len(payload)) + payload


def decode_header(header: bytes) -> int:
    """The payload length announced by a frame header."""
    header = bytes(header)
    if len(header) != HEADER_LENGTH:
        raise FrameError(f"header must be {HEADER_LENGTH} bytes, got {len(header)}")
    match = _HEX.match(header.lstrip(_SPACE))
    if match is None:
        raise FrameError(f"invalid frame header: {header!r}")
    return int(match.group(), 16)


class SerializationSession(TcpSession):
    """A session that reads and writes whole messages instead of raw strings.

    ``codec`` is any object with ``dumps(msg) -> bytes`` and
    ``loads(bytes) -> msg``; the echo message encoding is used by default.
    Received messages go to :meth:`on_read`, which queues them on
    :attr:`messages` unless overridden.
    """

    def __init__(
        self,
        reader: Optional[asyncio.StreamReader],
        writer: Any,
        logger: Optional[LogInterface] = None,
        codec: Any = None,
    ) -> None:
        super().__init__(reader, writer, logger)
        self.codec = codec if codec is not None else echo_message
        self.messages: asyncio.Queue[Any] = asyncio.Queue()

    def on_handshake_success(self) -> Any:
        """Once the handshake is accepted, start reading messages."""
        self._log(Severity.TRACE, "")
        return self.read_struct()

    # -- writing ----------------------------------------------------------

    def write_struct(self, msg: Any) -> Optional[asyncio.Task[None]]:
        """Serialise and start writing a message; completion goes to :meth:`on_write_msg`.

        Returns None, after reporting the error, when the message is too
        large to be framed.
        """
        payload = bytes(self.codec.dumps(msg))
        try:
            frame = encode_frame(payload)
        except FrameError as exc:
            self.on_error(exc)
            return None
        return self._spawn(self._write_struct(msg, frame))

    async def _write_struct(self, msg: Any, frame: bytes) -> None:
        error: Optional[OSError] = None
        try:
            if self.writer is None or not self.is_open:
                raise ConnectionError("socket is not connected")
            self.writer.write(frame)
            await self.writer.drain()
        except OSError as exc:
            error = exc
        await _settle(self.on_write_msg(msg, error))

    def on_write_msg(self, msg: Any, error: Optional[BaseException]) -> Any:
        """Called when a message has been written; an error shuts the session down."""
        if error is not None:
            self.on_error(error)

    # -- reading ----------------------------------------------------------

    def read_struct(self) -> asyncio.Task[None]:
        """Start reading one message; it is handed to :meth:`on_read`."""
        self._log(Severity.TRACE, "")
        return self._spawn(self._read_struct())

    async def _read_exactly(self, size: int) -> bytes:
        if self.reader is None:
            raise ConnectionError("socket is not connected")
        return await self.reader.readexactly(size)

    async def _read_struct(self) -> None:
        try:
            header = await self._read_exactly(HEADER_LENGTH)
        except (OSError, EOFError) as exc:
            self.on_error(exc)
            return
        try:
            size = decode_header(header)
        except FrameError as exc:
            self.on_error(exc)
            return
        try:
            payload = await self._read_exactly(size)
        except (OSError, EOFError) as exc:
            self.on_error(exc)
            return
        try:
            msg = self.codec.loads(payload)
        except (ValueError, TypeError) as exc:
            # An undecodable message is dropped; the connection stays up.
            self._log(Severity.ERROR, f"unable to decode message: {exc}")
            return
        await _settle(self.on_read(msg))

    def on_read(self, msg: Any) -> Any:
        """Receive a decoded message; queued on :attr:`messages` by default."""
        self.messages.put_nowait(msg)

    async def receive(self) -> Any:
        """Read one message and return it, bypassing :meth:`on_read`."""
        header = await self._read_exactly(HEADER_LENGTH)
        payload = await self._read_exactly(decode_header(header))
        return self.codec.loads(payload)

    def _describe_payload(self, data: Union[bytes, str]) -> str:
        return data.decode("latin-1") if isinstance(data, bytes) else data