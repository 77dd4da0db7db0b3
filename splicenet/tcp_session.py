"""A connected TCP session: first read, handshake, string reads and writes, shutdown."""

from __future__ import annotations

import asyncio
import inspect
import socket
import threading
from typing import Any, Awaitable, Callable, Optional, Tuple, Union

from splicenet.common import INCOMING_BUFFER_SIZE, HandShakeData
from splicenet.logger import LogInterface, NoLog, Severity

Connection = Tuple[Optional[asyncio.StreamReader], Any]
"""The ``(reader, writer)`` pair a session owns."""

HandshakeFail = Callable[[HandShakeData, Connection], Any]
"""Called with the incoming data and the released connection when a handshake fails."""


async def _settle(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


def _describe(error: Union[BaseException, str]) -> str:
    if isinstance(error, BaseException):
        return f"[on_error]{type(error).__name__}={error}"
    return error or "[on_error]"


class TcpSession:
    """A single connection with a client.

    Operations such as :meth:`read_string` and :meth:`write` are started in the
    background and return the task performing them; their completion is
    reported through the ``on_*`` hooks, which subclasses override.  Hooks may
    be plain functions or coroutines.
    """

    def __init__(
        self,
        reader: Optional[asyncio.StreamReader],
        writer: Any,
        logger: Optional[LogInterface] = None,
    ) -> None:
        self.reader = reader
        self.writer = writer
        self.logger = logger if logger is not None else NoLog()
        self.handshake_fail: Optional[HandshakeFail] = None
        self.inbox: asyncio.Queue[str] = asyncio.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self._tasks: set[asyncio.Task[None]] = set()
        self._log(Severity.INFO, f"(0x{id(self):x}) {type(self).__name__} constructor")

    # -- plumbing ---------------------------------------------------------

    def _log(self, severity: Severity, msg: str) -> None:
        frame = inspect.currentframe()
        caller = frame.f_back if frame is not None else None
        if caller is None:
            file, line, func = __file__, 0, type(self).__name__
        else:
            file = caller.f_code.co_filename
            line = caller.f_lineno
            func = f"{type(self).__name__}::{caller.f_code.co_name}"
        self.logger.log(severity, file, line, func, self, msg)

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def finished(self) -> None:
        """Wait until every operation started by this session has completed."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    @property
    def is_open(self) -> bool:
        """True while the session owns an unclosed connection."""
        return self.writer is not None and not self._closed

    async def _read_chunk(self) -> bytes:
        if self.reader is None:
            raise ConnectionError("socket is not connected")
        data = await self.reader.read(INCOMING_BUFFER_SIZE)
        if not data:
            raise EOFError("End of file")
        return data

    # -- connection and handshake ----------------------------------------

    def on_socket_connected(self) -> asyncio.Task[None]:
        """Start the first read after connection; it ends in :meth:`on_first_read`."""
        self._log(Severity.TRACE, "")
        return self._spawn(self._first_read())

    async def _first_read(self) -> None:
        data: Union[bytes, BaseException]
        try:
            data = await self._read_chunk()
        except (OSError, EOFError) as exc:
            data = exc
        await self.on_first_read(self.handshake_fail, data)

    async def on_first_read(
        self,
        handshake_fail: Optional[HandshakeFail],
        data: Union[bytes, BaseException],
    ) -> None:
        """Handle the first data read; a read error is a system error, not a failed handshake."""
        self._log(Severity.TRACE, "")
        if isinstance(data, BaseException):
            self.on_error(data)
            return
        await self.handshake(handshake_fail, HandShakeData(data))

    async def handshake(
        self, handshake_fail: Optional[HandshakeFail], incoming: HandShakeData
    ) -> None:
        """Accept the connection if the data is recognised, otherwise pass it on."""
        if self.try_handshake(incoming):
            await _settle(self.on_handshake_success())
        elif handshake_fail is not None:
            await _settle(handshake_fail(incoming, self.move_socket()))
        else:
            self.logger.log_data(
                Severity.WARNING, __file__, 0, type(self).__name__, self,
                "Unable to connect:", incoming.data,
            )
            self.shutdown()

    def try_handshake(self, incoming: HandShakeData) -> bool:
        """Whether the incoming data opens this session's protocol; none by default."""
        return False

    def on_handshake_success(self) -> Any:
        """Called once the handshake is accepted; starts reading strings."""
        return self.read_string()

    def move_socket(self) -> Connection:
        """Release the connection to another session and return it."""
        self._log(Severity.TRACE, "")
        with self._lock:
            connection = (self.reader, self.writer)
            self.reader = None
            self.writer = None
        return connection

    # -- closing and errors ----------------------------------------------

    def shutdown(self) -> None:
        """Gracefully close the connection, once; reports to :meth:`on_shutdown`."""
        self._log(Severity.TRACE, " is open" if self.is_open else " is close")
        with self._lock:
            writer = self.writer
            if writer is None or self._closed:
                return
            self._closed = True
            shutdown_error: Optional[OSError] = None
            close_error: Optional[OSError] = None
            sock = writer.get_extra_info("socket")
            if sock is not None:
                try:
                    sock.shutdown(socket.SHUT_RDWR)
                except OSError as exc:
                    shutdown_error = exc
            try:
                writer.close()
            except OSError as exc:
                close_error = exc
        self.on_shutdown(shutdown_error, close_error)

    def on_error(self, msg: Union[BaseException, str] = "") -> None:
        """Log an error, given as a message or an exception, then shut down."""
        self._log(Severity.ERROR, _describe(msg))
        self.shutdown()

    def on_shutdown(
        self,
        shutdown_error: Optional[BaseException],
        close_error: Optional[BaseException],
    ) -> None:
        """Report the outcome of :meth:`shutdown`."""
        for error in (shutdown_error, close_error):
            if error is not None:
                self._log(Severity.ERROR, _describe(error))
        if shutdown_error is None and close_error is None:
            self._log(Severity.INFO, "")

    def on_wait_connect(self) -> None:
        """Called when the session starts waiting for a client."""
        self._log(Severity.TRACE, "")

    # -- strings ------------------------------------------------------------

    def read_string(self) -> asyncio.Task[None]:
        """Start reading the next chunk; it is handed to :meth:`on_read_string`."""
        self._log(Severity.TRACE, "")
        return self._spawn(self._read_string())

    async def _read_string(self) -> None:
        try:
            data = await self._read_chunk()
        except (OSError, EOFError) as exc:
            self.on_error(exc)
            return
        await _settle(self.on_read_string(data.decode("latin-1")))

    def on_read_string(self, msg: str) -> Any:
        """Receive a string read from the client; queued on :attr:`inbox` by default."""
        self.inbox.put_nowait(msg)

    def write(self, msg: Union[str, bytes]) -> asyncio.Task[None]:
        """Start writing a message; completion goes to :meth:`on_write`."""
        self._log(Severity.TRACE, "")
        payload = msg.encode("latin-1") if isinstance(msg, str) else bytes(msg)
        return self._spawn(self._write(msg, payload))

    async def _write(self, msg: Union[str, bytes], payload: bytes) -> None:
        error: Optional[OSError] = None
        try:
            if self.writer is None or self._closed:
                raise ConnectionError("socket is not connected")
            self.writer.write(payload)
            await self.writer.drain()
        except OSError as exc:
            error = exc
        await _settle(self.on_write(msg, error))

    def on_write(self, msg: Union[str, bytes], error: Optional[BaseException]) -> Any:
        """Called when a write completes; an error shuts the session down."""
        self._log(Severity.TRACE, "")
        if error is not None:
            self.on_error(error)