"""Listening servers that hand every accepted connection to a session."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import signal
import socket
import weakref
from typing import Any, Optional

from splicenet.common import HandShakeData
from splicenet.logger import LogInterface, NoLog, Severity
from splicenet.tcp_session import Connection, HandshakeFail, TcpSession

DEFAULT_MAX_CONNECTIONS = socket.SOMAXCONN
"""Default length of the queue of pending connections."""

_STOP_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGQUIT") if hasattr(signal, name)
)
_CLOSE_TIMEOUT = 5.0


async def _settle(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


def _close_connection(connection: Connection) -> None:
    _, writer = connection
    if writer is not None:
        writer.close()


class Server:
    """A TCP server that accepts connections and starts a session on each.

    Subclasses build their sessions in :meth:`construct_session`.  The server
    listens from :meth:`serve` until :meth:`stop` is called; :meth:`run`
    does the same and also stops on SIGINT, SIGTERM and SIGQUIT.
    """

    def __init__(
        self,
        address: str = "localhost",
        port: str | int = "7777",
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
    ) -> None:
        if max_connections < 1:
            raise ValueError(f"max_connections must be at least 1, got {max_connections}")
        self.address = address
        self.port = port
        self.max_connections = max_connections
        self.logger: LogInterface = NoLog()
        self._server: Any = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stopped: Optional[asyncio.Event] = None
        self._stop_requested = False
        self._writers: weakref.WeakSet[Any] = weakref.WeakSet()

    # -- hooks --------------------------------------------------------------

    def construct_session(self, reader: asyncio.StreamReader, writer: Any) -> TcpSession:
        """Build the session that serves a newly accepted connection."""
        return TcpSession(reader, writer, self.logger)

    def on_error(self, error: BaseException) -> None:
        """Report a server error, such as a failure to listen."""
        self.logger.log(
            Severity.ERROR, __file__, 0, f"{type(self).__name__}::on_error", self, str(error)
        )

    def on_run(self) -> None:
        """Called once the server listens and before it starts serving."""
        self.logger.log(
            Severity.INFO, __file__, 0, f"{type(self).__name__}::on_run", self, "running"
        )

    # -- lifecycle ----------------------------------------------------------

    @property
    def sockets(self) -> list[Any]:
        """The listening sockets, empty while the server is not listening."""
        return list(self._server.sockets) if self._server is not None else []

    async def start(self) -> bool:
        """Resolve the address and start listening; False, after reporting, on failure."""
        self._loop = asyncio.get_running_loop()
        self._stopped = asyncio.Event()
        if self._stop_requested:
            self._stopped.set()
            self._stop_requested = False
        try:
            self._server = await asyncio.start_server(
                self._accept, self.address, self.port, backlog=self.max_connections
            )
        except OSError as exc:
            self.on_error(exc)
            return False
        return True

    async def serve(self) -> None:
        """Listen and serve connections until :meth:`stop` is called."""
        if not await self.start():
            return
        assert self._stopped is not None
        self.on_run()
        try:
            await self._stopped.wait()
        finally:
            await self._close()

    def run(self) -> None:
        """Serve in a new event loop until stopped by a call or a signal."""
        with contextlib.suppress(KeyboardInterrupt):
            asyncio.run(self._serve_until_signalled())

    def stop(self) -> None:
        """Ask the server to stop; safe to call from any thread."""
        loop, event = self._loop, self._stopped
        if loop is None or event is None or loop.is_closed():
            self._stop_requested = True
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            event.set()
        else:
            loop.call_soon_threadsafe(event.set)

    async def _serve_until_signalled(self) -> None:
        loop = asyncio.get_running_loop()
        installed = []
        for sig in _STOP_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.stop)
            except (NotImplementedError, RuntimeError, ValueError):
                continue
            installed.append(sig)
        try:
            await self.serve()
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)

    async def _close(self) -> None:
        server, self._server = self._server, None
        if server is None:
            return
        server.close()
        for writer in list(self._writers):
            writer.close()
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(server.wait_closed(), _CLOSE_TIMEOUT)

    async def _accept(self, reader: asyncio.StreamReader, writer: Any) -> None:
        if self._stopped is None or self._stopped.is_set():
            writer.close()
            return
        self._writers.add(writer)
        session = self.construct_session(reader, writer)
        await self._start_session(session)

    async def _start_session(self, session: TcpSession) -> None:
        session.on_wait_connect()
        result = session.on_socket_connected()
        if inspect.iscoroutine(result):
            await result


class MonoProtocolServer(Server):
    """A server speaking a single protocol: every connection goes straight to its session."""


class MultiProtocolServer(Server):
    """A server that tries several protocols in turn on each connection.

    The session from :meth:`construct_session` handles protocol
    ``protocol_count - 1``.  When its handshake fails, the connection and the
    data read so far go to :meth:`do_next_handshake` with the next lower
    index, down to index 0; when that fails too the connection is closed.
    """

    def __init__(
        self,
        address: str = "localhost",
        port: str | int = "7777",
        protocol_count: int = 1,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
    ) -> None:
        if protocol_count < 1:
            raise ValueError(f"protocol_count must be at least 1, got {protocol_count}")
        super().__init__(address, port, max_connections)
        self.protocol_count = protocol_count

    def _fail_handler(self, protocol_index: int) -> HandshakeFail:
        def handshake_fail(incoming: HandShakeData, connection: Connection) -> Any:
            return self.on_handshake_fail(protocol_index, connection, incoming)

        return handshake_fail

    async def _start_session(self, session: TcpSession) -> None:
        session.on_wait_connect()
        session.handshake_fail = self._fail_handler(self.protocol_count - 1)
        result = session.on_socket_connected()
        if inspect.iscoroutine(result):
            await result

    def do_next_handshake(
        self,
        handshake_fail: HandshakeFail,
        session: Connection,
        protocol_index: int,
        incoming: HandShakeData,
    ) -> Any:
        """Hand the connection ``session`` to the protocol at ``protocol_index``.

        Subclasses build a session on the connection and return its
        ``handshake(handshake_fail, incoming)``.  This server knows no further
        protocol, so it closes the connection.
        """
        self.logger.log(
            Severity.WARNING, __file__, 0, f"{type(self).__name__}::do_next_handshake", self,
            f"no protocol for index {protocol_index}",
        )
        _close_connection(session)

    async def on_handshake_fail(
        self, protocol_index: int, session: Connection, incoming: HandShakeData
    ) -> None:
        """Try the next protocol on the released connection ``session``, or close it."""
        func = f"{type(self).__name__}::on_handshake_fail"
        self.logger.log_data(Severity.INFO, __file__, 0, func, self, "incoming= ", incoming.data)
        if protocol_index == 0:
            self.logger.log_data(
                Severity.WARNING, __file__, 0, func, self, "Unable to connect:", incoming.data
            )
            _close_connection(session)
            return
        protocol_index -= 1
        await _settle(
            self.do_next_handshake(
                self._fail_handler(protocol_index), session, protocol_index, incoming
            )
        )