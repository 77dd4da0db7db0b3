"""A session that answers plain HTTP requests with files from a request handler."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Optional, Union

from splicenet.common import HandShake, HandShakeData
from splicenet.http_types import Request
from splicenet.logger import LogInterface, Severity
from splicenet.reply import Reply, StatusType
from splicenet.request_handler import RequestHandler
from splicenet.request_parser import RequestParser
from splicenet.tcp_session import HandshakeFail, TcpSession

_WEB_SOCKET_KEY = b"Sec-WebSocket-Key:"


async def _settle(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


class HttpSession(TcpSession):
    """Serves one HTTP request, then closes the connection.

    During a multi-protocol handshake, data that is not an HTTP request, or
    that looks like a web socket upgrade, is passed on to the next protocol.
    """

    def __init__(
        self,
        reader: Optional[asyncio.StreamReader],
        writer: Any,
        handler: RequestHandler,
        logger: Optional[LogInterface] = None,
    ) -> None:
        super().__init__(reader, writer, logger)
        self.handler = handler
        self.request = Request()
        self.parser = RequestParser()
        self.reply = Reply()

    async def handshake(
        self, handshake_fail: Optional[HandshakeFail], incoming: HandShakeData
    ) -> None:
        """Take over data tagged as HTTP; pass anything else on."""
        self.logger.log_data(
            Severity.INFO, __file__, 0, f"{type(self).__name__}::handshake", self,
            "incoming= ", incoming.data,
        )
        if incoming.tag is not HandShake.HTTP:
            await self._fail(handshake_fail, incoming)
            return
        await self.on_first_read(handshake_fail, incoming.data)

    async def on_first_read(
        self,
        handshake_fail: Optional[HandshakeFail],
        data: Union[bytes, BaseException],
    ) -> None:
        """Parse the first data read; answer, read more, or hand the connection on."""
        self._log(Severity.TRACE, "")
        if isinstance(data, BaseException):
            self.on_error(data)
            return
        data = bytes(data)
        self._log(Severity.TRACE, data.decode("latin-1"))

        if _WEB_SOCKET_KEY in data:
            self._log(Severity.INFO, "could be a web socket request")
            await self._fail(handshake_fail, HandShakeData(data, HandShake.HTTP))
            return

        result, _ = self.parser.parse(self.request, data)
        if result:
            self._log(Severity.TRACE, "if(result)")
            self._respond(self.handler.handle_request(self.request))
        elif result is False:
            self._log(Severity.TRACE, "else if(!result)")
            await self._fail(handshake_fail, HandShakeData(data, HandShake.HTTP))
        else:
            self._log(Severity.TRACE, "else")
            self._spawn(self._read_more())

    async def handle_read(self, data: Union[bytes, BaseException]) -> None:
        """Continue parsing a request; a malformed one gets a bad-request reply."""
        self._log(Severity.TRACE, "")
        if isinstance(data, BaseException):
            self._log(Severity.TRACE, str(data))
            self.shutdown()
            return
        result, _ = self.parser.parse(self.request, bytes(data))
        if result:
            self._respond(self.handler.handle_request(self.request))
        elif result is False:
            self._respond(Reply.stock_reply(StatusType.BAD_REQUEST))
        else:
            self._spawn(self._read_more())

    async def _read_more(self) -> None:
        data: Union[bytes, BaseException]
        try:
            data = await self._read_chunk()
        except (OSError, EOFError) as exc:
            data = exc
        await self.handle_read(data)

    async def _fail(
        self, handshake_fail: Optional[HandshakeFail], incoming: HandShakeData
    ) -> None:
        if handshake_fail is None:
            self.logger.log_data(
                Severity.WARNING, __file__, 0, type(self).__name__, self,
                "Unable to connect:", incoming.data,
            )
            self.shutdown()
            return
        await _settle(handshake_fail(incoming, self.move_socket()))

    def _respond(self, reply: Reply) -> None:
        self.reply = reply
        self._spawn(self._send_reply())

    async def _send_reply(self) -> None:
        error: Optional[OSError] = None
        try:
            if self.writer is None or not self.is_open:
                raise ConnectionError("socket is not connected")
            self.writer.write(self.reply.to_bytes())
            await self.writer.drain()
        except OSError as exc:
            error = exc
        if error is not None:
            self._log(Severity.TRACE, str(error))
        self.shutdown()