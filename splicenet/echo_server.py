"""A server that sends every string it receives back to its client."""

from __future__ import annotations

import sys
from typing import Any, Optional, Sequence, Union

from splicenet.logger import TrackLog
from splicenet.server import MonoProtocolServer
from splicenet.tcp_session import TcpSession

DEFAULT_ADDRESS = "localhost"
DEFAULT_PORT = "7777"


class EchoSession(TcpSession):
    """Reads strings and writes each one back, then reads the next."""

    def on_socket_connected(self) -> Any:
        return self.read_string()

    def on_read_string(self, msg: str) -> Any:
        print(f"echo {msg}", flush=True)
        return self.write(msg)

    def on_write(self, msg: Union[str, bytes], error: Optional[BaseException]) -> Any:
        if error is not None:
            self.on_error(error)
            return None
        return self.read_string()


class EchoServer(MonoProtocolServer):
    """Serves an :class:`EchoSession` on every connection."""

    def construct_session(self, reader: Any, writer: Any) -> EchoSession:
        return EchoSession(reader, writer, self.logger)

    def on_run(self) -> None:
        print("Server has started.")
        print("Press Ctrl+C (Ctrl+Break) to exit.", end="\n\n", flush=True)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the echo server on ``<address> <port>``, localhost 7777 by default."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) == 2:
        address, port = args
    else:
        print("Usage: server <address> <port>", file=sys.stderr)
        print("  For IPv4, try:", file=sys.stderr)
        print("    server (0.0.0.0|localhost) 7777", file=sys.stderr)
        print("  For IPv6, try:", file=sys.stderr)
        print("    server 0::0 7777", file=sys.stderr)
        address, port = DEFAULT_ADDRESS, DEFAULT_PORT

    print(f"Server address: {address}")
    print(f"Server port: {port}")
    print("Server is starting...", flush=True)

    server = EchoServer(address, port)
    server.logger = TrackLog()
    server.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())