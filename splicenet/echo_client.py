"""A client that sends one typed line to an echo server."""

from __future__ import annotations

import socket
import sys
from typing import Optional, Sequence

MAX_LENGTH = 1024
"""Size of the line buffer; at most ``MAX_LENGTH - 1`` characters are sent."""

DEFAULT_ADDRESS = "localhost"
DEFAULT_PORT = "7777"


def send_line(address: str, port: str | int, line: str) -> int:
    """Connect to the server, send the line and return the number of bytes sent."""
    payload = line[: MAX_LENGTH - 1].encode("utf-8")
    with socket.create_connection((address, int(port))) as sock:
        sock.sendall(payload)
    return len(payload)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Read a line from standard input and send it to ``<address> <port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) == 2:
        address, port = args
    else:
        print("Usage: echo_client <address> <port>", file=sys.stderr)
        print("       default to 'localhost 7777'", file=sys.stderr)
        address, port = DEFAULT_ADDRESS, DEFAULT_PORT

    print(f"Server address: {address}")
    print(f"Server port: {port}")

    try:
        line = input("Enter message: ")
    except EOFError:
        line = ""

    try:
        send_line(address, port, line)
    except (OSError, ValueError) as exc:
        print(f"Failed to send: {exc}")
        return 1
    print("Successfully sent")
    return 0


if __name__ == "__main__":
    sys.exit(main())