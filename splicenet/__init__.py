"""Asyncio TCP server toolkit: sessions, multi-protocol handshakes, HTTP files and framed messages."""

__version__ = "0.1.0"