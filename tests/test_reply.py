import pytest

from splicenet.http_types import Header
from splicenet.reply import Reply, StatusType


def _header(reply, name):
    return next(h.value for h in reply.headers if h.name == name)


def test_not_found_stock_reply_bytes():
    reply = Reply.stock_reply(StatusType.NOT_FOUND)
    assert reply.to_bytes().startswith(b"HTTP/1.0 404 Not Found\r\n")
    assert reply.content == (
        b"<html><head><title>Not Found</title></head>"
        b"<body><h1>404 Not Found</h1></body></html>"
    )
    assert _header(reply, "Content-Type") == "text/html"


@pytest.mark.parametrize("status", list(StatusType))
def test_stock_reply_is_consistent(status):
    reply = Reply.stock_reply(status)
    assert reply.status == status
    assert _header(reply, "Content-Length") == str(len(reply.content))
    line = reply.to_buffers()[0]
    assert line.startswith(f"HTTP/1.0 {int(status)} ".encode())
    assert line.endswith(b"\r\n")
    assert reply.to_bytes().endswith(b"\r\n\r\n" + reply.content)


def test_ok_stock_reply_is_empty():
    reply = Reply.stock_reply(StatusType.OK)
    assert reply.content == b""
    assert _header(reply, "Content-Length") == "0"
    assert reply.to_buffers()[0] == b"HTTP/1.0 200 OK\r\n"


def test_no_content_page_heading():
    reply = Reply.stock_reply(StatusType.NO_CONTENT)
    assert b"<h1>204 Content</h1>" in reply.content
    assert b"<title>No Content</title>" in reply.content


def test_moved_temporarily_status_line():
    reply = Reply.stock_reply(StatusType.MOVED_TEMPORARILY)
    assert reply.to_buffers()[0] == b"HTTP/1.0 302 Moved Temporarily\r\n"


def test_to_buffers_layout():
    reply = Reply(StatusType.OK, [Header("X-Name", "value")], b"body")
    assert reply.to_buffers() == [
        b"HTTP/1.0 200 OK\r\n",
        b"X-Name",
        b": ",
        b"value",
        b"\r\n",
        b"\r\n",
        b"body",
    ]


def test_to_bytes_joins_buffers():
    reply = Reply(StatusType.CREATED, [Header("A", "1"), Header("B", "2")], b"xyz")
    assert reply.to_bytes() == b"".join(reply.to_buffers())


def test_unknown_status_falls_back_to_internal_error():
    reply = Reply.stock_reply(999)
    assert reply.to_buffers()[0] == b"HTTP/1.0 500 Internal Server Error\r\n"
    assert reply.content == Reply.stock_reply(StatusType.INTERNAL_SERVER_ERROR).content