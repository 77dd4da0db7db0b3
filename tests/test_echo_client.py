import io
import socket
import threading

import pytest

from splicenet.echo_client import MAX_LENGTH, main, send_line


class ListeningPeer:
    def __init__(self):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(1)
        self.port = self.sock.getsockname()[1]
        self.received = b""
        self.thread = threading.Thread(target=self._serve, daemon=True)
        self.thread.start()

    def _serve(self):
        conn, _ = self.sock.accept()
        with conn:
            chunks = []
            while True:
                chunk = conn.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        self.received = b"".join(chunks)

    def finish(self):
        self.thread.join(5)
        self.sock.close()
        return self.received


@pytest.fixture
def peer():
    listening = ListeningPeer()
    yield listening
    listening.sock.close()


def _closed_port():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


def test_send_line_delivers_bytes(peer):
    sent = send_line("127.0.0.1", peer.port, "hello")
    assert peer.finish() == b"hello"
    assert sent == len(b"hello")


def test_send_line_truncates_long_lines(peer):
    sent = send_line("127.0.0.1", str(peer.port), "x" * 2000)
    received = peer.finish()
    assert sent == MAX_LENGTH - 1
    assert received == b"x" * (MAX_LENGTH - 1)


def test_send_line_refused():
    with pytest.raises(OSError):
        send_line("127.0.0.1", _closed_port(), "hello")


def test_main_sends_typed_line(peer, monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("typed words\n"))
    result = main(["127.0.0.1", str(peer.port)])
    assert peer.finish() == b"typed words"
    out = capsys.readouterr().out
    assert result == 0
    assert "Successfully sent" in out
    assert f"Server port: {peer.port}" in out


def test_main_reports_failure(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("hello\n"))
    result = main(["127.0.0.1", str(_closed_port())])
    out = capsys.readouterr().out
    assert result == 1
    assert "Failed to send" in out