import asyncio

import pytest

from splicenet.common import HandShakeData
from splicenet.echo_message import ClientEchoTimed, ServerEchoTimed, dumps
from splicenet.serialization import (
    HEADER_LENGTH,
    FrameError,
    SerializationSession,
    decode_header,
    encode_frame,
)

GUID = b"{40CBD5AC-856A-4EA5-AE00-DFB199ABED64}"


class FakeWriter:
    def __init__(self, fail=False):
        self.data = bytearray()
        self.closed = False
        self.fail = fail

    def write(self, data):
        self.data.extend(data)

    async def drain(self):
        if self.fail:
            raise ConnectionResetError("reset")

    def close(self):
        self.closed = True

    def get_extra_info(self, name):
        return None


def make_reader(data):
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    return reader


class RecordingSession(SerializationSession):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.written = []

    def on_write_msg(self, msg, error):
        self.written.append((msg, error))
        super().on_write_msg(msg, error)


class GuidSession(SerializationSession):
    def try_handshake(self, incoming):
        return incoming.data == GUID


def test_encode_frame_pads_header_with_spaces():
    assert encode_frame(b"abc") == b"       3abc"


def test_encode_frame_header_is_hex():
    frame = encode_frame(b"x" * 255)
    assert frame[:HEADER_LENGTH] == b"      ff"
    assert len(frame) == HEADER_LENGTH + 255


def test_header_round_trip():
    for size in (0, 1, 16, 4096):
        frame = encode_frame(b"a" * size)
        assert decode_header(frame[:HEADER_LENGTH]) == size


def test_decode_header_rejects_non_hex():
    with pytest.raises(FrameError):
        decode_header(b"zzzzzzzz")


def test_decode_header_rejects_wrong_length():
    with pytest.raises(FrameError):
        decode_header(b"  ff")


@pytest.mark.asyncio
async def test_write_struct_sends_frame():
    writer = FakeWriter()
    session = RecordingSession(make_reader(b""), writer)
    msg = ClientEchoTimed("hi", 5)
    task = session.write_struct(msg)
    await task
    assert bytes(writer.data) == encode_frame(dumps(msg))
    assert session.written == [(msg, None)]


@pytest.mark.asyncio
async def test_read_struct_round_trip():
    msg = ServerEchoTimed("coucou", 10, 20)
    session = SerializationSession(make_reader(encode_frame(dumps(msg))), FakeWriter())
    session.read_struct()
    await session.finished()
    assert session.messages.get_nowait() == msg


@pytest.mark.asyncio
async def test_bad_header_shuts_down():
    writer = FakeWriter()
    session = SerializationSession(make_reader(b"zzzzzzzz"), writer)
    session.read_struct()
    await session.finished()
    assert writer.closed is True
    assert session.messages.empty()


@pytest.mark.asyncio
async def test_undecodable_payload_is_dropped():
    writer = FakeWriter()
    session = SerializationSession(make_reader(encode_frame(b"garbage")), writer)
    session.read_struct()
    await session.finished()
    assert session.messages.empty()
    assert writer.closed is False


@pytest.mark.asyncio
async def test_truncated_payload_shuts_down():
    writer = FakeWriter()
    frame = encode_frame(dumps(ClientEchoTimed("hello", 1)))
    session = SerializationSession(make_reader(frame[:-2]), writer)
    session.read_struct()
    await session.finished()
    assert writer.closed is True


@pytest.mark.asyncio
async def test_handshake_success_starts_reading():
    msg = ClientEchoTimed("ping", 42)
    session = GuidSession(make_reader(encode_frame(dumps(msg))), FakeWriter())
    await session.handshake(None, HandShakeData(GUID))
    await session.finished()
    assert session.messages.get_nowait() == msg


@pytest.mark.asyncio
async def test_write_error_shuts_down():
    writer = FakeWriter(fail=True)
    session = RecordingSession(make_reader(b""), writer)
    msg = ClientEchoTimed("x", 1)
    await SerializationSession.write_struct(session, msg)
    assert session.written[0][0] == msg
    assert isinstance(session.written[0][1], ConnectionResetError)
    assert writer.closed is True
    assert session.is_open is False


@pytest.mark.asyncio
async def test_receive_returns_message():
    msg = ClientEchoTimed("direct", 7)
    session = SerializationSession(make_reader(encode_frame(dumps(msg))), FakeWriter())
    assert await session.receive() == msg


@pytest.mark.asyncio
async def test_custom_codec():
    class Codec:
        @staticmethod
        def dumps(msg):
            return msg.encode("ascii")

        @staticmethod
        def loads(data):
            return data.decode("ascii")

    writer = FakeWriter()
    session = SerializationSession(make_reader(encode_frame(b"abc")), writer, codec=Codec())
    await session.write_struct("abc")
    session.read_struct()
    await session.finished()
    assert bytes(writer.data) == encode_frame(b"abc")
    assert session.messages.get_nowait() == "abc"