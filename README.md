# splicenet

splicenet is an asyncio toolkit for TCP servers. A server can speak a single
protocol, or try several protocols in turn on one port. In the multi-protocol
case each connection starts with one session; if that session does not accept
the first bytes it read, the connection and those bytes are handed to the
next protocol, down to the last one, after which the connection is closed.

## What it contains

- `splicenet.server`: `Server`, with `MonoProtocolServer` and `MultiProtocolServer`.
  A server resolves its address, listens (`serve()` inside a running loop,
  `run()` in a new loop that also stops on SIGINT, SIGTERM and SIGQUIT) and
  builds a session for each connection in `construct_session(reader, writer)`.
  `stop()` may be called from any thread.
- `splicenet.tcp_session`: `TcpSession`, the base class for a connection. It
  performs the first read and the handshake (`try_handshake`,
  `on_handshake_success`, `move_socket`), reads strings (`read_string` →
  `on_read_string`), writes (`write` → `on_write`) and shuts down
  (`shutdown` → `on_shutdown`). Operations run in the background and return
  their task; hooks may be plain functions or coroutines. By default strings
  read are queued on `inbox`.
- `splicenet.http_session`: `HttpSession`, which answers one HTTP request
  through a `RequestHandler` and then closes the connection. During a
  handshake it passes on data that is not HTTP or that carries a
  `Sec-WebSocket-Key:` header.
- `splicenet.request_parser`: `RequestParser`, an incremental HTTP request-head
  parser whose `parse()` returns `True`, `False` or `None` (more data needed)
  with the number of bytes consumed; `describe_incoming()` renders a trace line.
- `splicenet.reply`: `Reply` and `StatusType`, HTTP/1.0 status lines, stock
  HTML error pages (`Reply.stock_reply`) and serialisation (`to_buffers`, `to_bytes`).
- `splicenet.request_handler`: `RequestHandler`, which serves files below a
  document root, adding `index.html` to directory paths and refusing paths
  with `..`; and `url_decode()`.
- `splicenet.mime_types`: `extension_to_type()` for gif, htm, html, jpg and
  png, `text/plain` otherwise.
- `splicenet.http_types`: the `Header` and `Request` records.
- `splicenet.serialization`: `SerializationSession`, which exchanges whole
  messages in frames made of an 8-byte space-padded hexadecimal length header
  and a payload (`encode_frame`, `decode_header`, `FrameError`). The codec is
  any object with `dumps` and `loads`; `splicenet.echo_message` is the default.
- `splicenet.echo_message`: `ClientEchoTimed` and `ServerEchoTimed` with
  their text archive encoding (`dumps`, `loads`) and JSON output.
- `splicenet.json_messages`: message records for a JSON echo / directory
  listing exchange (`QuestionEchoTimed`, `ResponseEchoTimed`,
  `QuestionFilesCurrentDirectory`, `ResponseFilesCurrentDirectory`).
- `splicenet.logger`: the loggers `NoLog` (the default), `LoggingLog` (to the
  standard `logging` module) and `TrackLog` (one line per message to a stream),
  plus helpers that shorten data for log lines.
- `splicenet.common`: `HandShake` and `HandShakeData`.

## Installing

```
pip install .
```

## Echo server and client

Start an echo server. With no arguments it listens on `localhost` port `7777`:

```
splicenet-echo-server localhost 7777
```

It prints `echo <text>` for each string it receives and writes the string back.

In another terminal, send it a line:

```
splicenet-echo-client localhost 7777
```

The client asks for a message, sends it (at most 1023 characters) and prints
`Successfully sent`, or `Failed to send: ...`. It does not wait for or print
the server's echo.

## Writing your own server

Subclass `MonoProtocolServer`, return your `TcpSession` subclass from
`construct_session`, and call `run()`:

```python
from splicenet.server import MonoProtocolServer
from splicenet.tcp_session import TcpSession


class Shout(TcpSession):
    def on_socket_connected(self):
        return self.read_string()

    def on_read_string(self, msg):
        return self.write(msg.upper())

    def on_write(self, msg, error):
        if error is not None:
            self.on_error(error)
            return None
        return self.read_string()


class ShoutServer(MonoProtocolServer):
    def construct_session(self, reader, writer):
        return Shout(reader, writer, self.logger)


ShoutServer("localhost", "7777").run()
```

For several protocols, subclass `MultiProtocolServer`, pass `protocol_count`,
and override `do_next_handshake` to build the session for each lower protocol
index on the released connection and return its `handshake(...)`.

## What it does not do

- There is no web socket session; a web socket request is only recognised
  well enough to be passed on to another protocol.
- `MultiProtocolServer` on its own knows no protocol beyond the session from
  `construct_session`: unless `do_next_handshake` is overridden, a connection
  whose first handshake fails is closed.
- There is no command for an HTTP, JSON or multi-protocol server; only the
  echo server and echo client above are installed as commands.
- Sessions have no handshake timeout.

## Running the tests

```
pip install .[test]
pytest
```