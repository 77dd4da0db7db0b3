import io
import logging

import pytest

from splicenet.logger import (
    TRACE_LEVEL,
    LoggingLog,
    LogInterface,
    Severity,
    TrackLog,
    extract_file_name,
    extract_func_name,
    file_func_name,
    reduce,
)


class RecordingLog(LogInterface):
    def __init__(self):
        self.records = []

    def log(self, severity, file, line, func, obj, msg):
        self.records.append((severity, file, line, func, obj, msg))


@pytest.mark.parametrize(
    "path, name",
    [
        ("C:\\dir\\file.cpp", "file.cpp"),
        ("/usr/src/tcp_session.hxx", "tcp_session.hxx"),
        ("noslash", "noslash"),
        ("a/b:c", "c"),
    ],
)
def test_extract_file_name(path, name):
    assert extract_file_name(path) == name


def test_extract_func_name():
    assert extract_func_name("void splice::tcp_session::shutdown") == "shutdown"
    assert extract_func_name("main") == "main"


def test_reduce_short_data_is_quoted_whole():
    assert reduce(b"hello") == '"hello"'
    assert reduce(b"x" * 24) == '"' + "x" * 24 + '"'


def test_reduce_long_data_keeps_ends():
    data = bytes(range(65, 65 + 30))
    result = reduce(data)
    assert result.startswith('"' + data[:10].decode() + " ... ")
    assert result.endswith(data[-10:].decode() + '"')
    assert data[10:20].decode() not in result


def test_reduce_escapes_unprintable_bytes_as_signed():
    assert "\\1" in reduce(b"\x01" * 30)
    assert "\\-1" in reduce(b"\xff" * 30)


def test_file_func_name():
    assert file_func_name(Severity.ERROR, "/src/a.cpp", 7, "ns::f", 0xAB) == "E|a.cpp@7|(0xab)->f"


def test_track_log_writes_prefixed_line():
    stream = io.StringIO()
    TrackLog(stream).log(Severity.WARNING, "x/y.cpp", 3, "g", 16, "hi")
    assert stream.getvalue() == file_func_name(Severity.WARNING, "x/y.cpp", 3, "g", 16) + " hi\n"


def test_log_data_info_adds_size():
    log = RecordingLog()
    LogInterface.log_data(log, Severity.INFO, "/p/f.cpp", 1, "fn", None, "incoming= ", b"abc")
    severity, file, _, _, _, msg = log.records[0]
    assert severity is Severity.INFO
    assert file == "f.cpp"
    assert msg == 'incoming=  size=3"abc"'


def test_log_data_trace_appends_reduced_data():
    log = RecordingLog()
    log.log_data(Severity.TRACE, "f.cpp", 1, "fn", None, "m", b"abc")
    assert log.records[0][5] == "m" + reduce(b"abc")


def test_logging_log_maps_levels(caplog):
    logger = logging.getLogger("splicenet.test")
    caplog.set_level(1, logger="splicenet.test")
    sink = LoggingLog(logger)
    sink.log(Severity.ERROR, "/a/b.cpp", 9, "fn", None, "boom")
    sink.log(Severity.TRACE, "/a/b.cpp", 9, "fn", None, "step")
    assert caplog.records[0].levelno == logging.ERROR
    assert 'msg="boom"' in caplog.records[0].getMessage()
    assert "[b.cpp@9]:" in caplog.records[0].getMessage()
    assert caplog.records[1].levelno == TRACE_LEVEL
    assert "[fn]" in caplog.records[1].getMessage()