import io

from femtolog.sink_base import BOLD, RESET, LogEntry, LogLevel
from femtolog.stdout_sink import StdoutSink


def test_plain_record():
    stream = io.BytesIO()
    sink = StdoutSink(use_color=False, stream=stream)
    sink.on_log(LogEntry(level=LogLevel.INFO), "hi\n")
    assert stream.getvalue() == LogLevel.INFO.lower_name().encode() + b": hi\n"


def test_colored_record():
    stream = io.BytesIO()
    sink = StdoutSink(use_color=True, stream=stream)
    sink.on_log(LogEntry(level=LogLevel.ERROR), "bad")
    expected = (
        BOLD
        + LogLevel.ERROR.ansi_color()
        + LogLevel.ERROR.lower_name()
        + RESET
        + ": bad"
    ).encode()
    assert stream.getvalue() == expected


def test_buffered_until_flush():
    stream = io.BytesIO()
    sink = StdoutSink(use_color=False, buffering=True, stream=stream)
    sink.on_log(LogEntry(level=LogLevel.DEBUG), "a\n")
    sink.on_log(LogEntry(level=LogLevel.WARN), "b\n")
    assert stream.getvalue() == b""
    sink.close()
    assert stream.getvalue().decode().splitlines() == [
        LogLevel.DEBUG.lower_name() + ": a",
        LogLevel.WARN.lower_name() + ": b",
    ]


def test_buffered_large_record_goes_straight_out_in_order():
    stream = io.BytesIO()
    sink = StdoutSink(use_color=False, buffering=True, stream=stream)
    sink.on_log(LogEntry(level=LogLevel.INFO), "small")
    big = "z" * 5000
    sink.on_log(LogEntry(level=LogLevel.INFO), big)
    text = stream.getvalue().decode()
    assert text.index("small") < text.index(big)


def test_text_stream_receives_decoded_text():
    stream = io.StringIO()
    with StdoutSink(use_color=False, sync_write=False, stream=stream) as sink:
        sink.on_log(LogEntry(level=LogLevel.FATAL), "é")
    assert stream.getvalue() == LogLevel.FATAL.lower_name() + ": é"


def test_default_stream_is_stdout(capsys):
    sink = StdoutSink(use_color=False)
    sink.on_log(LogEntry(level=LogLevel.INFO), "to stdout\n")
    captured = capsys.readouterr()
    assert captured.out == LogLevel.INFO.lower_name() + ": to stdout\n"