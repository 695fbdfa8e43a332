import gzip
import json

import pytest

from femtolog.json_lines_sink import JsonLinesSink
from femtolog.sink_base import LogEntry, LogLevel


def test_line_round_trips_through_json(tmp_path):
    path = tmp_path / "latest.jsonl"
    with JsonLinesSink(path) as sink:
        sink.on_log(LogEntry(level=LogLevel.ERROR, timestamp_ns=42), "boom")
    record = json.loads(path.read_text())
    assert record == {
        "timestamp": 42,
        "level": LogLevel.ERROR.lower_name(),
        "message": "boom",
    }


def test_line_layout_fixed_by_format(tmp_path):
    path = tmp_path / "latest.jsonl"
    with JsonLinesSink(path) as sink:
        sink.on_log(LogEntry(level=LogLevel.INFO, timestamp_ns=7), "m")
    level = LogLevel.INFO.lower_name()
    assert path.read_text() == (
        '{"timestamp": 7, "level": "' + level + '", "message": "m"}\n'
    )


def test_special_characters_are_escaped(tmp_path):
    path = tmp_path / "latest.jsonl"
    message = 'quote " backslash \\ newline \n tab \t ünï'
    with JsonLinesSink(path) as sink:
        sink.on_log(LogEntry(level=LogLevel.DEBUG), message)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["message"] == message


def test_buffered_until_flush(tmp_path):
    path = tmp_path / "latest.jsonl"
    sink = JsonLinesSink(path)
    sink.on_log(LogEntry(level=LogLevel.INFO), "a")
    sink.on_log(LogEntry(level=LogLevel.INFO), "b")
    assert path.read_bytes() == b""
    sink.close()
    messages = [json.loads(line)["message"] for line in path.read_text().splitlines()]
    assert messages == ["a", "b"]


def test_unbuffered_writes_immediately(tmp_path):
    path = tmp_path / "latest.jsonl"
    sink = JsonLinesSink(path, buffering=False)
    sink.on_log(LogEntry(level=LogLevel.WARN), "now")
    assert json.loads(path.read_text())["message"] == "now"
    sink.close()


def test_long_line_is_truncated(tmp_path):
    path = tmp_path / "latest.jsonl"
    with JsonLinesSink(path, buffering=False) as sink:
        sink.on_log(LogEntry(level=LogLevel.INFO), "y" * 3000)
    data = path.read_bytes()
    assert len(data) == 2048
    assert data.startswith(b'{"timestamp": ')


def test_existing_file_is_archived(tmp_path):
    path = tmp_path / "latest.jsonl"
    path.write_bytes(b"{}\n")
    with JsonLinesSink(path) as sink:
        sink.on_log(LogEntry(level=LogLevel.INFO, timestamp_ns=1), "fresh")
    archives = list(tmp_path.glob("*.jsonl.gz"))
    assert len(archives) == 1
    assert archives[0].name.endswith(".jsonl.gz")
    assert gzip.decompress(archives[0].read_bytes()) == b"{}\n"
    assert json.loads(path.read_text()) == {
        "timestamp": 1,
        "level": LogLevel.INFO.lower_name(),
        "message": "fresh",
    }


def test_log_after_close_raises(tmp_path):
    sink = JsonLinesSink(tmp_path / "latest.jsonl")
    sink.close()
    with pytest.raises(ValueError):
        sink.on_log(LogEntry(level=LogLevel.INFO), "late")