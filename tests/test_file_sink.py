import gzip
import re

import pytest

from femtolog.file_sink import FileSink, archive_existing
from femtolog.sink_base import LogEntry, LogLevel

STAMP_LEN = len("[00:00:00.000000000] ")


def test_writes_timestamped_record(tmp_path):
    path = tmp_path / "latest.log"
    entry = LogEntry(level=LogLevel.WARN, timestamp_ns=0)
    with FileSink(path) as sink:
        sink.on_log(entry, "hello\n")
    level = LogLevel.WARN.lower_name()
    text = path.read_text()
    assert text[0] == "["
    assert text.endswith(".000000000] " + level + ": hello\n")
    assert len(text) == STAMP_LEN + len(level) + len(": hello\n")


def test_silent_level_omits_level_name(tmp_path):
    path = tmp_path / "latest.log"
    with FileSink(path) as sink:
        sink.on_log(LogEntry(level=LogLevel.SILENT), "quiet")
    text = path.read_text()
    assert text[0] == "["
    assert text.endswith("] quiet")
    assert len(text) == STAMP_LEN + len("quiet")


def test_records_buffered_until_flush(tmp_path):
    path = tmp_path / "latest.log"
    sink = FileSink(path)
    sink.on_log(LogEntry(level=LogLevel.INFO), "first\n")
    sink.on_log(LogEntry(level=LogLevel.ERROR), "second\n")
    assert path.read_bytes() == b""
    sink.flush()
    lines = path.read_text().splitlines()
    sink.close()
    assert [line.split("] ", 1)[1] for line in lines] == [
        LogLevel.INFO.lower_name() + ": first",
        LogLevel.ERROR.lower_name() + ": second",
    ]


def test_large_record_written_directly_after_pending(tmp_path):
    path = tmp_path / "latest.log"
    sink = FileSink(path)
    sink.on_log(LogEntry(level=LogLevel.INFO), "small\n")
    big = "x" * 5000
    sink.on_log(LogEntry(level=LogLevel.INFO), big)
    text = path.read_text()
    sink.close()
    assert "small" in text and big in text
    assert text.index("small") < text.index(big)


def test_creates_parent_directories(tmp_path):
    path = tmp_path / "a" / "b" / "latest.log"
    with FileSink(path) as sink:
        sink.on_log(LogEntry(level=LogLevel.INFO), "x")
    assert path.read_text().endswith("x")


def test_existing_file_is_archived(tmp_path):
    path = tmp_path / "latest.log"
    path.write_bytes(b"old contents")
    FileSink(path).close()
    archives = list(tmp_path.glob("*.log.gz"))
    assert len(archives) == 1
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}\.log\.gz", archives[0].name)
    assert gzip.decompress(archives[0].read_bytes()) == b"old contents"
    assert path.read_bytes() == b""


def test_archive_existing_missing_file(tmp_path):
    assert archive_existing(tmp_path / "nope.log") is None


def test_archive_existing_returns_archive_path(tmp_path):
    path = tmp_path / "data.log"
    path.write_bytes(b"abc")
    archive = archive_existing(path)
    assert not path.exists()
    assert gzip.decompress(archive.read_bytes()) == b"abc"


def test_log_after_close_raises(tmp_path):
    sink = FileSink(tmp_path / "latest.log")
    sink.close()
    with pytest.raises(ValueError):
        sink.on_log(LogEntry(level=LogLevel.INFO), "late")