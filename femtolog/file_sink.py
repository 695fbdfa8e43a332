"""Sink that appends plain-text log lines to a file."""

from __future__ import annotations

import gzip
import shutil
import sys
from pathlib import Path

from femtolog.sink_base import (
    LogEntry,
    LogLevel,
    SinkBase,
    TimeZone,
    _to_bytes,
    format_timestamp,
    timestamp_ns,
)

_BUFFER_CAPACITY = 4096
_SEP = b": "
_ENTRY_TIMESTAMP_FORMAT = "[{:%H:%M:%S}.{:09d}] "
_ARCHIVE_TIMESTAMP_FORMAT = "{:%Y-%m-%d_%H-%M-%S}."


def _executable_dir() -> Path:
    script = sys.argv[0] if sys.argv else ""
    if script:
        return Path(script).resolve().parent
    return Path.cwd()


def archive_existing(path: str | Path) -> Path | None:
    """Gzip an existing log file next to itself and remove the original.

    The archive is named after the current local time and the file's
    extension. Return the archive's path, or None if there was no file.
    """
    path = Path(path)
    if not path.is_file():
        return None
    name = (
        format_timestamp(timestamp_ns(), _ARCHIVE_TIMESTAMP_FORMAT, TimeZone.LOCAL)
        + path.suffix.lstrip(".")
        + ".gz"
    )
    destination = path.parent / name
    with path.open("rb") as source, gzip.open(destination, "wb") as target:
        shutil.copyfileobj(source, target)
    path.unlink()
    return destination


def _open_log_file(path: Path):
    path.parent.mkdir(parents=True, exist_ok=True)
    archive_existing(path)
    return path.open("ab")


class FileSink(SinkBase):
    """Writes ``[HH:MM:SS.nnnnnnnnn] level: message`` records to a file.

    Records are buffered up to 4 KiB; larger records are written straight
    through. The message is written as given, so it carries its own line
    ending. An existing file at the path is archived first.
    """

    def __init__(self, file_path: str | Path | None = None) -> None:
        if file_path is None:
            file_path = _executable_dir() / "logs" / "latest.log"
        self.path = Path(file_path)
        self._file = _open_log_file(self.path)
        self._buffer = bytearray()

    def on_log(self, entry: LogEntry, content: str | bytes) -> None:
        if self._file is None:
            raise ValueError("sink is closed")
        stamp = format_timestamp(
            entry.timestamp_ns, _ENTRY_TIMESTAMP_FORMAT, TimeZone.LOCAL
        ).encode("ascii")
        level = entry.level.lower_name().encode("ascii")
        body = _to_bytes(content)
        total = len(stamp) + len(level) + len(_SEP) + len(body)

        if len(self._buffer) + total > _BUFFER_CAPACITY:
            self.flush()

        if entry.level is LogLevel.SILENT:
            parts = (stamp, body)
        else:
            parts = (stamp, level, _SEP, body)

        if total > _BUFFER_CAPACITY:
            self._write(b"".join(parts))
            return
        for part in parts:
            self._buffer += part

    def _write(self, data: bytes) -> None:
        self._file.write(data)
        self._file.flush()

    def flush(self) -> None:
        if not self._buffer or self._file is None:
            return
        self._write(bytes(self._buffer))
        self._buffer.clear()

    def close(self) -> None:
        if self._file is None:
            return
        self.flush()
        self._file.close()
        self._file = None