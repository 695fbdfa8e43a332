"""Sink that writes one JSON object per log record."""

from __future__ import annotations

import json
from pathlib import Path

from femtolog.file_sink import _executable_dir, _open_log_file
from femtolog.sink_base import LogEntry, SinkBase

_BUFFER_CAPACITY = 8192
_MAX_LINE_SIZE = 2048


class JsonLinesSink(SinkBase):
    """Writes ``{"timestamp": ..., "level": ..., "message": ...}`` lines.

    A line longer than 2 KiB is cut off at that length. With ``buffering``
    lines are collected up to 8 KiB before being written. An existing file
    at the path is archived first.
    """

    def __init__(
        self, file_path: str | Path | None = None, buffering: bool = True
    ) -> None:
        if file_path is None:
            file_path = _executable_dir() / "logs" / "jsonl" / "latest.jsonl"
        self.path = Path(file_path)
        self.buffering = buffering
        self._file = _open_log_file(self.path)
        self._buffer = bytearray()

    def on_log(self, entry: LogEntry, content: str | bytes) -> None:
        if self._file is None:
            raise ValueError("sink is closed")
        if not isinstance(content, str):
            content = bytes(content).decode("utf-8", "replace")
        message = json.dumps(content, ensure_ascii=False)[1:-1]
        line = (
            f'{{"timestamp": {entry.timestamp_ns}, '
            f'"level": "{entry.level.lower_name()}", '
            f'"message": "{message}"}}\n'
        ).encode("utf-8")[:_MAX_LINE_SIZE]

        if not self.buffering:
            self._write(line)
            return
        if len(self._buffer) + len(line) > _BUFFER_CAPACITY:
            self.flush()
        if len(line) > _BUFFER_CAPACITY:
            self._write(line)
            return
        self._buffer += line

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