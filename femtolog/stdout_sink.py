"""Sink that writes ``level: message`` records to standard output."""

from __future__ import annotations

import contextlib
import io
import sys
import threading

from femtolog.sink_base import BOLD, RESET, LogEntry, SinkBase, _to_bytes

_BUFFER_CAPACITY = 4096
_SEP = b": "
_BOLD = BOLD.encode("ascii")
_RESET = RESET.encode("ascii")

_stdout_lock = threading.Lock()


class StdoutSink(SinkBase):
    """Writes records to standard output, or to ``stream`` if one is given.

    With ``use_color`` the level name is printed bold in the level's colour.
    With ``buffering`` records are collected up to 4 KiB before being
    written. With ``sync_write`` all instances serialise their writes.
    """

    def __init__(
        self,
        use_color: bool = True,
        buffering: bool = False,
        sync_write: bool = True,
        stream=None,
    ) -> None:
        self.use_color = use_color
        self.buffering = buffering
        self.sync_write = sync_write
        self._stream = stream
        self._buffer = bytearray()

    def _record(self, entry: LogEntry, content: str | bytes) -> bytes:
        level = entry.level.lower_name().encode("ascii")
        body = _to_bytes(content)
        if self.use_color:
            color = entry.level.ansi_color().encode("ascii")
            return b"".join((_BOLD, color, level, _RESET, _SEP, body))
        return b"".join((level, _SEP, body))

    def on_log(self, entry: LogEntry, content: str | bytes) -> None:
        record = self._record(entry, content)
        if not self.buffering:
            self._emit(record)
            return
        if len(self._buffer) + len(record) > _BUFFER_CAPACITY:
            self.flush()
        if len(record) > _BUFFER_CAPACITY:
            self._emit(record)
            return
        self._buffer += record

    def _emit(self, data: bytes) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        guard = _stdout_lock if self.sync_write else contextlib.nullcontext()
        with guard:
            if isinstance(stream, io.TextIOBase):
                binary = getattr(stream, "buffer", None)
                if binary is not None:
                    stream.flush()
                    binary.write(data)
                    binary.flush()
                else:
                    stream.write(data.decode("utf-8", "replace"))
                    stream.flush()
            else:
                stream.write(data)
                stream.flush()

    def flush(self) -> None:
        if not self._buffer:
            return
        self._emit(bytes(self._buffer))
        self._buffer.clear()

    def close(self) -> None:
        self.flush()