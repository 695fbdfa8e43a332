"""A sink that discards everything."""

from __future__ import annotations

from femtolog.sink_base import LogEntry, SinkBase


class NullSink(SinkBase):
    """Sink that drops every message."""

    def on_log(self, entry: LogEntry, content: str | bytes) -> None:
        return None