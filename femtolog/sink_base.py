"""Log levels, log entries, timestamp formatting and the sink interface."""

from __future__ import annotations

import enum
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone

BOLD = "\033[1m"
RESET = "\033[0m"

DEFAULT_TIMESTAMP_FORMAT = "{:%H:%M:%S}.{:09d} "


class LogLevel(enum.IntEnum):
    """Severity of a log entry, from the most verbose to the most severe."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5
    SILENT = 6

    def lower_name(self) -> str:
        """Return the level's name in lower case, as written by the sinks."""
        return self.name.lower()

    def ansi_color(self) -> str:
        """Return the ANSI escape sequence that colours this level."""
        return _ANSI_COLORS[self]


_ANSI_COLORS = {
    LogLevel.TRACE: "\033[37m",
    LogLevel.DEBUG: "\033[36m",
    LogLevel.INFO: "\033[32m",
    LogLevel.WARN: "\033[33m",
    LogLevel.ERROR: "\033[31m",
    LogLevel.FATAL: "\033[35m",
    LogLevel.SILENT: "",
}


@dataclass
class LogEntry:
    """Metadata of one log record as handed to the sinks."""

    level: LogLevel
    thread_id: int = 0
    format_id: int = 0
    timestamp_ns: int = 0


class TimeZone(enum.Enum):
    """Time zone used to render timestamps."""

    UTC = 0
    LOCAL = 1


def timestamp_ns() -> int:
    """Return the current wall-clock time in nanoseconds since the epoch."""
    return time.time_ns()


def format_timestamp(
    time_ns: int,
    fmt: str = DEFAULT_TIMESTAMP_FORMAT,
    tz: TimeZone = TimeZone.LOCAL,
) -> str:
    """Render ``time_ns`` with ``fmt``.

    ``fmt`` is a ``str.format`` template that receives the moment as a
    datetime and the sub-second nanoseconds as an int, in that order.
    """
    seconds, nanoseconds = divmod(time_ns, 1_000_000_000)
    if tz is TimeZone.UTC:
        moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    else:
        moment = datetime.fromtimestamp(seconds).astimezone()
    return fmt.format(moment, nanoseconds)


def _to_bytes(content: str | bytes) -> bytes:
    if isinstance(content, str):
        return content.encode("utf-8")
    return bytes(content)


class SinkBase(ABC):
    """Destination of formatted log messages."""

    @abstractmethod
    def on_log(self, entry: LogEntry, content: str | bytes) -> None:
        """Receive one formatted message together with its entry."""

    def flush(self) -> None:
        """Write out anything held back; sinks without a buffer do nothing."""

    def close(self) -> None:
        """Flush and release the sink's resources."""
        self.flush()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()