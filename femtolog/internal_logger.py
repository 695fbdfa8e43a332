"""Frontend logger that filters by level and queues entries for the backend."""

from __future__ import annotations

import threading

from femtolog.backend_worker import (
    LITERAL_FORMAT_ID,
    MAX_PAYLOAD_SIZE,
    BackendWorker,
    BackendWorkerStatus,
    encode_entry,
)
from femtolog.options import FemtologOptions
from femtolog.sink_base import LogEntry, LogLevel, SinkBase
from femtolog.spsc_queue import QueueError, SpscQueue

_local = threading.local()


def current_thread_id() -> int:
    """Return a non-zero 32-bit id of the calling thread, stable for its life."""
    cached = getattr(_local, "thread_id", None)
    if cached is None:
        cached = (hash(threading.get_ident()) & 0xFFFFFFFF) | 1
        _local.thread_id = cached
    return cached


class InternalLogger:
    """Logger owning a queue and the backend worker that drains it.

    Messages with arguments are formatted by the backend; messages without
    arguments are passed through literally.
    """

    def __init__(self) -> None:
        self._thread_id = current_thread_id()
        self._queue = SpscQueue()
        self._worker = BackendWorker()
        self._options: FemtologOptions | None = None
        self._level = LogLevel.INFO
        self._enqueued = 0
        self._dropped = 0
        self._format_ids: dict[str, int] = {}
        self._format_lock = threading.Lock()

    def init(self, options: FemtologOptions | None = None) -> None:
        """Allocate the queue and prepare the backend worker."""
        if self._worker.status is BackendWorkerStatus.RUNNING:
            raise RuntimeError("cannot reinitialise while the worker is running")
        options = options if options is not None else FemtologOptions()
        self._queue.reserve(options.spsc_queue_size)
        self._options = options
        if self._worker.status is BackendWorkerStatus.UNINITIALIZED:
            self._worker.init(self._queue, options)

    def register_sink(self, sink: SinkBase) -> None:
        self._worker.register_sink(sink)

    def clear_sinks(self) -> None:
        self._worker.clear_sinks()

    def start_worker(self) -> None:
        self._worker.start()

    def stop_worker(self) -> None:
        """Stop the worker once it has processed everything queued."""
        self._worker.stop()

    @property
    def level(self) -> LogLevel:
        """Lowest level that is logged."""
        return self._level

    @level.setter
    def level(self, value: LogLevel) -> None:
        self._level = LogLevel(value)

    @property
    def enqueued_count(self) -> int:
        return self._enqueued

    @property
    def dropped_count(self) -> int:
        return self._dropped

    @property
    def thread_id(self) -> int:
        return self._thread_id

    def log(self, level: LogLevel, fmt: str, *args) -> None:
        """Queue a message at ``level`` unless it is below the logger's level."""
        level = LogLevel(level)
        if level < self._level:
            return
        format_id = self._format_id(fmt) if args else LITERAL_FORMAT_ID
        entry = LogEntry(level=level, thread_id=self._thread_id, format_id=format_id)
        try:
            data = encode_entry(entry, fmt, args)
        except ValueError:
            self._dropped += 1
            return
        self.enqueue_log_entry(data)

    def enqueue_log_entry(self, data: bytes) -> None:
        """Put an encoded entry on the queue, counting it as enqueued or dropped."""
        limit = self._options.backend_dequeue_buffer_size if self._options else None
        if limit is not None and len(data) > limit:
            self._dropped += 1
            return
        try:
            self._queue.enqueue_bytes(data)
        except QueueError:
            self._dropped += 1
        else:
            self._enqueued += 1

    def _format_id(self, fmt: str) -> int:
        with self._format_lock:
            format_id = self._format_ids.get(fmt)
            if format_id is None:
                format_id = len(self._format_ids) % MAX_PAYLOAD_SIZE + 1
                self._format_ids[fmt] = format_id
            return format_id

    def __enter__(self) -> InternalLogger:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._worker.status is BackendWorkerStatus.RUNNING:
            self.stop_worker()