"""Backend worker that drains the log queue and hands messages to the sinks."""

from __future__ import annotations

import enum
import os
import pickle
import struct
import sys
import threading
import time
from collections.abc import Iterable

from femtolog.options import FemtologOptions
from femtolog.sink_base import LogEntry, LogLevel, SinkBase, timestamp_ns
from femtolog.spsc_queue import SpscQueue

LITERAL_FORMAT_ID = 0
"""Format id of entries whose payload is the finished message itself."""

# payload length, level, thread id, format id
_HEADER = struct.Struct("<HBIH")
_PAYLOAD_LEN = struct.Struct("<H")
HEADER_SIZE = _HEADER.size
MAX_PAYLOAD_SIZE = 0xFFFF

# (last idle iteration of the tier, pause in seconds; None means spin)
_BACKOFF_TIERS = (
    (2048, None),
    (4096, 0.0),
    (8192, 32e-9),
    (16384, 64e-9),
    (32768, 128e-9),
    (65536, 256e-9),
    (131072, 512e-9),
    (262144, 1e-6),
    (524288, 10e-6),
)
_LONGEST_PAUSE = 100e-6


class BackendWorkerStatus(enum.Enum):
    """Lifecycle state of a backend worker."""

    UNINITIALIZED = 0
    IDLING = 1
    RUNNING = 2


def encode_entry(entry: LogEntry, fmt: str, args: Iterable = ()) -> bytes:
    """Serialise an entry with its format string and arguments.

    A literal entry carries ``fmt`` as its finished message and takes no
    arguments; any other entry carries the format string and arguments to
    be formatted by the backend.
    """
    args = tuple(args)
    if entry.format_id == LITERAL_FORMAT_ID:
        if args:
            raise ValueError("a literal entry takes no arguments")
        payload = fmt.encode("utf-8")
    else:
        payload = pickle.dumps((fmt, args), protocol=pickle.HIGHEST_PROTOCOL)
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise ValueError(
            f"payload of {len(payload)} bytes exceeds {MAX_PAYLOAD_SIZE} bytes"
        )
    header = _HEADER.pack(
        len(payload), int(entry.level), entry.thread_id, entry.format_id
    )
    return header + payload


def decode_entry(data: bytes) -> tuple[LogEntry, str, tuple]:
    """Return the entry, format string and arguments held in ``data``."""
    if len(data) < HEADER_SIZE:
        raise ValueError(f"entry of {len(data)} bytes is shorter than its header")
    payload_len, level, thread_id, format_id = _HEADER.unpack_from(data)
    if len(data) != HEADER_SIZE + payload_len:
        raise ValueError(
            f"entry declares {payload_len} payload bytes, "
            f"holds {len(data) - HEADER_SIZE}"
        )
    payload = bytes(data[HEADER_SIZE:])
    entry = LogEntry(
        level=LogLevel(level), thread_id=thread_id, format_id=format_id
    )
    if format_id == LITERAL_FORMAT_ID:
        return entry, payload.decode("utf-8"), ()
    fmt, args = pickle.loads(payload)
    return entry, fmt, tuple(args)


class BackendWorker:
    """Consumer thread that takes encoded entries off a queue and logs them."""

    def __init__(self) -> None:
        self._status = BackendWorkerStatus.UNINITIALIZED
        self._queue: SpscQueue | None = None
        self._options: FemtologOptions | None = None
        self._sinks: list[SinkBase] = []
        self._thread: threading.Thread | None = None
        self._shutdown = threading.Event()
        self._idle_iterations = 0

    @property
    def status(self) -> BackendWorkerStatus:
        return self._status

    def init(self, queue: SpscQueue, options: FemtologOptions | None = None) -> None:
        """Attach the worker to ``queue``; may be done once."""
        if self._status is not BackendWorkerStatus.UNINITIALIZED:
            raise RuntimeError("backend worker is already initialised")
        if queue is None:
            raise ValueError("a queue is required")
        self._queue = queue
        self._options = options if options is not None else FemtologOptions()
        self._status = BackendWorkerStatus.IDLING

    def start(self) -> None:
        """Start the worker thread."""
        if self._status is not BackendWorkerStatus.IDLING:
            raise RuntimeError(f"cannot start a worker that is {self._status.name}")
        if not self._sinks:
            raise RuntimeError("cannot start a worker without sinks")
        self._shutdown.clear()
        self._idle_iterations = 0
        self._thread = threading.Thread(
            target=self._run, name="femtolog-backend", daemon=True
        )
        self._thread.start()
        self._status = BackendWorkerStatus.RUNNING

    def stop(self) -> None:
        """Ask the worker thread to finish, and wait until it has drained the queue."""
        if self._status is not BackendWorkerStatus.RUNNING:
            raise RuntimeError(f"cannot stop a worker that is {self._status.name}")
        self._shutdown.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self._status = BackendWorkerStatus.IDLING

    def register_sink(self, sink: SinkBase) -> None:
        """Add a sink; only allowed while the worker is idle."""
        if self._status is BackendWorkerStatus.RUNNING:
            raise RuntimeError("attempted to register new sink while running")
        if self._status is not BackendWorkerStatus.IDLING:
            raise RuntimeError("backend worker is not initialised")
        if sink is None:
            raise ValueError("a sink is required")
        self._sinks.append(sink)

    def clear_sinks(self) -> None:
        """Remove every sink; only allowed while the worker is idle."""
        if self._status is BackendWorkerStatus.RUNNING:
            raise RuntimeError("attempted to clear all sinks while running")
        if self._status is not BackendWorkerStatus.IDLING:
            raise RuntimeError("backend worker is not initialised")
        self._sinks.clear()

    def flush(self) -> None:
        """Process every entry in the queue now; not allowed while running."""
        if self._status is not BackendWorkerStatus.IDLING:
            raise RuntimeError(f"cannot flush a worker that is {self._status.name}")
        self._drain()

    def _drain(self) -> None:
        while self._read_and_process_one():
            pass

    def _run(self) -> None:
        self._apply_cpu_affinity()
        while not self._shutdown.is_set():
            self._back_off(self._read_and_process_one())
        self._drain()

    def _apply_cpu_affinity(self) -> None:
        cpu = self._options.backend_worker_cpu_affinity
        setter = getattr(os, "sched_setaffinity", None)
        if cpu is None or setter is None:
            return
        try:
            setter(threading.get_native_id(), {cpu})
        except (OSError, ValueError, OverflowError) as exc:
            errno = getattr(exc, "errno", None)
            sys.stderr.write(
                f"Failed to set thread affinity to BackendWorker {cpu} "
                f"(errno={errno})\n"
            )

    def _back_off(self, dequeued: bool) -> None:
        if dequeued:
            self._idle_iterations = 0
            return
        self._idle_iterations += 1
        pause = _LONGEST_PAUSE
        for limit, tier_pause in _BACKOFF_TIERS:
            if self._idle_iterations <= limit:
                pause = tier_pause
                break
        if pause is not None:
            time.sleep(pause)

    def _read_and_process_one(self) -> bool:
        queue = self._queue
        if queue.size() < HEADER_SIZE:
            return False
        (payload_len,) = _PAYLOAD_LEN.unpack(queue.peek_bytes(_PAYLOAD_LEN.size))
        total = HEADER_SIZE + payload_len
        if queue.size() < total:
            return False
        self._process(queue.dequeue_bytes(total))
        return True

    def _process(self, raw: bytes) -> None:
        try:
            entry, fmt, args = decode_entry(raw)
            if entry.format_id == LITERAL_FORMAT_ID:
                content = fmt
            else:
                content = fmt.format(*args)
        except Exception as exc:
            sys.stderr.write(f"femtolog: dropped malformed log entry: {exc!r}\n")
            return
        entry.timestamp_ns = timestamp_ns()
        for sink in self._sinks:
            sink.on_log(entry, content)