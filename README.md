# femtolog

An asynchronous logging library. Front-end code encodes compact log entries
into a byte ring buffer; a background worker thread drains the buffer,
formats each message and hands it to every registered sink.

## Installation

```
pip install femtolog
```

## Quick start

```python
from femtolog.internal_logger import InternalLogger
from femtolog.options import FemtologOptions
from femtolog.sink_base import LogLevel
from femtolog.stdout_sink import StdoutSink

logger = InternalLogger()
logger.init(FemtologOptions())
logger.register_sink(StdoutSink())
logger.start_worker()

logger.log(LogLevel.INFO, "Application starting\n")
logger.log(LogLevel.WARN, "Processing item: {}\n", 42)
logger.log(LogLevel.DEBUG, "Not shown\n")  # below the default INFO level

logger.stop_worker()  # drains anything still queued
print(logger.enqueued_count, logger.dropped_count)
```

`InternalLogger` can also be used as a context manager; leaving the block
stops a running worker.

- `level` is a property holding the lowest level that is logged
  (`LogLevel.INFO` by default). Messages below it are discarded before they
  are queued.
- A message without arguments is passed through as it is. A message with
  arguments is formatted by the worker with `str.format`.
- Messages carry their own line endings; the sinks add none.
- When an entry does not fit in the queue, or is larger than
  `backend_dequeue_buffer_size`, it is dropped and counted in
  `dropped_count` instead of blocking the caller.
- `thread_id` is the id of the thread that created the logger, as returned
  by `current_thread_id()`.

The levels are `TRACE`, `DEBUG`, `INFO`, `WARN`, `ERROR`, `FATAL` and
`SILENT`.

## Options

`FemtologOptions` is a frozen dataclass:

| field | default |
|---|---|
| `spsc_queue_size` | 65536 |
| `backend_format_buffer_size` | 16384 |
| `backend_dequeue_buffer_size` | 16384 |
| `backend_worker_cpu_affinity` | `None` (not pinned) |

Sizes must be positive integers, and the affinity must be `None` or a
non-negative integer; otherwise `ValueError` is raised.
`affinity_enabled()` tells whether pinning has been requested. Pinning uses
`os.sched_setaffinity` where the platform has it; a failure is reported on
standard error and the worker runs unpinned. `FAST_OPTIONS` and
`MEMORY_SAVING_OPTIONS` are ready-made presets.

## Sinks

- `StdoutSink(use_color=True, buffering=False, sync_write=True, stream=None)`
  writes `level: message` to standard output, or to `stream`. With colour
  the level name is bold and coloured. With buffering, records are
  collected up to 4 KiB.
- `FileSink(file_path=None)` writes `[HH:MM:SS.nnnnnnnnn] level: message` to
  a file, buffering up to 4 KiB. Without a path it writes to
  `logs/latest.log` next to the running script. An existing file is first
  compressed by `archive_existing(path)` into a `.gz` archive named after the
  current local time, and then removed.
- `JsonLinesSink(file_path=None, buffering=True)` writes one
  `{"timestamp": ..., "level": ..., "message": ...}` object per line. Lines
  are cut off at 2 KiB. The default path is `logs/jsonl/latest.jsonl` next to
  the running script, and an existing file is archived in the same way.
- `NullSink` discards everything.

Every sink has `flush()` and `close()` and can be used as a context manager.
To write your own, subclass `SinkBase` and implement `on_log(entry, content)`.
`entry` is a `LogEntry` with `level`, `thread_id`, `format_id` and
`timestamp_ns`. `format_timestamp(time_ns, fmt, tz)` renders a timestamp in
`TimeZone.LOCAL` or `TimeZone.UTC`.

## Backend worker

`BackendWorker` can be driven directly. Attach it to a queue with
`init(queue, options)`, add sinks with `register_sink`, then call
`start()`/`stop()`. It can also be drained synchronously with `flush()`.
`encode_entry(entry, fmt, args)` and `decode_entry(data)` give the byte
form of a queued entry. Sinks may be registered or cleared only while the
worker is idle; breaking the lifecycle order raises `RuntimeError`.

## Queues

`SpscQueue` (single producer, single consumer) and `SpmcQueue` (single
producer, several consumers) are byte ring buffers. Their capacity is
rounded up to a power of two (`next_power_of_2`). A write that does not fit
raises `QueueOverflowError`, and a read of more bytes than are queued raises
`QueueUnderflowError`. Using a queue before `reserve()` raises
`QueueUninitializedError`. All three derive from `QueueError`. The bulk
calls `enqueue_bulk` and `dequeue_bulk` are all-or-nothing.

```python
from femtolog.spsc_queue import SpscQueue

queue = SpscQueue()
queue.reserve(20)          # capacity() == 32
queue.enqueue_bytes(b"hello")
assert queue.peek_bytes(2) == b"he"
assert queue.dequeue_bytes(5) == b"hello"
```

## What it does not do

There is no command-line tool and no process-wide default logger. Create an
`InternalLogger` and pass it where it is needed. Files are not rotated while
the logger runs; a file is archived only when a sink opens it.

## Running the tests

```
pip install -e .[test]
pytest
```