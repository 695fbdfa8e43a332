"""Single-producer multi-consumer byte ring buffer."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from femtolog.spsc_queue import (
    QueueOverflowError,
    QueueUnderflowError,
    QueueUninitializedError,
    _as_bytes_view,
    _ByteRing,
    _check_size,
    next_power_of_2,
)


class SpmcQueue:
    """Byte queue for one producer thread and any number of consumer threads.

    Consumers are serialised so that each dequeued range is handed to
    exactly one of them and space is released in order.
    """

    def __init__(self, capacity_bytes: int | None = None) -> None:
        self._ring: _ByteRing | None = None
        self._head = 0
        self._tail = 0
        self._consumer_lock = threading.Lock()
        if capacity_bytes is not None:
            self.reserve(capacity_bytes)

    def reserve(self, capacity_bytes: int) -> None:
        """Allocate fresh storage of at least ``capacity_bytes`` and empty the queue."""
        if capacity_bytes <= 0:
            raise ValueError(f"capacity must be positive, got {capacity_bytes!r}")
        with self._consumer_lock:
            self._ring = _ByteRing(next_power_of_2(capacity_bytes))
            self._head = 0
            self._tail = 0

    def capacity(self) -> int:
        return self._ring.capacity if self._ring is not None else 0

    def size(self) -> int:
        return self._tail - self._head

    def empty(self) -> bool:
        return self._tail == self._head

    def available_space(self) -> int:
        return self.capacity() - self.size()

    def _require_ring(self) -> _ByteRing:
        if self._ring is None:
            raise QueueUninitializedError("queue storage has not been reserved")
        return self._ring

    def enqueue_bytes(self, data) -> None:
        """Append the bytes of ``data``; raise QueueOverflowError if they do not fit."""
        ring = self._require_ring()
        view = _as_bytes_view(data)
        _check_size(len(view))
        tail = self._tail
        free = ring.capacity - (tail - self._head)
        if free < len(view):
            raise QueueOverflowError(f"{len(view)} bytes do not fit in {free} free")
        ring.write(tail, view)
        self._tail = tail + len(view)

    def _take(self, size: int, consume: bool) -> bytes:
        ring = self._require_ring()
        _check_size(size)
        with self._consumer_lock:
            head = self._head
            available = self._tail - head
            if available < size:
                raise QueueUnderflowError(
                    f"{size} bytes requested, {available} available"
                )
            data = ring.read(head, size)
            if consume:
                self._head = head + size
            return data

    def dequeue_bytes(self, size: int) -> bytes:
        """Remove and return the next ``size`` bytes."""
        return self._take(size, consume=True)

    def peek_bytes(self, size: int) -> bytes:
        """Return the next ``size`` bytes without removing them."""
        return self._take(size, consume=False)

    def enqueue_bulk(self, chunks: Iterable) -> None:
        """Append several chunks at once; either all of them go in or none does."""
        ring = self._require_ring()
        views = [_as_bytes_view(chunk) for chunk in chunks]
        if not views:
            raise ValueError("no chunks given")
        total = sum(len(view) for view in views)
        _check_size(total)
        tail = self._tail
        free = ring.capacity - (tail - self._head)
        if free < total:
            raise QueueOverflowError(f"{total} bytes do not fit in {free} free")
        offset = tail
        for view in views:
            if len(view):
                ring.write(offset, view)
            offset += len(view)
        self._tail = tail + total

    def dequeue_bulk(self, sizes: Iterable[int]) -> list[bytes]:
        """Remove consecutive chunks of the given sizes; all or nothing."""
        ring = self._require_ring()
        sizes = list(sizes)
        if not sizes:
            raise ValueError("no sizes given")
        if any(size < 0 for size in sizes):
            raise ValueError("sizes must not be negative")
        total = sum(sizes)
        _check_size(total)
        with self._consumer_lock:
            head = self._head
            available = self._tail - head
            if available < total:
                raise QueueUnderflowError(
                    f"{total} bytes requested, {available} available"
                )
            chunks = []
            offset = head
            for size in sizes:
                chunks.append(ring.read(offset, size) if size else b"")
                offset += size
            self._head = head + total
            return chunks