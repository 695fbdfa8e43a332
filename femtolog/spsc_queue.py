"""Single-producer single-consumer byte ring buffer."""

from __future__ import annotations

from collections.abc import Iterable


class QueueError(Exception):
    """Base class of queue errors."""


class QueueUninitializedError(QueueError):
    """The queue has no storage yet; call reserve() first."""


class QueueOverflowError(QueueError):
    """There is not enough free space for the data."""


class QueueUnderflowError(QueueError):
    """There is less data in the queue than was asked for."""


def next_power_of_2(value: int) -> int:
    """Return the smallest power of two that is not less than ``value``."""
    if value <= 0:
        raise ValueError(f"value must be positive, got {value!r}")
    return 1 << (value - 1).bit_length()


def _as_bytes_view(data) -> memoryview:
    return memoryview(data).cast("B")


class _ByteRing:
    """Fixed power-of-two storage addressed by ever-growing indices."""

    __slots__ = ("_buf", "_mask")

    def __init__(self, capacity: int) -> None:
        self._buf = bytearray(capacity)
        self._mask = capacity - 1

    @property
    def capacity(self) -> int:
        return len(self._buf)

    def write(self, index: int, data: memoryview) -> None:
        pos = index & self._mask
        size = len(data)
        first = min(size, len(self._buf) - pos)
        self._buf[pos : pos + first] = data[:first]
        if first < size:
            self._buf[: size - first] = data[first:]

    def read(self, index: int, size: int) -> bytes:
        pos = index & self._mask
        end = pos + size
        if end <= len(self._buf):
            return bytes(self._buf[pos:end])
        return bytes(self._buf[pos:]) + bytes(self._buf[: end - len(self._buf)])


def _check_size(size: int) -> None:
    if size < 0:
        raise ValueError(f"size must not be negative, got {size!r}")
    if size == 0:
        raise ValueError("size must not be zero")


class SpscQueue:
    """Byte queue for one producer thread and one consumer thread.

    The capacity is rounded up to a power of two. Writes and reads wrap
    around the end of the storage transparently.
    """

    def __init__(self, capacity_bytes: int | None = None) -> None:
        self._ring: _ByteRing | None = None
        self._head = 0
        self._tail = 0
        if capacity_bytes is not None:
            self.reserve(capacity_bytes)

    def reserve(self, capacity_bytes: int) -> None:
        """Allocate fresh storage of at least ``capacity_bytes`` and empty the queue."""
        if capacity_bytes <= 0:
            raise ValueError(f"capacity must be positive, got {capacity_bytes!r}")
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
        if ring.capacity - (tail - self._head) < len(view):
            raise QueueOverflowError(
                f"{len(view)} bytes do not fit in {ring.capacity - (tail - self._head)} free"
            )
        ring.write(tail, view)
        self._tail = tail + len(view)

    def dequeue_bytes(self, size: int) -> bytes:
        """Remove and return the next ``size`` bytes."""
        ring = self._require_ring()
        _check_size(size)
        head = self._head
        if self._tail - head < size:
            raise QueueUnderflowError(
                f"{size} bytes requested, {self._tail - head} available"
            )
        data = ring.read(head, size)
        self._head = head + size
        return data

    def peek_bytes(self, size: int) -> bytes:
        """Return the next ``size`` bytes without removing them."""
        ring = self._require_ring()
        _check_size(size)
        head = self._head
        if self._tail - head < size:
            raise QueueUnderflowError(
                f"{size} bytes requested, {self._tail - head} available"
            )
        return ring.read(head, size)

    def enqueue_bulk(self, chunks: Iterable) -> None:
        """Append several chunks at once; either all of them go in or none does."""
        ring = self._require_ring()
        views = [_as_bytes_view(chunk) for chunk in chunks]
        if not views:
            raise ValueError("no chunks given")
        total = sum(len(view) for view in views)
        _check_size(total)
        tail = self._tail
        if ring.capacity - (tail - self._head) < total:
            raise QueueOverflowError(
                f"{total} bytes do not fit in {ring.capacity - (tail - self._head)} free"
            )
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
        head = self._head
        if self._tail - head < total:
            raise QueueUnderflowError(
                f"{total} bytes requested, {self._tail - head} available"
            )
        chunks = []
        offset = head
        for size in sizes:
            chunks.append(ring.read(offset, size) if size else b"")
            offset += size
        self._head = head + total
        return chunks