"""Configuration of the logging frontend queue and the backend worker."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FemtologOptions:
    """Sizes of the queue and buffers, and the backend worker's CPU affinity.

    ``backend_worker_cpu_affinity`` is the CPU core the backend worker is
    pinned to, or ``None`` to leave the worker unpinned.
    """

    spsc_queue_size: int = 1024 * 64
    backend_format_buffer_size: int = 1024 * 16
    backend_dequeue_buffer_size: int = 1024 * 16
    backend_worker_cpu_affinity: int | None = None

    def __post_init__(self) -> None:
        for name in (
            "spsc_queue_size",
            "backend_format_buffer_size",
            "backend_dequeue_buffer_size",
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        affinity = self.backend_worker_cpu_affinity
        if affinity is not None and (
            not isinstance(affinity, int) or isinstance(affinity, bool) or affinity < 0
        ):
            raise ValueError(
                f"backend_worker_cpu_affinity must be None or a non-negative "
                f"integer, got {affinity!r}"
            )

    def affinity_enabled(self) -> bool:
        """Return True if the backend worker is to be pinned to a CPU core."""
        return self.backend_worker_cpu_affinity is not None


FAST_OPTIONS = FemtologOptions(
    spsc_queue_size=1024 * 1024 * 4,
    backend_format_buffer_size=1024 * 64,
    backend_dequeue_buffer_size=1024 * 64,
    backend_worker_cpu_affinity=5,
)

MEMORY_SAVING_OPTIONS = FemtologOptions(
    spsc_queue_size=1024 * 4,
    backend_format_buffer_size=512,
    backend_dequeue_buffer_size=512,
    backend_worker_cpu_affinity=None,
)