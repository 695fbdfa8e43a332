"""Asynchronous logging with a background worker, byte ring-buffer queues and pluggable sinks."""

__version__ = "0.1.0"