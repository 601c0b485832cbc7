"""Per-thread trip context attached to every log record.

The meter logs from three places: user commands, the clock thread firing
waiting ticks, and device threads delivering samples. Each pushes its own
frame, so a record always carries the trip it belongs to.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

TRIP_FIELDS = ("trip_id", "trip_type", "phase", "sample_mode", "correlation_id")


class LogContext:
    """Stack of context frames, one stack per thread."""

    _local = threading.local()

    @classmethod
    def _frames(cls) -> list[dict[str, Any]]:
        frames = getattr(cls._local, "frames", None)
        if frames is None:
            frames = cls._local.frames = []
        return frames

    @classmethod
    def push(cls, **fields: Any) -> None:
        cls._frames().append(fields)

    @classmethod
    def pop(cls) -> None:
        frames = cls._frames()
        if frames:
            frames.pop()

    @classmethod
    def get(cls) -> dict[str, Any]:
        """Merged view; inner frames shadow outer ones."""
        merged: dict[str, Any] = {}
        for frame in cls._frames():
            merged.update(frame)
        return merged

    @classmethod
    def clear(cls) -> None:
        cls._local.frames = []


class ContextFilter(logging.Filter):
    """Copies the current thread's context onto records, without overriding ``extra``."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in LogContext.get().items():
            if key not in record.__dict__:
                setattr(record, key, value)
        return True


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    LogContext.push(**fields)
    try:
        yield
    finally:
        LogContext.pop()


@contextmanager
def log_trip_context(trip_id: str | None, **fields: Any) -> Iterator[None]:
    """Tag records with a trip. Outside a trip the id is ``-``.

    The correlation id follows the trip id unless given explicitly.
    """
    trip_id = trip_id or "-"
    fields.setdefault("correlation_id", trip_id)
    with log_context(trip_id=trip_id, **fields):
        yield
