"""Clock abstractions supplying timezone-aware UTC timestamps to the engine."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Protocol implemented by engine clocks."""

    def now_utc(self) -> datetime:
        """Return the current UTC time as an aware datetime."""


class SystemClock:
    """Wall-clock time."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class SteppedClock:
    """Deterministic clock used for tests.

    Time advances only when :meth:`advance` is called.
    """

    def __init__(self, start: datetime | None = None) -> None:
        start = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        self._current = ensure_utc(start)
        self._lock = Lock()

    def now_utc(self) -> datetime:
        with self._lock:
            return self._current

    def advance(self, delta: timedelta | float) -> datetime:
        """Advance by a timedelta or a number of seconds (must be non-negative)."""
        if not isinstance(delta, timedelta):
            delta = timedelta(seconds=delta)
        if delta < timedelta(0):
            raise ValueError("delta must be non-negative")
        with self._lock:
            self._current += delta
            return self._current


def ensure_utc(dt: datetime) -> datetime:
    """Read naive datetimes as UTC (SQLite drops tzinfo on round-trip)."""
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


default_clock: Clock = SystemClock()
