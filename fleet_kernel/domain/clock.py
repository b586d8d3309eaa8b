"""
Injectable time source for audit timestamps.

Imports stamp every entry they write with one wall-clock UTC instant. They
take that instant from a Clock passed in by the caller, never from
``datetime.now()``, so a test can pin it.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of the current time. ``now_utc()`` is always timezone-aware UTC."""

    @abstractmethod
    def now_utc(self) -> datetime:
        ...


class SystemClock(Clock):
    """Wall-clock time."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock frozen at ``fixed_time`` until ``advance()`` moves it.

    A naive ``fixed_time`` is taken to be UTC.
    """

    def __init__(self, fixed_time: datetime | None = None):
        fixed_time = fixed_time or DEFAULT_TEST_TIME
        if fixed_time.tzinfo is None:
            fixed_time = fixed_time.replace(tzinfo=timezone.utc)
        self._current = fixed_time.astimezone(timezone.utc)

    def now_utc(self) -> datetime:
        return self._current

    def advance(self, seconds: float = 1) -> None:
        self._current += timedelta(seconds=seconds)
