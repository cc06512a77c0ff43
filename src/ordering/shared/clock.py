"""Clock port: the single source of "now" for coupon validity and history.

Production code reads time through :func:`get_clock`; tests swap in a
:class:`FixedClock` with :func:`set_clock` and restore with :func:`reset_clock`.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta


class Clock(ABC):
    """Abstract time source."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current timezone-aware UTC datetime."""
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock(Clock):
    """Deterministic clock that only moves when told to."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, **delta) -> datetime:
        self.instant = self.instant + timedelta(**delta)
        return self.instant


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize to aware UTC. Naive values are taken to already be UTC, which is how SQL stores reload them."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


_clock_instance = None


def get_clock() -> Clock:
    """Return the configured clock (singleton), defaulting to the system clock."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


def set_clock(clock: Clock) -> None:
    global _clock_instance
    _clock_instance = clock


def reset_clock() -> None:
    """Reset the clock singleton (useful for testing)."""
    global _clock_instance
    _clock_instance = None


def now() -> datetime:
    return get_clock().now()
