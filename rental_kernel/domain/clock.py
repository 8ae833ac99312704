"""
Clock -- injectable time source.

Store stamps, rule-module cutoffs and scheduler fire times all come from a
``Clock`` passed in by the caller; nothing in the kernel, modules or batch
packages calls ``datetime.now()`` or ``date.today()`` directly.

``DeterministicClock`` accepts naive datetimes as well: SQLite drops tzinfo
on round-trip, so tests against it keep every timestamp naive.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone, tzinfo


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        - ``now()`` returns the current instant.
        - ``now_utc()`` returns the same instant normalized to UTC.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...

    def now_utc(self) -> datetime:
        """Get the current UTC time."""
        return self.now().astimezone(timezone.utc)


class SystemClock(Clock):
    """Production clock returning timezone-aware UTC system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    ``now()`` keeps returning the same value until ``advance()`` or
    ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = fixed_time or datetime(
            2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc
        )
        self._offset = timedelta(0)

    def now(self) -> datetime:
        return self._fixed_time + self._offset

    def now_utc(self) -> datetime:
        current = self.now()
        if current.tzinfo is None:
            return current
        return current.astimezone(timezone.utc)

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._fixed_time = time
        self._offset = timedelta(0)

    def advance(self, seconds: float = 0, **delta: float) -> None:
        """Advance the clock, e.g. ``advance(60)`` or ``advance(hours=5)``."""
        self._offset += timedelta(seconds=seconds, **delta)

    def tick(self) -> datetime:
        """Advance by 1 second and return new time."""
        self.advance(1)
        return self.now()


def local_now(clock: Clock, tz: tzinfo | None = None) -> datetime:
    """Current time of ``clock`` expressed in ``tz``.

    Naive clock values are taken to already be local wall-clock time.  When
    ``tz`` is None an aware value is converted to the host's local zone.
    """
    current = clock.now()
    if current.tzinfo is None:
        return current
    return current.astimezone(tz)


def local_today(clock: Clock, tz: tzinfo | None = None) -> date:
    """Calendar date of ``local_now``."""
    return local_now(clock, tz).date()


def wall_clock_now(clock: Clock, tz: tzinfo | None = None) -> datetime:
    """``local_now`` without tzinfo.

    Domain datetime columns (due times, expiries, decision and notice
    stamps) are naive local wall-clock values; every comparison against
    them and every value written to them goes through this frame.
    """
    return local_now(clock, tz).replace(tzinfo=None)
