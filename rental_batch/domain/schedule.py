"""
Pure schedule evaluation functions.

Contract:
    ``should_fire(schedule, as_of)`` and ``compute_next_run()`` are PURE --
    no I/O, no side effects.  The scheduler passes in the current local
    wall-clock time read from its injected Clock.

Architecture: rental_batch/domain.  ZERO I/O.

A trigger that was due while the process was busy or asleep fires once on
the next evaluation; missed occurrences are not replayed.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from rental_batch.domain.types import TriggerSchedule


# =============================================================================
# CronSpec (lightweight cron parser)
# =============================================================================


@dataclass(frozen=True)
class CronSpec:
    """Parsed cron expression (minute hour day_of_month month day_of_week).

    Each field is a frozenset of valid integer values.
    Supports: *, values, lists, ranges (1-5), steps (*/5, 1-10/2).
    """

    minutes: frozenset[int] = field(default_factory=lambda: frozenset(range(60)))
    hours: frozenset[int] = field(default_factory=lambda: frozenset(range(24)))
    days_of_month: frozenset[int] = field(default_factory=lambda: frozenset(range(1, 32)))
    months: frozenset[int] = field(default_factory=lambda: frozenset(range(1, 13)))
    days_of_week: frozenset[int] = field(default_factory=lambda: frozenset(range(7)))


def _parse_int(text: str, min_val: int, max_val: int) -> int:
    value = int(text)
    if value < min_val or value > max_val:
        raise ValueError(f"Value {value} outside range [{min_val}, {max_val}]")
    return value


def _parse_cron_field(field_str: str, min_val: int, max_val: int) -> frozenset[int]:
    """Parse a single cron field into a frozenset of valid values.

    Raises:
        ValueError: If the field is syntactically invalid or values out of range.
    """
    values: set[int] = set()

    for part in field_str.split(","):
        part = part.strip()
        if not part:
            raise ValueError(f"Empty cron field element in '{field_str}'")

        step = 1
        stepped = "/" in part
        if stepped:
            part, step_str = part.split("/", 1)
            step = int(step_str)
            if step <= 0:
                raise ValueError(f"Step must be positive: {step}")

        if part == "*":
            start, end = min_val, max_val
        elif "-" in part:
            s, e = part.split("-", 1)
            start, end = _parse_int(s, min_val, max_val), _parse_int(e, min_val, max_val)
            if start > end:
                raise ValueError(f"Range start > end: {start}-{end}")
        else:
            start = _parse_int(part, min_val, max_val)
            # "N/S" means "from N to the end, every S"
            end = max_val if stepped else start

        values.update(range(start, end + 1, step))

    return frozenset(values)


def parse_cron(expression: str) -> CronSpec:
    """Parse a 5-field cron expression into a CronSpec.

    Format: ``minute hour day_of_month month day_of_week``

    Raises:
        ValueError: If expression is malformed.
    """
    parts = expression.strip().split()
    if len(parts) != 5:
        raise ValueError(
            f"Cron expression must have 5 fields, got {len(parts)}: '{expression}'"
        )

    return CronSpec(
        minutes=_parse_cron_field(parts[0], 0, 59),
        hours=_parse_cron_field(parts[1], 0, 23),
        days_of_month=_parse_cron_field(parts[2], 1, 31),
        months=_parse_cron_field(parts[3], 1, 12),
        days_of_week=_parse_cron_field(parts[4], 0, 6),
    )


def matches_cron(spec: CronSpec, dt: datetime) -> bool:
    """Check if a datetime matches a cron spec.

    Cron convention: 0=Sunday, 1=Monday, ..., 6=Saturday.
    Python datetime.weekday(): 0=Monday, ..., 6=Sunday.
    """
    cron_dow = (dt.weekday() + 1) % 7
    return (
        dt.minute in spec.minutes
        and dt.hour in spec.hours
        and dt.day in spec.days_of_month
        and dt.month in spec.months
        and cron_dow in spec.days_of_week
    )


# =============================================================================
# Schedule evaluation (pure)
# =============================================================================


def should_fire(schedule: TriggerSchedule, as_of: datetime) -> bool:
    """Determine if a trigger is due at ``as_of``.

    Rules:
        - Inactive triggers never fire.
        - A trigger with no ``next_run_at`` has not been armed yet.
        - Otherwise fires once ``as_of >= next_run_at``.
    """
    if not schedule.is_active:
        return False
    if schedule.next_run_at is None:
        return False
    return as_of >= schedule.next_run_at


def compute_next_run(cron_expression: str, after: datetime) -> datetime:
    """First cron match strictly after ``after`` (same tzinfo as ``after``).

    Raises:
        ValueError: malformed expression, or no match within 366 days.
    """
    return _next_cron_match(parse_cron(cron_expression), after)


def arm(schedule: TriggerSchedule, now: datetime) -> TriggerSchedule:
    """Schedule with ``next_run_at`` set to the first occurrence after ``now``."""
    return replace(
        schedule, next_run_at=compute_next_run(schedule.cron_expression, now),
    )


def _next_cron_match(spec: CronSpec, after: datetime) -> datetime:
    """Find the next datetime after ``after`` that matches the cron spec.

    Scans forward minute by minute, skipping whole hours whose hour field
    cannot match, for at most 366 days.

    Raises:
        ValueError: If no match found within 366 days.
    """
    candidate = after.replace(second=0, microsecond=0) + timedelta(minutes=1)
    limit = after + timedelta(days=366)

    while candidate <= limit:
        if candidate.hour not in spec.hours:
            candidate = candidate.replace(minute=0) + timedelta(hours=1)
            continue
        if matches_cron(spec, candidate):
            return candidate
        candidate += timedelta(minutes=1)

    raise ValueError(
        f"No cron match found within 366 days after {after}"
    )
