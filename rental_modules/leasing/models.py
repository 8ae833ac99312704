"""
Leasing domain rules (``rental_modules.leasing.models``).

Responsibility
--------------
Lease and lease-offer status enums, the renewal ladder definition and the
pure predicates the leasing rule modules evaluate.

Architecture position
---------------------
**Modules layer** -- pure data and functions, ZERO I/O.

Invariants enforced
-------------------
* Renewal steps fire strictly in ladder order: the 60-day reminder needs
  the 90-day notice, the 30-day notice needs a pending renewal.
* Each step has its own idempotency marker and fires at most once.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum


class LeaseStatus(str, Enum):
    """Lease lifecycle states."""

    PENDING = "pending"
    ACTIVE = "active"
    RENEWED = "renewed"
    MONTH_TO_MONTH = "month_to_month"
    NOTICE_GIVEN = "notice_given"
    TERMINATED = "terminated"
    EXPIRED = "expired"


# Leases that occupy the unit for overlap checks.
OCCUPYING_STATUSES = frozenset({LeaseStatus.ACTIVE.value, LeaseStatus.PENDING.value})

# Leases the nightly expiry pass may close out once the end date passes.
EXPIRABLE_STATUSES = frozenset({
    LeaseStatus.ACTIVE.value,
    LeaseStatus.NOTICE_GIVEN.value,
})


class RenewalStatus(str, Enum):
    """Where a lease stands in the renewal conversation."""

    PENDING = "pending"
    OFFERED = "offered"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class LeaseOfferStatus(str, Enum):
    """Lease offer lifecycle states."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"
    WITHDRAWN = "withdrawn"


class RenewalStage(str, Enum):
    FIRST_NOTICE = "first_notice"
    REMINDER = "reminder"
    FINAL_NOTICE = "final_notice"


@dataclass(frozen=True)
class RenewalWindow:
    """One rung of the renewal ladder."""

    stage: RenewalStage
    days_out: int
    title: str

    def bounds(self, today: date, tolerance_days: int) -> tuple[date, date]:
        """Inclusive end-date range that falls inside this window."""
        center = today + timedelta(days=self.days_out)
        spread = timedelta(days=tolerance_days)
        return center - spread, center + spread


RENEWAL_LADDER: tuple[RenewalWindow, ...] = (
    RenewalWindow(RenewalStage.FIRST_NOTICE, 90, "90-Day Lease Renewal Notification"),
    RenewalWindow(RenewalStage.REMINDER, 60, "60-Day Lease Renewal Reminder"),
    RenewalWindow(RenewalStage.FINAL_NOTICE, 30, "30-Day Lease Renewal Final Notice"),
)


def renewal_step_due(
    stage: RenewalStage,
    *,
    notice_sent: bool,
    reminder_sent_on: datetime | None,
    final_notice_sent_on: datetime | None,
    renewal_status: str | None,
) -> bool:
    """Whether ``stage`` should fire for a lease already inside its window."""
    if stage is RenewalStage.FIRST_NOTICE:
        return not notice_sent
    if stage is RenewalStage.REMINDER:
        return notice_sent and reminder_sent_on is None
    return (
        renewal_status == RenewalStatus.PENDING.value
        and final_notice_sent_on is None
    )


def ranges_overlap(
    a_start: date, a_end: date, b_start: date, b_end: date,
) -> bool:
    """Inclusive date-range overlap."""
    return a_start <= b_end and b_start <= a_end
