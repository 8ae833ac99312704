"""
Prospect pipeline states (``rental_modules.prospects.models``).

Pure enums and status groupings; ZERO I/O.
"""

from datetime import datetime, timedelta
from enum import Enum


class ProspectStatus(str, Enum):
    """Where a prospective renter stands in the leasing pipeline."""

    LEAD = "lead"
    TOUR_SCHEDULED = "tour_scheduled"
    APPLIED = "applied"
    SCREENING = "screening"
    APPROVED = "approved"
    DENIED = "denied"
    WITHDRAWN = "withdrawn"
    LEASE_OFFERED = "lease_offered"
    LEASE_DECLINED = "lease_declined"
    CONVERTED = "converted"


class ApplicationStatus(str, Enum):
    """Rental application lifecycle states."""

    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    SCREENING = "screening"
    APPROVED = "approved"
    DENIED = "denied"
    EXPIRED = "expired"
    WITHDRAWN = "withdrawn"
    LEASE_OFFERED = "lease_offered"
    LEASE_ACCEPTED = "lease_accepted"
    LEASE_DECLINED = "lease_declined"


class TourStatus(str, Enum):
    """Property tour states."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Applications still awaiting a decision; these lapse at ``expires_on``.
EXPIRABLE_APPLICATION_STATUSES = frozenset({
    ApplicationStatus.SUBMITTED.value,
    ApplicationStatus.UNDER_REVIEW.value,
    ApplicationStatus.SCREENING.value,
})

# Applications that keep a unit on hold.
UNIT_HOLDING_APPLICATION_STATUSES = frozenset({
    ApplicationStatus.SUBMITTED.value,
    ApplicationStatus.UNDER_REVIEW.value,
    ApplicationStatus.SCREENING.value,
    ApplicationStatus.APPROVED.value,
    ApplicationStatus.LEASE_OFFERED.value,
})


def no_show_cutoff(as_of: datetime, grace_period_hours: int) -> datetime:
    """Scheduled tours starting before this instant count as no-shows."""
    return as_of - timedelta(hours=grace_period_hours)
