"""Unit availability states and routine inspection dates."""

from enum import Enum


class UnitStatus(str, Enum):
    """Marketing / occupancy state of a rentable unit."""

    AVAILABLE = "available"
    APPLICATION_PENDING = "application_pending"
    LEASE_PENDING = "lease_pending"
    OCCUPIED = "occupied"
    UNDER_RENOVATION = "under_renovation"
    OFF_MARKET = "off_market"


# Unit states held only while an application or offer is in flight.
PIPELINE_HOLD_STATES = frozenset({
    UnitStatus.APPLICATION_PENDING.value,
    UnitStatus.LEASE_PENDING.value,
})

# Horizon of the "routine inspection due soon" digest.
INSPECTION_DUE_SOON_DAYS = 30

