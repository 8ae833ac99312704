"""
Leasing configuration schema.

Controls the width of the renewal-ladder windows and the look-ahead used by
the upcoming-expiration report.
"""

from dataclasses import dataclass
from typing import Self

from rental_kernel.logging_config import get_logger

logger = get_logger("modules.leasing.config")


@dataclass
class LeasingConfig:
    """Configuration schema for the leasing module."""

    # A lease is inside the N-day window when its end date is within
    # N +/- tolerance days of today.
    renewal_window_tolerance_days: int = 5

    # Look-ahead for the hourly "leases ending soon" count
    upcoming_expiration_days: int = 30

    def __post_init__(self):
        if self.renewal_window_tolerance_days < 0:
            raise ValueError("renewal_window_tolerance_days cannot be negative")
        # Windows are 30 days apart; wider tolerance would let them overlap.
        if self.renewal_window_tolerance_days >= 15:
            raise ValueError("renewal_window_tolerance_days must be below 15")
        if self.upcoming_expiration_days <= 0:
            raise ValueError("upcoming_expiration_days must be positive")

        logger.debug(
            "leasing_config_initialized",
            extra={
                "renewal_window_tolerance_days": self.renewal_window_tolerance_days,
                "upcoming_expiration_days": self.upcoming_expiration_days,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()
