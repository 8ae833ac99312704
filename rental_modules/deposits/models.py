"""
Deposit investment rules (``rental_modules.deposits.models``).

Pure enums and the proration math used when a year's pool earnings are
split among the deposits that sat in the pool.  ZERO I/O.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum


class PoolStatus(str, Enum):
    """Yearly investment pool states."""

    OPEN = "open"
    CALCULATED = "calculated"
    DISTRIBUTED = "distributed"
    CLOSED = "closed"


# Pools the dividend trigger leaves alone.
SETTLED_POOL_STATUSES = frozenset({
    PoolStatus.DISTRIBUTED.value,
    PoolStatus.CLOSED.value,
})


class DividendStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class DividendPaymentMethod(str, Enum):
    PENDING = "pending"
    LEASE_CREDIT = "lease_credit"
    CHECK = "check"


def months_in_pool(
    entry: date, exit_: date | None, year: int,
) -> int:
    """Calendar months (inclusive) a deposit spent in the pool during ``year``."""
    year_start, year_end = date(year, 1, 1), date(year, 12, 31)
    start = max(entry, year_start)
    end = min(exit_, year_end) if exit_ is not None else year_end
    if end < start:
        return 0
    return (end.year - start.year) * 12 + end.month - start.month + 1


def proration_factor(months: int) -> Decimal:
    """``min(months / 12, 1)`` to four places."""
    factor = Decimal(months) / Decimal(12)
    return min(factor, Decimal("1")).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)


def split_earnings(
    total_earnings: Decimal, organization_share_percentage: Decimal,
) -> tuple[Decimal, Decimal]:
    """Return ``(organization_share, tenant_share_total)`` in cents."""
    cent = Decimal("0.01")
    org = (Decimal(total_earnings) * Decimal(organization_share_percentage)).quantize(
        cent, rounding=ROUND_HALF_UP,
    )
    return org, (Decimal(total_earnings) - org).quantize(cent, rounding=ROUND_HALF_UP)
