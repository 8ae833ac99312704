"""
Billing domain rules (``rental_modules.billing.models``).

Responsibility
--------------
Invoice status enum and the pure calculations the billing rule modules and
``BillingService`` share: late-fee amount, late-fee eligibility, the
reminder window, and status derivation from amounts and dates.

Architecture position
---------------------
**Modules layer** -- pure functions, ZERO I/O.

Invariants enforced
-------------------
* Money is ``Decimal`` rounded to cents with ROUND_HALF_UP.
* ``derive_invoice_status`` never moves a Cancelled invoice.
* The late fee never exceeds the configured cap.
"""

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

CENT = Decimal("0.01")


class InvoiceStatus(str, Enum):
    """Invoice lifecycle states."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


def to_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_late_fee(
    amount: Decimal, percentage: Decimal, cap: Decimal,
) -> Decimal:
    """``min(amount * percentage, cap)`` in cents; never negative."""
    fee = to_money(Decimal(amount) * Decimal(percentage))
    return max(min(fee, to_money(cap)), Decimal("0.00"))


def late_fee_due(due_on: date, today: date, grace_period_days: int) -> bool:
    """True once the invoice is more than the grace period past due."""
    return due_on < today - timedelta(days=grace_period_days)


def in_reminder_window(due_on: date, today: date, days_before: int) -> bool:
    return today <= due_on <= today + timedelta(days=days_before)


def derive_invoice_status(
    current: InvoiceStatus | str,
    amount: Decimal,
    amount_paid: Decimal,
    due_on: date,
    today: date,
) -> InvoiceStatus:
    """Status implied by what is owed, what is paid and the due date.

    Cancelled is sticky and returned unchanged.
    """
    current = InvoiceStatus(current)
    if current is InvoiceStatus.CANCELLED:
        return current
    paid = Decimal(amount_paid or 0)
    if paid >= Decimal(amount) and Decimal(amount) > 0:
        return InvoiceStatus.PAID
    if due_on < today:
        return InvoiceStatus.OVERDUE
    if paid > 0:
        return InvoiceStatus.PARTIAL
    return InvoiceStatus.PENDING


def late_fee_note(fee: Decimal, applied_on: date) -> str:
    return f"Late fee of ${to_money(fee):,.2f} applied on {applied_on.isoformat()}"


def append_note(existing: str | None, note: str) -> str:
    if existing:
        return f"{existing}\n{note}"
    return note
