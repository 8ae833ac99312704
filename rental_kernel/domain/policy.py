"""Per-tenant business policy, as seen by rule modules (read-only)."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class TenantPolicy:
    """
    Immutable snapshot of a tenant's policy row.

    Defaults are the values a freshly provisioned tenant receives.
    """

    tenant_id: UUID
    late_fee_enabled: bool = True
    late_fee_auto_apply: bool = True
    late_fee_grace_period_days: int = 3
    late_fee_percentage: Decimal = Decimal("0.05")
    max_late_fee_amount: Decimal = Decimal("50.00")
    payment_reminder_enabled: bool = True
    payment_reminder_days_before: int = 3
    tour_no_show_grace_period_hours: int = 24
    application_expiration_days: int = 30
    security_deposit_investment_enabled: bool = True
    organization_share_percentage: Decimal = Decimal("0.20")
    allow_tenant_dividend_choice: bool = True
    default_dividend_payment_method: str = "lease_credit"

    def __post_init__(self) -> None:
        if self.late_fee_grace_period_days < 0:
            raise ValueError("late_fee_grace_period_days cannot be negative")
        if not Decimal("0") <= self.late_fee_percentage <= Decimal("1"):
            raise ValueError("late_fee_percentage must be between 0 and 1")
        if self.max_late_fee_amount < 0:
            raise ValueError("max_late_fee_amount cannot be negative")
        if self.payment_reminder_days_before < 0:
            raise ValueError("payment_reminder_days_before cannot be negative")
        if self.tour_no_show_grace_period_hours < 0:
            raise ValueError("tour_no_show_grace_period_hours cannot be negative")
        if not Decimal("0") <= self.organization_share_percentage <= Decimal("1"):
            raise ValueError("organization_share_percentage must be between 0 and 1")
