"""
TenantPolicyModel -- one policy row per tenant.

The set of tenants known to the scheduler is exactly the set of tenants with
a live policy row (see ``TenantDirectory``).
"""

from decimal import Decimal

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import AuditedRecord
from rental_kernel.domain.policy import TenantPolicy

_DEFAULTS = TenantPolicy.__dataclass_fields__


def _default(name: str):
    return _DEFAULTS[name].default


class TenantPolicyModel(AuditedRecord):
    """ORM model for ``TenantPolicy``."""

    __tablename__ = "tenant_policies"

    __table_args__ = (
        UniqueConstraint("tenant_id", name="uq_tenant_policies_tenant_id"),
    )

    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    late_fee_enabled: Mapped[bool] = mapped_column(
        Boolean, default=_default("late_fee_enabled")
    )
    late_fee_auto_apply: Mapped[bool] = mapped_column(
        Boolean, default=_default("late_fee_auto_apply")
    )
    late_fee_grace_period_days: Mapped[int] = mapped_column(
        default=_default("late_fee_grace_period_days")
    )
    late_fee_percentage: Mapped[Decimal] = mapped_column(
        default=_default("late_fee_percentage")
    )
    max_late_fee_amount: Mapped[Decimal] = mapped_column(
        default=_default("max_late_fee_amount")
    )
    payment_reminder_enabled: Mapped[bool] = mapped_column(
        Boolean, default=_default("payment_reminder_enabled")
    )
    payment_reminder_days_before: Mapped[int] = mapped_column(
        default=_default("payment_reminder_days_before")
    )
    tour_no_show_grace_period_hours: Mapped[int] = mapped_column(
        default=_default("tour_no_show_grace_period_hours")
    )
    application_expiration_days: Mapped[int] = mapped_column(
        default=_default("application_expiration_days")
    )
    security_deposit_investment_enabled: Mapped[bool] = mapped_column(
        Boolean, default=_default("security_deposit_investment_enabled")
    )
    organization_share_percentage: Mapped[Decimal] = mapped_column(
        default=_default("organization_share_percentage")
    )
    allow_tenant_dividend_choice: Mapped[bool] = mapped_column(
        Boolean, default=_default("allow_tenant_dividend_choice")
    )
    default_dividend_payment_method: Mapped[str] = mapped_column(
        String(50), default=_default("default_dividend_payment_method")
    )

    def to_dto(self) -> TenantPolicy:
        """Convert ORM model to frozen dataclass."""
        return TenantPolicy(
            tenant_id=self.tenant_id,
            late_fee_enabled=self.late_fee_enabled,
            late_fee_auto_apply=self.late_fee_auto_apply,
            late_fee_grace_period_days=self.late_fee_grace_period_days,
            late_fee_percentage=Decimal(self.late_fee_percentage),
            max_late_fee_amount=Decimal(self.max_late_fee_amount),
            payment_reminder_enabled=self.payment_reminder_enabled,
            payment_reminder_days_before=self.payment_reminder_days_before,
            tour_no_show_grace_period_hours=self.tour_no_show_grace_period_hours,
            application_expiration_days=self.application_expiration_days,
            security_deposit_investment_enabled=self.security_deposit_investment_enabled,
            organization_share_percentage=Decimal(self.organization_share_percentage),
            allow_tenant_dividend_choice=self.allow_tenant_dividend_choice,
            default_dividend_payment_method=self.default_dividend_payment_method,
        )

    @classmethod
    def from_dto(cls, dto: TenantPolicy) -> "TenantPolicyModel":
        """Create ORM model from frozen dataclass (audit stamps left to the store)."""
        return cls(
            tenant_id=dto.tenant_id,
            late_fee_enabled=dto.late_fee_enabled,
            late_fee_auto_apply=dto.late_fee_auto_apply,
            late_fee_grace_period_days=dto.late_fee_grace_period_days,
            late_fee_percentage=dto.late_fee_percentage,
            max_late_fee_amount=dto.max_late_fee_amount,
            payment_reminder_enabled=dto.payment_reminder_enabled,
            payment_reminder_days_before=dto.payment_reminder_days_before,
            tour_no_show_grace_period_hours=dto.tour_no_show_grace_period_hours,
            application_expiration_days=dto.application_expiration_days,
            security_deposit_investment_enabled=dto.security_deposit_investment_enabled,
            organization_share_percentage=dto.organization_share_percentage,
            allow_tenant_dividend_choice=dto.allow_tenant_dividend_choice,
            default_dividend_payment_method=dto.default_dividend_payment_method,
        )

    def __repr__(self) -> str:
        return f"<TenantPolicy {self.tenant_id}>"
