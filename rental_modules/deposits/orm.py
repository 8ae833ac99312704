"""
Deposits ORM models (``rental_modules.deposits.orm``).

Responsibility
--------------
SQLAlchemy tables for security deposits, the yearly investment pool and the
dividends calculated from it.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import AuditedRecord
from rental_modules.deposits.models import DividendStatus, PoolStatus


class SecurityDepositModel(AuditedRecord):
    """A deposit held for a lease, optionally placed in the investment pool."""

    __tablename__ = "security_deposits"

    lease_id: Mapped[UUID] = mapped_column(ForeignKey("leases.id"), nullable=False)
    contact_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("contacts.id"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    received_on: Mapped[date] = mapped_column(nullable=False)
    in_investment_pool: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    pool_entry_date: Mapped[date | None] = mapped_column(nullable=True)
    pool_exit_date: Mapped[date | None] = mapped_column(nullable=True)


class InvestmentPoolModel(AuditedRecord):
    """One tenant's pooled deposit earnings for one calendar year."""

    __tablename__ = "investment_pools"

    __table_args__ = (
        UniqueConstraint("tenant_id", "year", name="uq_investment_pools_tenant_year"),
    )

    year: Mapped[int] = mapped_column(nullable=False)
    total_earnings: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    organization_share_percentage: Mapped[Decimal] = mapped_column(
        default=Decimal("0.20"), nullable=False
    )
    organization_share: Mapped[Decimal] = mapped_column(
        default=Decimal("0"), nullable=False
    )
    tenant_share_total: Mapped[Decimal] = mapped_column(
        default=Decimal("0"), nullable=False
    )
    active_lease_count: Mapped[int] = mapped_column(default=0)
    dividend_per_lease: Mapped[Decimal] = mapped_column(
        default=Decimal("0"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(50), default=PoolStatus.OPEN.value, nullable=False
    )
    dividends_calculated_on: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )


class DepositDividendModel(AuditedRecord):
    """A deposit's prorated share of one year's pool earnings."""

    __tablename__ = "deposit_dividends"

    __table_args__ = (
        UniqueConstraint(
            "security_deposit_id", "year", name="uq_deposit_dividends_deposit_year",
        ),
    )

    security_deposit_id: Mapped[UUID] = mapped_column(
        ForeignKey("security_deposits.id"), nullable=False
    )
    pool_id: Mapped[UUID] = mapped_column(
        ForeignKey("investment_pools.id"), nullable=False
    )
    lease_id: Mapped[UUID] = mapped_column(ForeignKey("leases.id"), nullable=False)
    contact_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("contacts.id"), nullable=True
    )
    year: Mapped[int] = mapped_column(nullable=False)
    base_dividend_amount: Mapped[Decimal] = mapped_column(nullable=False)
    proration_factor: Mapped[Decimal] = mapped_column(nullable=False)
    dividend_amount: Mapped[Decimal] = mapped_column(nullable=False)
    months_in_pool: Mapped[int] = mapped_column(nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(50), default=DividendStatus.PENDING.value, nullable=False
    )
