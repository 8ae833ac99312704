"""
Leasing ORM models (``rental_modules.leasing.orm``).

Responsibility
--------------
SQLAlchemy tables for leases and lease offers.

Architecture position
---------------------
**Modules layer** -- persistence.  ``LeaseOfferModel`` references the
prospects module's application and prospect tables.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import AuditedRecord
from rental_modules.leasing.models import LeaseOfferStatus, LeaseStatus


class LeaseModel(AuditedRecord):
    """
    ORM model for leases.

    Guarantees:
        - Three independent renewal markers: ``renewal_notice_sent`` (+ its
          timestamp) for 90 days, ``renewal_reminder_sent_on`` for 60 days,
          ``renewal_final_notice_sent_on`` for 30 days.
    """

    __tablename__ = "leases"

    __table_args__ = (
        Index("idx_leases_tenant_status_end", "tenant_id", "status", "end_date"),
        Index("idx_leases_unit_id", "unit_id"),
    )

    unit_id: Mapped[UUID] = mapped_column(ForeignKey("units.id"), nullable=False)
    contact_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("contacts.id"), nullable=True
    )
    start_date: Mapped[date] = mapped_column(nullable=False)
    end_date: Mapped[date] = mapped_column(nullable=False)
    monthly_rent: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(
        String(50), default=LeaseStatus.PENDING.value, nullable=False
    )
    renewal_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    renewal_notice_sent: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    renewal_notice_sent_on: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    renewal_reminder_sent_on: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    renewal_final_notice_sent_on: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Lease {self.id} {self.status} {self.start_date}..{self.end_date}>"


class LeaseOfferModel(AuditedRecord):
    """An offer of a lease made to an approved applicant."""

    __tablename__ = "lease_offers"

    __table_args__ = (
        Index("idx_lease_offers_tenant_status", "tenant_id", "status"),
    )

    unit_id: Mapped[UUID] = mapped_column(ForeignKey("units.id"), nullable=False)
    application_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("rental_applications.id"), nullable=True
    )
    prospect_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("prospects.id"), nullable=True
    )
    monthly_rent: Mapped[Decimal | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), default=LeaseOfferStatus.PENDING.value, nullable=False
    )
    offered_on: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    expires_on: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    responded_on: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    response_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
