"""
Prospects ORM models (``rental_modules.prospects.orm``).

Responsibility
--------------
SQLAlchemy tables for prospects, their tours and their rental
applications.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import AuditedRecord
from rental_modules.prospects.models import (
    ApplicationStatus,
    ProspectStatus,
    TourStatus,
)


class ProspectModel(AuditedRecord):
    """A prospective renter."""

    __tablename__ = "prospects"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), default=ProspectStatus.LEAD.value, nullable=False
    )
    interested_unit_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("units.id"), nullable=True
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class TourModel(AuditedRecord):
    """A scheduled showing of a unit to a prospect."""

    __tablename__ = "tours"

    __table_args__ = (
        Index("idx_tours_tenant_status_scheduled", "tenant_id", "status", "scheduled_on"),
        Index("idx_tours_prospect_id", "prospect_id"),
    )

    unit_id: Mapped[UUID] = mapped_column(ForeignKey("units.id"), nullable=False)
    prospect_id: Mapped[UUID] = mapped_column(
        ForeignKey("prospects.id"), nullable=False
    )
    scheduled_on: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(default=30)
    status: Mapped[str] = mapped_column(
        String(50), default=TourStatus.SCHEDULED.value, nullable=False
    )
    outcome_notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class RentalApplicationModel(AuditedRecord):
    """A prospect's application to rent a unit."""

    __tablename__ = "rental_applications"

    __table_args__ = (
        Index("idx_rental_applications_tenant_status", "tenant_id", "status"),
    )

    unit_id: Mapped[UUID] = mapped_column(ForeignKey("units.id"), nullable=False)
    prospect_id: Mapped[UUID] = mapped_column(
        ForeignKey("prospects.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(50), default=ApplicationStatus.SUBMITTED.value, nullable=False
    )
    applied_on: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    expires_on: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    decided_on: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    decision_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
