"""
Properties ORM models (``rental_modules.properties.orm``).

``UnitModel`` is the root of the parent-link graph: leases, invoices, tours,
applications and offers all point at a unit.  ``ContactModel`` is a renter
of record.
"""

from datetime import date

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import AuditedRecord
from rental_modules.properties.models import UnitStatus


class UnitModel(AuditedRecord):
    """A rentable unit (house, apartment, suite)."""

    __tablename__ = "units"

    address: Mapped[str] = mapped_column(String(300), nullable=False)
    unit_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), default=UnitStatus.AVAILABLE.value, nullable=False
    )
    next_routine_inspection_due_on: Mapped[date | None] = mapped_column(
        nullable=True
    )

    @property
    def display_address(self) -> str:
        if self.unit_number:
            return f"{self.address} #{self.unit_number}"
        return self.address

    def __repr__(self) -> str:
        return f"<Unit {self.display_address} ({self.status})>"


class ContactModel(AuditedRecord):
    """A renter of record."""

    __tablename__ = "contacts"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
