"""
Billing ORM models (``rental_modules.billing.orm``).

Responsibility
--------------
SQLAlchemy tables for invoices and the payments applied to them.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``rental_kernel.db.base``
and sibling ``models.py``.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import AuditedRecord
from rental_modules.billing.models import InvoiceStatus


class InvoiceModel(AuditedRecord):
    """
    ORM model for invoices.

    Guarantees:
        - ``amount`` includes any applied late fee.
        - ``late_fee_applied`` / ``reminder_sent`` are idempotency flags,
          each paired with the timestamp it was set.
    """

    __tablename__ = "invoices"

    __table_args__ = (
        Index("idx_invoices_tenant_status_due", "tenant_id", "status", "due_on"),
        Index("idx_invoices_lease_id", "lease_id"),
    )

    unit_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("units.id"), nullable=True
    )
    lease_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("leases.id"), nullable=True
    )
    contact_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("contacts.id"), nullable=True
    )
    invoice_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    invoiced_on: Mapped[date | None] = mapped_column(nullable=True)
    due_on: Mapped[date] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    status: Mapped[str] = mapped_column(
        String(50), default=InvoiceStatus.PENDING.value, nullable=False
    )
    paid_on: Mapped[date | None] = mapped_column(nullable=True)
    late_fee_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    late_fee_applied: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    late_fee_applied_on: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    reminder_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reminder_sent_on: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def balance_due(self) -> Decimal:
        return Decimal(self.amount) - Decimal(self.amount_paid or 0)

    def __repr__(self) -> str:
        return f"<Invoice {self.invoice_number or self.id} {self.status} {self.amount}>"


class PaymentModel(AuditedRecord):
    """A payment received against one invoice."""

    __tablename__ = "payments"

    __table_args__ = (
        Index("idx_payments_tenant_paid_on", "tenant_id", "paid_on"),
        Index("idx_payments_invoice_id", "invoice_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoices.id"), nullable=False
    )
    lease_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("leases.id"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    paid_on: Mapped[date] = mapped_column(nullable=False)
    method: Mapped[str] = mapped_column(String(50), default="check", nullable=False)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
