"""
Billing Service -- invoices and payments through the entity store.

Thin glue over ``EntityStore``: validates against the pure rules in
``billing.models`` and the ``INVOICE_WORKFLOW`` status machine, then
writes.  Flushes only; the caller owns the transaction.

Usage:
    service = BillingService(session, stores)
    invoice = service.create_invoice(ctx, InvoiceModel(lease_id=..., ...))
    service.record_payment(ctx, invoice.id, Decimal("500.00"), paid_on)
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from rental_kernel.domain.context import CallerContext
from rental_kernel.exceptions import (
    InvoiceCancelledError,
    PaymentExceedsBalanceError,
    RecordNotFoundError,
    ValidationFailedError,
)
from rental_kernel.logging_config import get_logger
from rental_kernel.services.entity_store import StoreFactory
from rental_kernel.services.transition_log import TransitionLog
from rental_modules.billing.models import (
    InvoiceStatus,
    append_note,
    derive_invoice_status,
    to_money,
)
from rental_modules.billing.orm import InvoiceModel, PaymentModel
from rental_modules.billing.workflows import INVOICE_WORKFLOW

logger = get_logger("modules.billing.service")


class BillingService:
    """Invoice and payment operations for one tenant-scoped caller."""

    def __init__(self, session: Session, stores: StoreFactory):
        self._invoices = stores.for_model(session, InvoiceModel)
        self._payments = stores.for_model(session, PaymentModel)
        self._transitions = TransitionLog(session, stores)

    def create_invoice(self, ctx: CallerContext, invoice: InvoiceModel) -> InvoiceModel:
        if invoice.amount is None or Decimal(invoice.amount) <= 0:
            raise ValidationFailedError("Invoice amount must be positive")
        invoice.amount = to_money(invoice.amount)
        invoice.amount_paid = Decimal("0")
        invoice.status = InvoiceStatus.PENDING.value
        return self._invoices.create(ctx, invoice)

    def get_invoice(self, ctx: CallerContext, invoice_id: UUID) -> InvoiceModel:
        invoice = self._invoices.get_by_id(ctx, invoice_id)
        if invoice is None:
            raise RecordNotFoundError("Invoice", str(invoice_id))
        return invoice

    def record_payment(
        self,
        ctx: CallerContext,
        invoice_id: UUID,
        amount: Decimal,
        paid_on: date,
        method: str = "check",
        reference: str | None = None,
    ) -> PaymentModel:
        """Apply a payment and re-derive the invoice status.

        Raises:
            RecordNotFoundError: invoice absent or outside the tenant.
            InvoiceCancelledError: invoice is cancelled.
            PaymentExceedsBalanceError: payment larger than the balance due.
        """
        invoice = self.get_invoice(ctx, invoice_id)
        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise InvoiceCancelledError(str(invoice_id))

        amount = to_money(amount)
        if amount <= 0:
            raise ValidationFailedError("Payment amount must be positive")
        if amount > invoice.balance_due:
            raise PaymentExceedsBalanceError(
                str(invoice_id), str(amount), str(to_money(invoice.balance_due)),
            )

        payment = self._payments.create(
            ctx,
            PaymentModel(
                invoice_id=invoice.id,
                lease_id=invoice.lease_id,
                amount=amount,
                paid_on=paid_on,
                method=method,
                reference=reference,
            ),
        )

        previous = invoice.status
        invoice.amount_paid = Decimal(invoice.amount_paid or 0) + amount
        new_status = derive_invoice_status(
            previous, invoice.amount, invoice.amount_paid, invoice.due_on, paid_on,
        )
        invoice.status = new_status.value
        if new_status is InvoiceStatus.PAID:
            invoice.paid_on = paid_on
        self._invoices.update(ctx, invoice)

        if new_status.value != previous:
            self._transitions.record(
                ctx, "Invoice", invoice.id, previous, new_status, "record_payment",
            )

        logger.info(
            "payment_recorded",
            extra={
                "invoice_id": str(invoice.id),
                "payment_id": str(payment.id),
                "amount": str(amount),
                "status": invoice.status,
            },
        )
        return payment

    def cancel_invoice(
        self, ctx: CallerContext, invoice_id: UUID, reason: str,
    ) -> InvoiceModel:
        invoice = self.get_invoice(ctx, invoice_id)
        previous = invoice.status
        if not INVOICE_WORKFLOW.allows(previous, InvoiceStatus.CANCELLED):
            raise ValidationFailedError(
                f"Invoice {invoice_id} cannot be cancelled from status {previous}"
            )
        invoice.status = InvoiceStatus.CANCELLED.value
        invoice.notes = append_note(invoice.notes, f"Cancelled: {reason}")
        self._invoices.update(ctx, invoice)
        self._transitions.record(
            ctx, "Invoice", invoice.id, previous, InvoiceStatus.CANCELLED,
            "cancel", reason,
        )
        return invoice
