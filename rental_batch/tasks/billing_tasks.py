"""
Rule modules: billing (invoice aging and late fees, payment reminders).
"""

from __future__ import annotations

from decimal import Decimal

from rental_kernel.logging_config import get_logger
from rental_kernel.services.notifications import RecipientSet, dispatch_safely
from rental_kernel.services.transition_log import TransitionLog
from rental_modules.billing.models import (
    InvoiceStatus,
    append_note,
    compute_late_fee,
    in_reminder_window,
    late_fee_due,
    late_fee_note,
    to_money,
)
from rental_modules.billing.orm import InvoiceModel

from rental_batch.domain.types import ModuleOutcome
from rental_batch.tasks.base import TenantRun

logger = get_logger("batch.tasks.billing")


class InvoiceAgingModule:
    """Marks past-due invoices Overdue and applies the one-time late fee.

    Only Pending and Overdue invoices are selected, so Paid, Partial and
    Cancelled invoices are never touched.  ``late_fee_applied`` makes the
    fee idempotent across runs.
    """

    @property
    def module_key(self) -> str:
        return "billing.invoice_aging"

    @property
    def description(self) -> str:
        return "Mark past-due invoices overdue and apply late fees"

    def run(self, run: TenantRun) -> ModuleOutcome:
        policy = run.policy
        invoices = run.stores.for_model(run.session, InvoiceModel)
        transitions = TransitionLog(run.session, run.stores)
        apply_fees = policy.late_fee_enabled and policy.late_fee_auto_apply

        candidates = invoices.get_all(
            run.ctx,
            InvoiceModel.status.in_(
                (InvoiceStatus.PENDING.value, InvoiceStatus.OVERDUE.value)
            ),
            InvoiceModel.due_on < run.today,
            order_by=InvoiceModel.due_on,
        )

        marked_overdue = 0
        fees_applied = 0
        for invoice in candidates:
            previous = invoice.status
            fee: Decimal | None = None

            if previous == InvoiceStatus.PENDING.value:
                invoice.status = InvoiceStatus.OVERDUE.value

            if (
                apply_fees
                and not invoice.late_fee_applied
                and late_fee_due(
                    invoice.due_on, run.today, policy.late_fee_grace_period_days,
                )
            ):
                fee = compute_late_fee(
                    invoice.amount,
                    policy.late_fee_percentage,
                    policy.max_late_fee_amount,
                )
                invoice.late_fee_amount = fee
                invoice.amount = to_money(invoice.amount) + fee
                invoice.late_fee_applied = True
                invoice.late_fee_applied_on = run.as_of
                invoice.status = InvoiceStatus.OVERDUE.value
                invoice.notes = append_note(
                    invoice.notes, late_fee_note(fee, run.today),
                )

            if previous == invoice.status and fee is None:
                continue

            invoices.update(run.ctx, invoice)
            if previous != invoice.status:
                marked_overdue += 1
                transitions.record(
                    run.ctx, "Invoice", invoice.id, previous,
                    InvoiceStatus.OVERDUE, "mark_overdue",
                )
            if fee is not None:
                fees_applied += 1
                transitions.record(
                    run.ctx, "Invoice", invoice.id, InvoiceStatus.OVERDUE,
                    InvoiceStatus.OVERDUE, "apply_late_fee",
                    late_fee_note(fee, run.today),
                )
                logger.info(
                    "late_fee_applied",
                    extra={
                        "invoice_id": str(invoice.id),
                        "invoice_number": invoice.invoice_number,
                        "late_fee": str(fee),
                    },
                )

        if marked_overdue or fees_applied:
            logger.info(
                "overdue_invoices_processed",
                extra={
                    "candidates": len(candidates),
                    "marked_overdue": marked_overdue,
                    "late_fees_applied": fees_applied,
                },
            )
        return ModuleOutcome(
            changed=marked_overdue + fees_applied,
            details={
                "marked_overdue": marked_overdue,
                "late_fees_applied": fees_applied,
            },
        )


class PaymentReminderModule:
    """Flags Pending invoices due within the reminder lead time, once each."""

    @property
    def module_key(self) -> str:
        return "billing.payment_reminders"

    @property
    def description(self) -> str:
        return "Send reminders for invoices coming due"

    def run(self, run: TenantRun) -> ModuleOutcome:
        policy = run.policy
        if not policy.payment_reminder_enabled:
            return ModuleOutcome.skipped("payment reminders disabled")

        invoices = run.stores.for_model(run.session, InvoiceModel)
        candidates = invoices.get_all(
            run.ctx,
            InvoiceModel.status == InvoiceStatus.PENDING.value,
            InvoiceModel.reminder_sent.is_(False),
            InvoiceModel.due_on >= run.today,
            order_by=InvoiceModel.due_on,
        )

        reminded = 0
        for invoice in candidates:
            if not in_reminder_window(
                invoice.due_on, run.today, policy.payment_reminder_days_before,
            ):
                continue
            invoice.reminder_sent = True
            invoice.reminder_sent_on = run.as_of
            invoices.update(run.ctx, invoice)
            reminded += 1
            dispatch_safely(
                run.notifier,
                run.tenant_id,
                RecipientSet.all_members(),
                "Payment Reminder",
                f"Invoice {invoice.invoice_number or invoice.id} for "
                f"${to_money(invoice.balance_due):,.2f} is due on "
                f"{invoice.due_on.isoformat()}",
            )

        if reminded:
            logger.info("payment_reminders_sent", extra={"count": reminded})
        return ModuleOutcome(changed=reminded)
