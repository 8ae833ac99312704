"""Billing module: invoices, payments, late fees and reminders."""

from rental_modules.billing.models import (
    InvoiceStatus,
    compute_late_fee,
    derive_invoice_status,
)
from rental_modules.billing.workflows import INVOICE_WORKFLOW

__all__ = [
    "InvoiceStatus",
    "compute_late_fee",
    "derive_invoice_status",
    "INVOICE_WORKFLOW",
]
