"""
Typed exception hierarchy for the rental kernel.

Every error carries a ``code`` class attribute (machine-readable) and its
context as instance attributes, so the JSON log formatter and callers can
use structured data instead of parsing messages.

    RentalKernelError (base)
    |
    +-- AccessError
    |   +-- UnauthenticatedError
    |   +-- ForbiddenError
    |
    +-- RecordNotFoundError
    |
    +-- ValidationFailedError
    |   +-- LeaseOverlapError
    |   +-- PaymentExceedsBalanceError
    |   +-- InvoiceCancelledError
    |
    +-- TransientLookupError
    |
    +-- WorkflowError
        +-- ModuleNotRegisteredError
        +-- TriggerBusyError

Code            | When raised
----------------|----------------------------------------------------------
UNAUTHENTICATED | No resolved tenant or caller identity on a store call
FORBIDDEN       | Record belongs to another tenant (update / delete)
NOT_FOUND       | Record absent, soft-deleted, or filtered out
VALIDATION      | Domain rule rejected the operation
TRANSIENT_LOOKUP| Parent lookup during taint inference failed (swallowed)
MODULE_NOT_REGISTERED | Pipeline names an unknown rule module
TRIGGER_BUSY    | A pass of the same trigger is still in flight

Store errors propagate to the immediate caller.  Scheduler code catches
everything at the tenant x module boundary.
"""

from collections.abc import Sequence


class RentalKernelError(Exception):
    """Base exception for all rental kernel errors."""

    code: str = "RENTAL_KERNEL_ERROR"


# Access


class AccessError(RentalKernelError):
    """Base exception for caller / tenant access failures."""

    code: str = "ACCESS_ERROR"


class UnauthenticatedError(AccessError):
    """Store call made without a tenant or an authenticated caller."""

    code: str = "UNAUTHENTICATED"

    def __init__(self, missing: str):
        self.missing = missing
        super().__init__(f"Caller context is missing {missing}")


class ForbiddenError(AccessError):
    """Record is owned by a different tenant than the caller's."""

    code: str = "FORBIDDEN"

    def __init__(self, entity_type: str, record_id: str, tenant_id: str):
        self.entity_type = entity_type
        self.record_id = record_id
        self.tenant_id = tenant_id
        super().__init__(
            f"{entity_type} {record_id} does not belong to tenant {tenant_id}"
        )


# Lookup


class RecordNotFoundError(RentalKernelError):
    """Record does not exist, is soft-deleted, or is outside the tenant."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, record_id: str):
        self.entity_type = entity_type
        self.record_id = record_id
        super().__init__(f"{entity_type} not found: {record_id}")


# Validation


class ValidationFailedError(RentalKernelError):
    """A domain rule rejected the operation.

    ``errors`` holds the individual messages when more than one rule failed.
    """

    code: str = "VALIDATION"

    def __init__(self, message: str, errors: Sequence[str] = ()):
        self.errors = tuple(errors) or (message,)
        super().__init__(message)


class LeaseOverlapError(ValidationFailedError):
    """Another Active or Pending lease covers the same unit and dates."""

    code: str = "LEASE_OVERLAP"

    def __init__(self, unit_id: str, conflicting_lease_id: str):
        self.unit_id = unit_id
        self.conflicting_lease_id = conflicting_lease_id
        super().__init__(
            f"Unit {unit_id} already has lease {conflicting_lease_id} "
            f"for an overlapping period"
        )


class PaymentExceedsBalanceError(ValidationFailedError):
    """Payment would push amount paid above the invoice total."""

    code: str = "PAYMENT_EXCEEDS_BALANCE"

    def __init__(self, invoice_id: str, amount: str, balance: str):
        self.invoice_id = invoice_id
        self.amount = amount
        self.balance = balance
        super().__init__(
            f"Payment {amount} exceeds balance {balance} on invoice {invoice_id}"
        )


class InvoiceCancelledError(ValidationFailedError):
    """Cancelled invoices accept no further changes."""

    code: str = "INVOICE_CANCELLED"

    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice {invoice_id} is cancelled")


# Taint propagation


class TransientLookupError(RentalKernelError):
    """Parent lookup failed while inferring the sample-data flag.

    Raised and caught inside the resolver; it never reaches store callers.
    """

    code: str = "TRANSIENT_LOOKUP"

    def __init__(self, parent_type: str, parent_id: str, reason: str):
        self.parent_type = parent_type
        self.parent_id = parent_id
        self.reason = reason
        super().__init__(
            f"Lookup of {parent_type} {parent_id} failed: {reason}"
        )


# Workflow


class WorkflowError(RentalKernelError):
    """Base exception for scheduler / rule module errors."""

    code: str = "WORKFLOW_ERROR"


class ModuleNotRegisteredError(WorkflowError):
    """Trigger pipeline references a rule module that is not registered."""

    code: str = "MODULE_NOT_REGISTERED"

    def __init__(self, module_key: str, available: Sequence[str] = ()):
        self.module_key = module_key
        self.available = tuple(available)
        super().__init__(
            f"No rule module registered for '{module_key}'. "
            f"Available: {list(self.available)}"
        )


class TriggerBusyError(WorkflowError):
    """A pass of this trigger is already running."""

    code: str = "TRIGGER_BUSY"

    def __init__(self, trigger: str):
        self.trigger = trigger
        super().__init__(f"Trigger '{trigger}' already has a pass in flight")
