"""
Billing Workflows.

State machine for invoices.  Cancelled and Paid are terminal: no rule
module may move an invoice out of them.
"""

from rental_kernel.domain.workflow import Guard, Transition, Workflow
from rental_kernel.logging_config import get_logger

logger = get_logger("modules.billing.workflows")


PAST_GRACE_PERIOD = Guard(
    name="past_grace_period",
    description="Due date is older than the tenant's late-fee grace period",
)

BALANCE_ZERO = Guard(
    name="balance_zero",
    description="Amount paid covers the invoice amount",
)


INVOICE_WORKFLOW = Workflow(
    name="invoice",
    description="Rent and fee invoice lifecycle",
    initial_state="pending",
    states=("pending", "partial", "paid", "overdue", "cancelled"),
    transitions=(
        Transition("pending", "overdue", action="mark_overdue"),
        Transition("pending", "partial", action="record_payment"),
        Transition("pending", "paid", action="record_payment", guard=BALANCE_ZERO),
        Transition("partial", "paid", action="record_payment", guard=BALANCE_ZERO),
        Transition("partial", "overdue", action="mark_overdue"),
        Transition(
            "overdue", "overdue", action="apply_late_fee", guard=PAST_GRACE_PERIOD,
        ),
        Transition("overdue", "paid", action="record_payment", guard=BALANCE_ZERO),
        Transition("pending", "cancelled", action="cancel"),
        Transition("partial", "cancelled", action="cancel"),
        Transition("overdue", "cancelled", action="cancel"),
    ),
    terminal_states=("paid", "cancelled"),
)

logger.debug(
    "billing_workflows_defined",
    extra={"workflows": [INVOICE_WORKFLOW.name]},
)
