"""
Leasing Workflows.

State machines for leases and lease offers.
"""

from rental_kernel.domain.workflow import Guard, Transition, Workflow
from rental_kernel.logging_config import get_logger

logger = get_logger("modules.leasing.workflows")


END_DATE_PASSED = Guard(
    name="end_date_passed",
    description="Lease end date is before today",
)

OFFER_EXPIRED = Guard(
    name="offer_expired",
    description="Offer expiration timestamp has passed",
)


LEASE_WORKFLOW = Workflow(
    name="lease",
    description="Residential lease lifecycle",
    initial_state="pending",
    states=(
        "pending",
        "active",
        "renewed",
        "month_to_month",
        "notice_given",
        "terminated",
        "expired",
    ),
    transitions=(
        Transition("pending", "active", action="activate"),
        Transition("pending", "terminated", action="cancel"),
        Transition("active", "renewed", action="renew"),
        Transition("active", "month_to_month", action="roll_month_to_month"),
        Transition("active", "notice_given", action="give_notice"),
        Transition("active", "terminated", action="terminate"),
        Transition("active", "expired", action="auto_expire", guard=END_DATE_PASSED),
        Transition("month_to_month", "notice_given", action="give_notice"),
        Transition("month_to_month", "terminated", action="terminate"),
        Transition("notice_given", "terminated", action="terminate"),
        Transition(
            "notice_given", "expired", action="auto_expire", guard=END_DATE_PASSED,
        ),
    ),
    terminal_states=("renewed", "terminated", "expired"),
)


LEASE_OFFER_WORKFLOW = Workflow(
    name="lease_offer",
    description="Offer of a lease to an approved applicant",
    initial_state="pending",
    states=("pending", "accepted", "declined", "expired", "withdrawn"),
    transitions=(
        Transition("pending", "accepted", action="accept"),
        Transition("pending", "declined", action="decline"),
        Transition("pending", "withdrawn", action="withdraw"),
        Transition("pending", "expired", action="expire_offer", guard=OFFER_EXPIRED),
    ),
    terminal_states=("accepted", "declined", "expired", "withdrawn"),
)

logger.debug(
    "leasing_workflows_defined",
    extra={"workflows": [LEASE_WORKFLOW.name, LEASE_OFFER_WORKFLOW.name]},
)
