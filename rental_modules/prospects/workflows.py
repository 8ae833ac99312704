"""
Prospect Workflows.

State machines for prospects, tours and rental applications.
"""

from rental_kernel.domain.workflow import Guard, Transition, Workflow
from rental_kernel.logging_config import get_logger

logger = get_logger("modules.prospects.workflows")


NO_OTHER_SCHEDULED_TOUR = Guard(
    name="no_other_scheduled_tour",
    description="Prospect has no remaining Scheduled tour",
)

GRACE_PERIOD_ELAPSED = Guard(
    name="grace_period_elapsed",
    description="Tour start is older than the tenant's no-show grace period",
)


PROSPECT_WORKFLOW = Workflow(
    name="prospect",
    description="Prospective renter pipeline",
    initial_state="lead",
    states=(
        "lead",
        "tour_scheduled",
        "applied",
        "screening",
        "approved",
        "denied",
        "withdrawn",
        "lease_offered",
        "lease_declined",
        "converted",
    ),
    transitions=(
        Transition("lead", "tour_scheduled", action="schedule_tour"),
        Transition(
            "tour_scheduled", "lead", action="revert_to_lead",
            guard=NO_OTHER_SCHEDULED_TOUR,
        ),
        Transition("lead", "applied", action="submit_application"),
        Transition("tour_scheduled", "applied", action="submit_application"),
        Transition("applied", "screening", action="start_screening"),
        Transition("screening", "approved", action="approve"),
        Transition("screening", "denied", action="deny"),
        Transition("approved", "lease_offered", action="offer_lease"),
        Transition("lease_offered", "converted", action="accept_offer"),
        Transition("lease_offered", "lease_declined", action="decline_offer"),
        Transition("lead", "withdrawn", action="withdraw"),
        Transition("tour_scheduled", "withdrawn", action="withdraw"),
        Transition("applied", "withdrawn", action="withdraw"),
    ),
    terminal_states=("denied", "withdrawn", "lease_declined", "converted"),
)


TOUR_WORKFLOW = Workflow(
    name="tour",
    description="Scheduled property showing",
    initial_state="scheduled",
    states=("scheduled", "completed", "cancelled", "no_show"),
    transitions=(
        Transition("scheduled", "completed", action="complete"),
        Transition("scheduled", "cancelled", action="cancel"),
        Transition(
            "scheduled", "no_show", action="mark_no_show", guard=GRACE_PERIOD_ELAPSED,
        ),
    ),
    terminal_states=("completed", "cancelled", "no_show"),
)


APPLICATION_WORKFLOW = Workflow(
    name="rental_application",
    description="Rental application review",
    initial_state="submitted",
    states=(
        "submitted",
        "under_review",
        "screening",
        "approved",
        "denied",
        "expired",
        "withdrawn",
        "lease_offered",
        "lease_accepted",
        "lease_declined",
    ),
    transitions=(
        Transition("submitted", "under_review", action="begin_review"),
        Transition("under_review", "screening", action="start_screening"),
        Transition("screening", "approved", action="approve"),
        Transition("screening", "denied", action="deny"),
        Transition("under_review", "denied", action="deny"),
        Transition("approved", "lease_offered", action="offer_lease"),
        Transition("lease_offered", "lease_accepted", action="accept_offer"),
        Transition("lease_offered", "lease_declined", action="decline_offer"),
        Transition("lease_offered", "expired", action="expire_offer"),
        Transition("submitted", "expired", action="auto_expire"),
        Transition("under_review", "expired", action="auto_expire"),
        Transition("screening", "expired", action="auto_expire"),
        Transition("submitted", "withdrawn", action="withdraw"),
        Transition("under_review", "withdrawn", action="withdraw"),
        Transition("screening", "withdrawn", action="withdraw"),
    ),
    terminal_states=(
        "denied", "expired", "withdrawn", "lease_accepted", "lease_declined",
    ),
)

logger.debug(
    "prospect_workflows_defined",
    extra={
        "workflows": [
            PROSPECT_WORKFLOW.name, TOUR_WORKFLOW.name, APPLICATION_WORKFLOW.name,
        ],
    },
)
