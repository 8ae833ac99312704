"""
Tests for rental_kernel.domain.workflow and the module status machines.
"""

import pytest

from rental_kernel.domain.workflow import Transition, Workflow
from rental_modules.billing.models import InvoiceStatus
from rental_modules.billing.workflows import INVOICE_WORKFLOW
from rental_modules.leasing.models import LeaseOfferStatus, LeaseStatus
from rental_modules.leasing.workflows import LEASE_OFFER_WORKFLOW, LEASE_WORKFLOW
from rental_modules.prospects.models import ProspectStatus, TourStatus
from rental_modules.prospects.workflows import (
    APPLICATION_WORKFLOW,
    PROSPECT_WORKFLOW,
    TOUR_WORKFLOW,
)


class TestWorkflowDefinition:
    def test_unknown_initial_state(self):
        with pytest.raises(ValueError, match="initial state"):
            Workflow(
                name="w", description="", initial_state="x",
                states=("a",), transitions=(),
            )

    def test_transition_to_unknown_state(self):
        with pytest.raises(ValueError, match="unknown state"):
            Workflow(
                name="w", description="", initial_state="a",
                states=("a",), transitions=(Transition("a", "b", action="go"),),
            )

    def test_terminal_state_cannot_leave(self):
        with pytest.raises(ValueError, match="terminal state"):
            Workflow(
                name="w", description="", initial_state="a",
                states=("a", "b"),
                transitions=(Transition("b", "a", action="back"),),
                terminal_states=("b",),
            )

    @pytest.mark.parametrize(
        "workflow",
        [
            INVOICE_WORKFLOW,
            LEASE_WORKFLOW,
            LEASE_OFFER_WORKFLOW,
            PROSPECT_WORKFLOW,
            TOUR_WORKFLOW,
            APPLICATION_WORKFLOW,
        ],
        ids=lambda w: w.name,
    )
    def test_module_workflows_are_well_formed(self, workflow):
        assert workflow.initial_state in workflow.states
        for state in workflow.terminal_states:
            assert not any(t.from_state == state for t in workflow.transitions)


class TestModuleWorkflows:
    def test_cancelled_invoice_is_terminal(self):
        assert INVOICE_WORKFLOW.is_terminal(InvoiceStatus.CANCELLED)
        for status in InvoiceStatus:
            assert not INVOICE_WORKFLOW.allows(InvoiceStatus.CANCELLED, status)

    def test_pending_invoice_can_go_overdue(self):
        assert INVOICE_WORKFLOW.allows(InvoiceStatus.PENDING, InvoiceStatus.OVERDUE)

    def test_lease_expiry_paths(self):
        assert LEASE_WORKFLOW.allows(LeaseStatus.ACTIVE, LeaseStatus.EXPIRED)
        assert LEASE_WORKFLOW.allows(LeaseStatus.NOTICE_GIVEN, LeaseStatus.EXPIRED)
        assert not LEASE_WORKFLOW.allows(LeaseStatus.EXPIRED, LeaseStatus.ACTIVE)

    def test_only_pending_offers_expire(self):
        assert LEASE_OFFER_WORKFLOW.allows(
            LeaseOfferStatus.PENDING, LeaseOfferStatus.EXPIRED,
        )
        assert not LEASE_OFFER_WORKFLOW.allows(
            LeaseOfferStatus.ACCEPTED, LeaseOfferStatus.EXPIRED,
        )

    def test_no_show_reverts_prospect(self):
        assert TOUR_WORKFLOW.allows(TourStatus.SCHEDULED, TourStatus.NO_SHOW)
        transition = PROSPECT_WORKFLOW.transition_for(
            ProspectStatus.TOUR_SCHEDULED, ProspectStatus.LEAD,
        )
        assert transition is not None
        assert transition.action == "revert_to_lead"
        assert transition.guard.name == "no_other_scheduled_tour"
