"""
Prospect Service -- tours and applications through the entity store.

Owns the prospect cascade shared by tour cancellation and no-show
detection: a prospect who was moved to TourScheduled by a tour goes back to
Lead once no Scheduled tour remains.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from rental_kernel.domain.context import CallerContext
from rental_kernel.domain.policy import TenantPolicy
from rental_kernel.exceptions import RecordNotFoundError, ValidationFailedError
from rental_kernel.logging_config import get_logger
from rental_kernel.services.entity_store import StoreFactory
from rental_kernel.services.transition_log import TransitionLog
from rental_modules.properties.models import UnitStatus
from rental_modules.properties.orm import UnitModel
from rental_modules.prospects.models import (
    ApplicationStatus,
    ProspectStatus,
    TourStatus,
)
from rental_modules.prospects.orm import (
    ProspectModel,
    RentalApplicationModel,
    TourModel,
)
from rental_modules.prospects.workflows import (
    APPLICATION_WORKFLOW,
    PROSPECT_WORKFLOW,
    TOUR_WORKFLOW,
)

logger = get_logger("modules.prospects.service")


class ProspectService:
    """Tour and application operations for one tenant-scoped caller."""

    def __init__(self, session: Session, stores: StoreFactory):
        self._stores = stores
        self._prospects = stores.for_model(session, ProspectModel)
        self._tours = stores.for_model(session, TourModel)
        self._applications = stores.for_model(session, RentalApplicationModel)
        self._units = stores.for_model(session, UnitModel)
        self._transitions = TransitionLog(session, stores)

    # =========================================================================
    # Tours
    # =========================================================================

    def schedule_tour(self, ctx: CallerContext, tour: TourModel) -> TourModel:
        prospect = self._require(self._prospects, ctx, tour.prospect_id, "Prospect")
        tour.status = TourStatus.SCHEDULED.value
        self._tours.create(ctx, tour)
        if prospect.status == ProspectStatus.LEAD.value:
            self._move_prospect(
                ctx, prospect, ProspectStatus.TOUR_SCHEDULED, "schedule_tour",
            )
        return tour

    def cancel_tour(
        self, ctx: CallerContext, tour_id: UUID, reason: str | None = None,
    ) -> TourModel:
        tour = self._require(self._tours, ctx, tour_id, "Tour")
        self._close_tour(ctx, tour, TourStatus.CANCELLED, "cancel", reason)
        return tour

    def mark_no_show(self, ctx: CallerContext, tour: TourModel) -> bool:
        """Mark a Scheduled tour NoShow; True when the prospect was reverted."""
        return self._close_tour(
            ctx, tour, TourStatus.NO_SHOW, "mark_no_show",
            "Tour not completed within grace period",
        )

    def _close_tour(
        self,
        ctx: CallerContext,
        tour: TourModel,
        to_status: TourStatus,
        action: str,
        reason: str | None,
    ) -> bool:
        previous = tour.status
        if not TOUR_WORKFLOW.allows(previous, to_status):
            raise ValidationFailedError(
                f"Tour {tour.id} cannot move from {previous} to {to_status.value}"
            )
        tour.status = to_status.value
        if reason:
            tour.outcome_notes = reason
        self._tours.update(ctx, tour)
        self._transitions.record(
            ctx, "Tour", tour.id, previous, to_status, action, reason,
        )
        return self._release_prospect(ctx, tour)

    def _release_prospect(self, ctx: CallerContext, tour: TourModel) -> bool:
        prospect = self._prospects.get_by_id(ctx, tour.prospect_id)
        if prospect is None or prospect.status != ProspectStatus.TOUR_SCHEDULED.value:
            return False
        remaining = self._tours.count(
            ctx,
            TourModel.prospect_id == prospect.id,
            TourModel.status == TourStatus.SCHEDULED.value,
            TourModel.id != tour.id,
        )
        if remaining:
            return False
        self._move_prospect(
            ctx, prospect, ProspectStatus.LEAD, "revert_to_lead",
            "No scheduled tours remaining",
        )
        return True

    # =========================================================================
    # Applications
    # =========================================================================

    def submit_application(
        self,
        ctx: CallerContext,
        application: RentalApplicationModel,
        policy: TenantPolicy,
    ) -> RentalApplicationModel:
        """File an application; it lapses after the policy's expiration days."""
        prospect = self._require(
            self._prospects, ctx, application.prospect_id, "Prospect",
        )
        unit = self._require(self._units, ctx, application.unit_id, "Unit")

        now = self._stores.wall_clock_now()
        application.status = ApplicationStatus.SUBMITTED.value
        application.applied_on = application.applied_on or now
        application.expires_on = application.expires_on or (
            application.applied_on
            + timedelta(days=policy.application_expiration_days)
        )
        self._applications.create(ctx, application)

        if PROSPECT_WORKFLOW.allows(prospect.status, ProspectStatus.APPLIED):
            self._move_prospect(
                ctx, prospect, ProspectStatus.APPLIED, "submit_application",
            )
        if unit.status == UnitStatus.AVAILABLE.value:
            unit.status = UnitStatus.APPLICATION_PENDING.value
            self._units.update(ctx, unit)
        return application

    def expire_application(
        self,
        ctx: CallerContext,
        application: RentalApplicationModel,
        as_of: datetime,
    ) -> bool:
        """Expire an undecided application whose deadline passed."""
        if application.expires_on is None or application.expires_on >= as_of:
            return False
        previous = application.status
        if not APPLICATION_WORKFLOW.allows(previous, ApplicationStatus.EXPIRED):
            return False
        application.status = ApplicationStatus.EXPIRED.value
        application.decided_on = as_of
        self._applications.update(ctx, application)
        self._transitions.record(
            ctx, "RentalApplication", application.id, previous,
            ApplicationStatus.EXPIRED, "auto_expire",
            "Application expired without a decision",
        )
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    def _move_prospect(
        self,
        ctx: CallerContext,
        prospect: ProspectModel,
        to_status: ProspectStatus,
        action: str,
        reason: str | None = None,
    ) -> None:
        previous = prospect.status
        prospect.status = to_status.value
        self._prospects.update(ctx, prospect)
        self._transitions.record(
            ctx, "Prospect", prospect.id, previous, to_status, action, reason,
        )

    @staticmethod
    def _require(store, ctx: CallerContext, record_id: UUID, entity_type: str):
        record = store.get_by_id(ctx, record_id)
        if record is None:
            raise RecordNotFoundError(entity_type, str(record_id))
        return record
