"""
Rule modules: prospects (application expiry, tour no-show detection).
"""

from __future__ import annotations

from rental_kernel.logging_config import get_logger
from rental_modules.prospects.models import (
    EXPIRABLE_APPLICATION_STATUSES,
    TourStatus,
    no_show_cutoff,
)
from rental_modules.prospects.orm import RentalApplicationModel, TourModel
from rental_modules.prospects.service import ProspectService

from rental_batch.domain.types import ModuleOutcome
from rental_batch.tasks.base import TenantRun

logger = get_logger("batch.tasks.prospects")


class ApplicationExpiryModule:
    """Expires undecided applications whose deadline passed."""

    @property
    def module_key(self) -> str:
        return "applications.application_expiry"

    @property
    def description(self) -> str:
        return "Expire rental applications past their deadline"

    def run(self, run: TenantRun) -> ModuleOutcome:
        service = ProspectService(run.session, run.stores)
        applications = run.stores.for_model(run.session, RentalApplicationModel)
        candidates = applications.get_all(
            run.ctx,
            RentalApplicationModel.status.in_(EXPIRABLE_APPLICATION_STATUSES),
            RentalApplicationModel.expires_on < run.as_of,
            order_by=RentalApplicationModel.expires_on,
        )
        expired = sum(
            1 for app in candidates
            if service.expire_application(run.ctx, app, run.as_of)
        )
        if expired:
            logger.info("applications_expired", extra={"count": expired})
        return ModuleOutcome(changed=expired)


class TourNoShowModule:
    """Marks Scheduled tours past the no-show grace period as NoShow.

    The prospect falls back to Lead when no other Scheduled tour remains.
    """

    @property
    def module_key(self) -> str:
        return "showings.tour_no_show"

    @property
    def description(self) -> str:
        return "Mark missed tours as no-shows"

    def run(self, run: TenantRun) -> ModuleOutcome:
        grace_hours = run.policy.tour_no_show_grace_period_hours
        cutoff = no_show_cutoff(run.as_of, grace_hours)
        service = ProspectService(run.session, run.stores)
        tours = run.stores.for_model(run.session, TourModel)
        candidates = tours.get_all(
            run.ctx,
            TourModel.status == TourStatus.SCHEDULED.value,
            TourModel.scheduled_on < cutoff,
            order_by=TourModel.scheduled_on,
        )

        reverted = 0
        for tour in candidates:
            if service.mark_no_show(run.ctx, tour):
                reverted += 1
            logger.info(
                "tour_marked_no_show",
                extra={
                    "tour_id": str(tour.id),
                    "scheduled_on": tour.scheduled_on,
                    "grace_period_hours": grace_hours,
                },
            )

        return ModuleOutcome(
            changed=len(candidates),
            details={"no_shows": len(candidates), "prospects_reverted": reverted},
        )
