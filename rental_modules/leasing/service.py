"""
Leasing Service -- leases and lease offers through the entity store.

``LeaseService`` guards the one-occupying-lease-per-unit rule and closes
leases whose term ended.  ``LeaseOfferService.expire_offer`` returns a
``TransitionResult`` instead of raising, so the nightly batch can log a
refused offer and continue with the next one.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy.orm import Session

from rental_kernel.domain.context import CallerContext
from rental_kernel.domain.results import TransitionResult
from rental_kernel.exceptions import LeaseOverlapError, ValidationFailedError
from rental_kernel.logging_config import get_logger
from rental_kernel.services.entity_store import StoreFactory
from rental_kernel.services.transition_log import TransitionLog
from rental_modules.leasing.models import (
    OCCUPYING_STATUSES,
    LeaseOfferStatus,
    LeaseStatus,
    ranges_overlap,
)
from rental_modules.leasing.orm import LeaseModel, LeaseOfferModel
from rental_modules.leasing.workflows import LEASE_OFFER_WORKFLOW, LEASE_WORKFLOW
from rental_modules.properties.models import PIPELINE_HOLD_STATES, UnitStatus
from rental_modules.properties.orm import UnitModel
from rental_modules.prospects.models import (
    UNIT_HOLDING_APPLICATION_STATUSES,
    ApplicationStatus,
    ProspectStatus,
)
from rental_modules.prospects.orm import ProspectModel, RentalApplicationModel

logger = get_logger("modules.leasing.service")


class LeaseService:
    """Lease operations for one tenant-scoped caller."""

    def __init__(self, session: Session, stores: StoreFactory):
        self._leases = stores.for_model(session, LeaseModel)
        self._transitions = TransitionLog(session, stores)

    def create_lease(self, ctx: CallerContext, lease: LeaseModel) -> LeaseModel:
        """Create a lease, refusing a second occupying lease on the unit.

        Raises:
            ValidationFailedError: end date before start date.
            LeaseOverlapError: another Active/Pending lease overlaps.
        """
        if lease.end_date < lease.start_date:
            raise ValidationFailedError("Lease end date is before its start date")
        lease.status = lease.status or LeaseStatus.PENDING.value
        if lease.status in OCCUPYING_STATUSES:
            self._ensure_unit_free(ctx, lease.unit_id, lease.start_date, lease.end_date)
        return self._leases.create(ctx, lease)

    def expire_lease(self, ctx: CallerContext, lease: LeaseModel, today: date) -> bool:
        """Move a lease whose end date passed to Expired."""
        if lease.end_date >= today:
            return False
        previous = lease.status
        if not LEASE_WORKFLOW.allows(previous, LeaseStatus.EXPIRED):
            return False
        lease.status = LeaseStatus.EXPIRED.value
        self._leases.update(ctx, lease)
        self._transitions.record(
            ctx, "Lease", lease.id, previous, LeaseStatus.EXPIRED,
            "auto_expire", "Lease end date passed without renewal",
        )
        return True

    def _ensure_unit_free(
        self, ctx: CallerContext, unit_id: UUID, start: date, end: date,
    ) -> None:
        candidates = self._leases.get_all(
            ctx,
            LeaseModel.unit_id == unit_id,
            LeaseModel.status.in_(OCCUPYING_STATUSES),
            LeaseModel.start_date <= end,
            LeaseModel.end_date >= start,
        )
        for other in candidates:
            if ranges_overlap(start, end, other.start_date, other.end_date):
                raise LeaseOverlapError(str(unit_id), str(other.id))


class LeaseOfferService:
    """Lease offer transitions for one tenant-scoped caller."""

    def __init__(self, session: Session, stores: StoreFactory):
        self._offers = stores.for_model(session, LeaseOfferModel)
        self._applications = stores.for_model(session, RentalApplicationModel)
        self._prospects = stores.for_model(session, ProspectModel)
        self._units = stores.for_model(session, UnitModel)
        self._transitions = TransitionLog(session, stores)

    def expire_offer(
        self, ctx: CallerContext, offer_id: UUID, as_of: datetime,
    ) -> TransitionResult:
        """Expire a Pending offer past its deadline.

        Side effects on success: offer -> Expired, linked application ->
        Expired, its prospect -> LeaseDeclined, unit released when nothing
        else holds it.
        """
        offer = self._offers.get_by_id(ctx, offer_id)
        if offer is None:
            return TransitionResult.fail("Lease offer not found")
        if not LEASE_OFFER_WORKFLOW.allows(offer.status, LeaseOfferStatus.EXPIRED):
            return TransitionResult.fail(
                f"Lease offer status is {offer.status}, not pending"
            )
        if offer.expires_on >= as_of:
            return TransitionResult.fail("Lease offer has not expired yet")

        application = (
            self._applications.get_by_id(ctx, offer.application_id)
            if offer.application_id is not None
            else None
        )
        prospect_id = offer.prospect_id or (
            application.prospect_id if application is not None else None
        )
        prospect = (
            self._prospects.get_by_id(ctx, prospect_id)
            if prospect_id is not None
            else None
        )

        errors: list[str] = []
        offer.status = LeaseOfferStatus.EXPIRED.value
        offer.responded_on = as_of
        self._offers.update(ctx, offer)

        if application is not None:
            if application.status in (
                ApplicationStatus.LEASE_OFFERED.value,
                ApplicationStatus.APPROVED.value,
            ):
                application.status = ApplicationStatus.EXPIRED.value
                application.decided_on = as_of
                self._applications.update(ctx, application)
            else:
                errors.append(
                    f"Application {application.id} left at {application.status}"
                )
        if prospect is not None and prospect.status == ProspectStatus.LEASE_OFFERED.value:
            prospect.status = ProspectStatus.LEASE_DECLINED.value
            self._prospects.update(ctx, prospect)

        self._release_unit(ctx, offer)
        self._transitions.record(
            ctx, "LeaseOffer", offer.id, LeaseOfferStatus.PENDING,
            LeaseOfferStatus.EXPIRED, "expire_offer", "Offer expired without a response",
        )

        if errors:
            # The offer itself expired; report what could not follow it.
            return TransitionResult(
                success=True, message="Lease offer expired", errors=tuple(errors),
            )
        return TransitionResult.ok("Lease offer expired", offer_id=str(offer.id))

    def _release_unit(self, ctx: CallerContext, offer: LeaseOfferModel) -> None:
        """Return the unit to Available if no application or offer holds it."""
        unit = self._units.get_by_id(ctx, offer.unit_id)
        if unit is None or unit.status not in PIPELINE_HOLD_STATES:
            return
        holding_applications = self._applications.count(
            ctx,
            RentalApplicationModel.unit_id == offer.unit_id,
            RentalApplicationModel.status.in_(UNIT_HOLDING_APPLICATION_STATUSES),
        )
        pending_offers = self._offers.count(
            ctx,
            LeaseOfferModel.unit_id == offer.unit_id,
            LeaseOfferModel.status == LeaseOfferStatus.PENDING.value,
            LeaseOfferModel.id != offer.id,
        )
        if holding_applications or pending_offers:
            return
        unit.status = UnitStatus.AVAILABLE.value
        self._units.update(ctx, unit)
        logger.info(
            "unit_released",
            extra={"unit_id": str(unit.id), "offer_id": str(offer.id)},
        )
