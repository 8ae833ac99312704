"""
Rule modules: leasing (renewal ladder, lease expiry, lease-offer expiry,
upcoming-expiration count).
"""

from __future__ import annotations

from datetime import timedelta

from rental_kernel.logging_config import get_logger
from rental_kernel.services.notifications import RecipientSet, dispatch_safely
from rental_modules.leasing.config import LeasingConfig
from rental_modules.leasing.models import (
    EXPIRABLE_STATUSES,
    RENEWAL_LADDER,
    LeaseOfferStatus,
    LeaseStatus,
    RenewalStage,
    RenewalStatus,
    RenewalWindow,
    renewal_step_due,
)
from rental_modules.leasing.orm import LeaseModel, LeaseOfferModel
from rental_modules.leasing.service import LeaseOfferService, LeaseService
from rental_modules.properties.orm import UnitModel

from rental_batch.domain.types import ModuleOutcome
from rental_batch.tasks.base import TenantRun

logger = get_logger("batch.tasks.leasing")


class RenewalLadderModule:
    """Walks Active leases through the 90 / 60 / 30 day renewal notices.

    Each rung has its own marker on the lease, so a lease receives each
    notice at most once and only after the previous rung fired.
    """

    def __init__(self, config: LeasingConfig | None = None):
        self._config = config or LeasingConfig.with_defaults()

    @property
    def module_key(self) -> str:
        return "leasing.renewal_ladder"

    @property
    def description(self) -> str:
        return "Send 90/60/30 day lease renewal notices"

    def run(self, run: TenantRun) -> ModuleOutcome:
        leases = run.stores.for_model(run.session, LeaseModel)
        units = run.stores.for_model(run.session, UnitModel)
        tolerance = self._config.renewal_window_tolerance_days

        per_stage: dict[str, int] = {}
        for window in RENEWAL_LADDER:
            low, high = window.bounds(run.today, tolerance)
            due = [
                lease
                for lease in leases.get_all(
                    run.ctx,
                    LeaseModel.status == LeaseStatus.ACTIVE.value,
                    LeaseModel.end_date >= low,
                    LeaseModel.end_date <= high,
                    order_by=LeaseModel.end_date,
                )
                if renewal_step_due(
                    window.stage,
                    notice_sent=bool(lease.renewal_notice_sent),
                    reminder_sent_on=lease.renewal_reminder_sent_on,
                    final_notice_sent_on=lease.renewal_final_notice_sent_on,
                    renewal_status=lease.renewal_status,
                )
            ]
            if not due:
                continue

            stamped_at = run.as_of
            for lease in due:
                self._mark(lease, window, stamped_at)
                leases.update(run.ctx, lease)

            addresses = []
            for lease in due:
                unit = units.get_by_id(run.ctx, lease.unit_id)
                addresses.append(
                    unit.display_address if unit is not None else str(lease.unit_id)
                )
            dispatch_safely(
                run.notifier,
                run.tenant_id,
                RecipientSet.all_members(),
                window.title,
                f"{len(due)} lease(s) expire in about {window.days_out} days: "
                + "; ".join(addresses),
            )
            per_stage[window.stage.value] = len(due)
            logger.info(
                "renewal_notices_sent",
                extra={"stage": window.stage.value, "count": len(due)},
            )

        return ModuleOutcome(changed=sum(per_stage.values()), details=per_stage)

    @staticmethod
    def _mark(lease: LeaseModel, window: RenewalWindow, stamped_at) -> None:
        if window.stage is RenewalStage.FIRST_NOTICE:
            lease.renewal_notice_sent = True
            lease.renewal_notice_sent_on = stamped_at
            lease.renewal_status = RenewalStatus.PENDING.value
        elif window.stage is RenewalStage.REMINDER:
            lease.renewal_reminder_sent_on = stamped_at
        else:
            lease.renewal_final_notice_sent_on = stamped_at


class LeaseExpiryModule:
    """Moves leases whose end date has passed to Expired."""

    @property
    def module_key(self) -> str:
        return "leasing.lease_expiry"

    @property
    def description(self) -> str:
        return "Expire leases past their end date"

    def run(self, run: TenantRun) -> ModuleOutcome:
        service = LeaseService(run.session, run.stores)
        leases = run.stores.for_model(run.session, LeaseModel)
        candidates = leases.get_all(
            run.ctx,
            LeaseModel.status.in_(EXPIRABLE_STATUSES),
            LeaseModel.end_date < run.today,
            order_by=LeaseModel.end_date,
        )
        expired = sum(
            1 for lease in candidates if service.expire_lease(run.ctx, lease, run.today)
        )
        if expired:
            logger.info("leases_expired", extra={"count": expired})
        return ModuleOutcome(changed=expired)


class OfferExpiryModule:
    """Expires Pending lease offers past their deadline.

    A failed ``TransitionResult`` is logged and the pass moves on to the
    next offer.
    """

    @property
    def module_key(self) -> str:
        return "leasing.offer_expiry"

    @property
    def description(self) -> str:
        return "Expire lease offers past their deadline"

    def run(self, run: TenantRun) -> ModuleOutcome:
        service = LeaseOfferService(run.session, run.stores)
        offers = run.stores.for_model(run.session, LeaseOfferModel)
        candidates = offers.get_all(
            run.ctx,
            LeaseOfferModel.status == LeaseOfferStatus.PENDING.value,
            LeaseOfferModel.expires_on < run.as_of,
            order_by=LeaseOfferModel.expires_on,
        )

        expired = 0
        failed = 0
        for offer in candidates:
            result = service.expire_offer(run.ctx, offer.id, run.as_of)
            if not result.success:
                failed += 1
                logger.warning(
                    "lease_offer_expiry_failed",
                    extra={
                        "offer_id": str(offer.id),
                        "message": result.message,
                        "errors": list(result.errors),
                    },
                )
                continue
            expired += 1
            if result.errors:
                logger.warning(
                    "lease_offer_expired_with_errors",
                    extra={"offer_id": str(offer.id), "errors": list(result.errors)},
                )

        if expired:
            logger.info("lease_offers_expired", extra={"count": expired})
        return ModuleOutcome(
            changed=expired, details={"expired": expired, "failed": failed},
        )


class UpcomingExpirationsModule:
    """Reports how many Active leases end within the look-ahead window."""

    def __init__(self, config: LeasingConfig | None = None):
        self._config = config or LeasingConfig.with_defaults()

    @property
    def module_key(self) -> str:
        return "leasing.upcoming_expirations"

    @property
    def description(self) -> str:
        return "Count leases ending soon"

    def run(self, run: TenantRun) -> ModuleOutcome:
        horizon = run.today + timedelta(days=self._config.upcoming_expiration_days)
        leases = run.stores.for_model(run.session, LeaseModel)
        count = leases.count(
            run.ctx,
            LeaseModel.status == LeaseStatus.ACTIVE.value,
            LeaseModel.end_date >= run.today,
            LeaseModel.end_date <= horizon,
        )
        if count:
            logger.info(
                "leases_expiring_soon",
                extra={
                    "count": count,
                    "days": self._config.upcoming_expiration_days,
                },
            )
        return ModuleOutcome(details={"expiring": count})
