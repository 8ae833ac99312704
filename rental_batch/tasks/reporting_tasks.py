"""
Rule modules: reporting (daily payment total and inspections-due digest
lines).  Both are read-only.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from rental_kernel.logging_config import get_logger
from rental_modules.billing.models import to_money
from rental_modules.billing.orm import PaymentModel
from rental_modules.properties.models import INSPECTION_DUE_SOON_DAYS
from rental_modules.properties.orm import UnitModel

from rental_batch.domain.types import ModuleOutcome
from rental_batch.tasks.base import TenantRun

logger = get_logger("batch.tasks.reporting")


class DailyPaymentTotalModule:
    """Logs the count and sum of payments received today. Read-only."""

    @property
    def module_key(self) -> str:
        return "reporting.daily_payment_total"

    @property
    def description(self) -> str:
        return "Report today's payment total"

    def run(self, run: TenantRun) -> ModuleOutcome:
        payments = run.stores.for_model(run.session, PaymentModel).get_all(
            run.ctx, PaymentModel.paid_on == run.today,
        )
        total = to_money(sum((Decimal(p.amount) for p in payments), Decimal("0")))
        logger.info(
            "daily_payment_total",
            extra={
                "date": run.today,
                "payment_count": len(payments),
                "total": str(total),
            },
        )
        return ModuleOutcome(
            details={"payment_count": len(payments), "total": str(total)},
        )


class InspectionsDueModule:
    """Reports units whose routine inspection is overdue or coming due.

    Overdue units are logged at WARNING (the earliest few individually);
    units due within the horizon are counted at INFO.
    """

    # Overdue units logged one per line; the rest only in the count.
    DETAIL_LIMIT = 5

    def __init__(self, days_ahead: int = INSPECTION_DUE_SOON_DAYS):
        self._days_ahead = days_ahead

    @property
    def module_key(self) -> str:
        return "reporting.inspections_due"

    @property
    def description(self) -> str:
        return "Report overdue and upcoming routine inspections"

    def run(self, run: TenantRun) -> ModuleOutcome:
        units = run.stores.for_model(run.session, UnitModel)
        due_column = UnitModel.next_routine_inspection_due_on
        overdue = units.get_all(
            run.ctx,
            due_column.is_not(None),
            due_column < run.today,
            order_by=due_column,
        )
        due_soon = units.count(
            run.ctx,
            due_column.is_not(None),
            due_column >= run.today,
            due_column <= run.today + timedelta(days=self._days_ahead),
        )

        if overdue:
            logger.warning(
                "routine_inspections_overdue", extra={"count": len(overdue)},
            )
            for unit in overdue[: self.DETAIL_LIMIT]:
                due_on = unit.next_routine_inspection_due_on
                logger.warning(
                    "routine_inspection_overdue",
                    extra={
                        "unit_id": str(unit.id),
                        "address": unit.display_address,
                        "days_overdue": (run.today - due_on).days,
                        "due_on": due_on,
                    },
                )
        if due_soon:
            logger.info(
                "routine_inspections_due_soon",
                extra={"count": due_soon, "days": self._days_ahead},
            )
        return ModuleOutcome(
            details={"overdue": len(overdue), "due_soon": due_soon},
        )
