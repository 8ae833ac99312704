"""
Rule module: deposits (year-end dividend calculation trigger).
"""

from __future__ import annotations

from decimal import Decimal

from rental_kernel.logging_config import get_logger
from rental_modules.deposits.models import SETTLED_POOL_STATUSES
from rental_modules.deposits.service import DividendService

from rental_batch.domain.types import ModuleOutcome
from rental_batch.tasks.base import TenantRun

logger = get_logger("batch.tasks.deposits")

# Dividends for the prior year are calculated during January 1-7.
DIVIDEND_WINDOW_LAST_DAY = 7


class DividendTriggerModule:
    """Calculates last year's deposit dividends in the first week of January.

    Missing pools, settled pools and pools without recorded earnings are
    logged and skipped; none of them fails the pass.
    """

    @property
    def module_key(self) -> str:
        return "deposits.dividend_trigger"

    @property
    def description(self) -> str:
        return "Calculate year-end security deposit dividends"

    def run(self, run: TenantRun) -> ModuleOutcome:
        today = run.today
        if today.month != 1 or today.day > DIVIDEND_WINDOW_LAST_DAY:
            return ModuleOutcome.skipped("outside dividend window")
        if not run.policy.security_deposit_investment_enabled:
            return ModuleOutcome.skipped("deposit investment disabled")

        year = today.year - 1
        service = DividendService(run.session, run.stores)
        pool = service.get_pool(run.ctx, year)
        if pool is None:
            logger.info("dividend_pool_missing", extra={"year": year})
            return ModuleOutcome.skipped("no investment pool")
        if pool.status in SETTLED_POOL_STATUSES:
            logger.info(
                "dividends_already_processed",
                extra={"year": year, "pool_status": pool.status},
            )
            return ModuleOutcome.skipped("pool already settled")
        if Decimal(pool.total_earnings or 0) == 0:
            logger.info("dividend_pool_without_earnings", extra={"year": year})
            return ModuleOutcome.skipped("no earnings recorded")

        dividends = service.calculate_dividends(run.ctx, year, run.policy, run.as_of)
        return ModuleOutcome(
            changed=len(dividends),
            details={
                "year": year,
                "total": str(sum(
                    (Decimal(d.dividend_amount) for d in dividends), Decimal("0"),
                )),
            },
        )
