"""
Dividend Service -- yearly security deposit pool earnings and dividends.

A tenant records the year's pool earnings once they are known; the
midnight ``deposits.dividend_trigger`` then calls ``calculate_dividends``
during the first week of January for the previous year.

Usage:
    service = DividendService(session, stores)
    service.record_pool_earnings(ctx, 2025, Decimal("1200.00"), policy)
    dividends = service.calculate_dividends(ctx, 2025, policy)
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from rental_kernel.domain.context import CallerContext
from rental_kernel.domain.policy import TenantPolicy
from rental_kernel.exceptions import ValidationFailedError
from rental_kernel.logging_config import get_logger
from rental_kernel.services.entity_store import StoreFactory
from rental_kernel.services.transition_log import TransitionLog
from rental_modules.deposits.models import (
    SETTLED_POOL_STATUSES,
    DividendPaymentMethod,
    DividendStatus,
    PoolStatus,
    months_in_pool,
    proration_factor,
    split_earnings,
)
from rental_modules.deposits.orm import (
    DepositDividendModel,
    InvestmentPoolModel,
    SecurityDepositModel,
)

logger = get_logger("modules.deposits.service")

_CENT = Decimal("0.01")


class DividendService:
    """Investment pool bookkeeping for one tenant-scoped caller."""

    def __init__(self, session: Session, stores: StoreFactory):
        self._stores = stores
        self._deposits = stores.for_model(session, SecurityDepositModel)
        self._pools = stores.for_model(session, InvestmentPoolModel)
        self._dividends = stores.for_model(session, DepositDividendModel)
        self._transitions = TransitionLog(session, stores)

    def get_pool(self, ctx: CallerContext, year: int) -> InvestmentPoolModel | None:
        pools = self._pools.get_all(ctx, InvestmentPoolModel.year == year)
        return pools[0] if pools else None

    def record_pool_earnings(
        self,
        ctx: CallerContext,
        year: int,
        total_earnings: Decimal,
        policy: TenantPolicy,
    ) -> InvestmentPoolModel:
        """Create or update the year's pool with its earnings split.

        Raises:
            ValidationFailedError: negative earnings, or the pool is already
                distributed or closed.
        """
        total_earnings = Decimal(total_earnings)
        if total_earnings < 0:
            raise ValidationFailedError("Pool earnings cannot be negative")

        share_pct = Decimal(str(policy.organization_share_percentage))
        org_share, tenant_share = split_earnings(total_earnings, share_pct)

        pool = self.get_pool(ctx, year)
        if pool is None:
            pool = InvestmentPoolModel(year=year, status=PoolStatus.OPEN.value)
        elif pool.status in SETTLED_POOL_STATUSES:
            raise ValidationFailedError(
                f"Investment pool for {year} is {pool.status} and cannot change"
            )

        pool.total_earnings = total_earnings
        pool.organization_share_percentage = share_pct
        pool.organization_share = org_share
        pool.tenant_share_total = tenant_share

        if pool.id is None:
            pool = self._pools.create(ctx, pool)
        else:
            pool = self._pools.update(ctx, pool)

        logger.info(
            "pool_earnings_recorded",
            extra={
                "year": year,
                "total_earnings": str(total_earnings),
                "tenant_share_total": str(tenant_share),
            },
        )
        return pool

    def calculate_dividends(
        self,
        ctx: CallerContext,
        year: int,
        policy: TenantPolicy,
        as_of: datetime | None = None,
    ) -> list[DepositDividendModel]:
        """Split the pool's tenant share across deposits pooled during ``year``.

        Each deposit gets ``tenant_share_total / deposit_count`` scaled by
        the fraction of the year it spent in the pool.  Dividends already
        calculated for a deposit are returned unchanged, so repeated calls
        do not duplicate them.  The pool always ends ``calculated``.
        """
        pool = self.get_pool(ctx, year)
        if pool is None:
            pool = self.record_pool_earnings(ctx, year, Decimal("0"), policy)

        year_start, year_end = date(year, 1, 1), date(year, 12, 31)
        deposits = [
            d for d in self._deposits.get_all(
                ctx,
                SecurityDepositModel.in_investment_pool.is_(True),
                SecurityDepositModel.pool_entry_date.is_not(None),
                SecurityDepositModel.pool_entry_date <= year_end,
                order_by=SecurityDepositModel.pool_entry_date,
            )
            if d.pool_exit_date is None or d.pool_exit_date >= year_start
        ]

        previous = pool.status
        pool.dividends_calculated_on = as_of or self._stores.wall_clock_now()
        pool.status = PoolStatus.CALCULATED.value

        tenant_share = Decimal(pool.tenant_share_total or 0)
        if not deposits or tenant_share <= 0:
            pool.active_lease_count = 0
            pool.dividend_per_lease = Decimal("0")
            self._pools.update(ctx, pool)
            self._log_pool_transition(ctx, pool, previous)
            logger.info(
                "dividends_none_due",
                extra={"year": year, "deposit_count": len(deposits)},
            )
            return []

        per_lease = (tenant_share / len(deposits)).quantize(_CENT, rounding=ROUND_HALF_UP)
        pool.active_lease_count = len(deposits)
        pool.dividend_per_lease = per_lease
        self._pools.update(ctx, pool)

        method = (
            DividendPaymentMethod.PENDING.value
            if policy.allow_tenant_dividend_choice
            else policy.default_dividend_payment_method
        )

        dividends: list[DepositDividendModel] = []
        for deposit in deposits:
            existing = self._dividends.get_all(
                ctx,
                DepositDividendModel.security_deposit_id == deposit.id,
                DepositDividendModel.year == year,
            )
            if existing:
                dividends.append(existing[0])
                continue

            months = months_in_pool(deposit.pool_entry_date, deposit.pool_exit_date, year)
            factor = proration_factor(months)
            dividends.append(
                self._dividends.create(
                    ctx,
                    DepositDividendModel(
                        security_deposit_id=deposit.id,
                        pool_id=pool.id,
                        lease_id=deposit.lease_id,
                        contact_id=deposit.contact_id,
                        year=year,
                        base_dividend_amount=per_lease,
                        proration_factor=factor,
                        dividend_amount=(per_lease * factor).quantize(
                            _CENT, rounding=ROUND_HALF_UP,
                        ),
                        months_in_pool=months,
                        payment_method=method,
                        status=DividendStatus.PENDING.value,
                    ),
                )
            )

        self._log_pool_transition(ctx, pool, previous)
        logger.info(
            "dividends_calculated",
            extra={
                "year": year,
                "dividend_count": len(dividends),
                "dividend_per_lease": str(per_lease),
                "total": str(sum((Decimal(d.dividend_amount) for d in dividends), Decimal("0"))),
            },
        )
        return dividends

    def _log_pool_transition(
        self, ctx: CallerContext, pool: InvestmentPoolModel, previous: str,
    ) -> None:
        if previous != pool.status:
            self._transitions.record(
                ctx, "InvestmentPool", pool.id, previous, pool.status,
                "calculate_dividends",
            )
