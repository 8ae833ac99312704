"""
TenantPassExecutor -- runs one trigger's rule modules over every tenant.

Contract:
    ``run_trigger(trigger, module_keys)`` enumerates tenants, then for each
    tenant runs each module in order.  Every tenant x module pair is its
    own unit of work: fresh session, commit on success, rollback on
    failure.

Invariants enforced:
    - Failure isolation: an exception in one unit is logged with tenant and
      module and recorded as FAILED; the pass continues.
    - System actor: every unit runs under ``CallerContext.system(tenant)``.
    - Clock injection: the whole pass shares one ``as_of`` read from the
      injected Clock, in the configured timezone, as the naive
      local wall-clock value that domain datetime columns hold.
    - Graceful shutdown: the stop signal is checked between tenants, never
      inside a unit.
"""

from __future__ import annotations

import threading
import time
from datetime import tzinfo
from typing import Callable, Sequence
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from rental_kernel.domain.clock import wall_clock_now
from rental_kernel.domain.context import SYSTEM_ACTOR_ID, CallerContext
from rental_kernel.domain.policy import TenantPolicy
from rental_kernel.logging_config import LogContext, get_logger
from rental_kernel.services.entity_store import StoreFactory
from rental_kernel.services.notifications import LoggingNotifier, Notifier
from rental_kernel.services.policy_service import PolicyReader, TenantDirectory

from rental_batch.domain.types import (
    ModuleRunResult,
    ModuleRunStatus,
    TriggerKind,
    TriggerRunResult,
)
from rental_batch.tasks.base import ModuleRegistry, RuleModule, TenantRun

logger = get_logger("batch.executor")


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class TenantPassExecutor:
    """Sequential tenant x module execution engine.

    Non-goals:
        - Does NOT decide when to run -- that is the scheduler's job.
        - Does NOT guard against concurrent passes -- see RunCoordinator.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        module_registry: ModuleRegistry,
        stores: StoreFactory,
        notifier: Notifier | None = None,
        timezone: tzinfo | None = None,
        stop_event: threading.Event | None = None,
    ):
        self._session_factory = session_factory
        self._registry = module_registry
        self._stores = stores
        self._notifier = notifier or LoggingNotifier()
        self._tz = timezone if timezone is not None else stores.timezone
        self._stop_event = stop_event or threading.Event()

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    # -------------------------------------------------------------------------
    # Execute
    # -------------------------------------------------------------------------

    def run_trigger(
        self, trigger: TriggerKind, module_keys: Sequence[str],
    ) -> TriggerRunResult:
        """Run ``module_keys`` for every tenant.

        Raises:
            ModuleNotRegisteredError: a key is unknown (checked before any
                tenant is touched).
        """
        modules = [self._registry.get(key) for key in module_keys]
        run_id = uuid4()
        clock = self._stores.clock
        started_at = clock.now()
        started = time.monotonic()
        as_of = wall_clock_now(clock, self._tz)

        results: list[ModuleRunResult] = []
        stopped_early = False

        with LogContext.bind(
            run_id=run_id, trigger=trigger.value, actor_id=SYSTEM_ACTOR_ID,
        ):
            tenant_ids = self._list_tenants()
            logger.info(
                "trigger_pass_started",
                extra={
                    "tenant_count": len(tenant_ids),
                    "module_keys": list(module_keys),
                    "as_of": as_of,
                },
            )

            for index, tenant_id in enumerate(tenant_ids):
                if self._stop_event.is_set():
                    stopped_early = True
                    logger.warning(
                        "trigger_pass_interrupted",
                        extra={"remaining_tenants": len(tenant_ids) - index},
                    )
                    break
                with LogContext.bind(tenant_id=tenant_id):
                    results.extend(self._run_tenant(tenant_id, modules, as_of))

            result = TriggerRunResult(
                run_id=run_id,
                trigger=trigger,
                started_at=started_at,
                completed_at=clock.now(),
                tenant_count=len(tenant_ids),
                module_results=tuple(results),
                stopped_early=stopped_early,
                duration_ms=_elapsed_ms(started),
            )
            logger.info(
                "trigger_pass_completed",
                extra={
                    "succeeded": result.succeeded,
                    "failed": result.failed,
                    "skipped": result.skipped,
                    "changed": result.changed,
                    "stopped_early": stopped_early,
                    "duration_ms": result.duration_ms,
                },
            )
        return result

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _list_tenants(self) -> tuple[UUID, ...]:
        session = self._session_factory()
        try:
            return TenantDirectory(session).list_tenant_ids()
        finally:
            session.close()

    def _run_tenant(
        self, tenant_id: UUID, modules: list[RuleModule], as_of,
    ) -> list[ModuleRunResult]:
        try:
            policy = self._read_policy(tenant_id)
        except Exception as exc:
            logger.exception("tenant_policy_read_failed")
            return [
                ModuleRunResult(
                    tenant_id=tenant_id,
                    module_key=module.module_key,
                    status=ModuleRunStatus.FAILED,
                    errors=(f"policy unavailable: {exc}",),
                )
                for module in modules
            ]
        return [self._run_module(module, policy, as_of) for module in modules]

    def _read_policy(self, tenant_id: UUID) -> TenantPolicy:
        session = self._session_factory()
        try:
            return PolicyReader(session, self._stores).get_policy(tenant_id)
        finally:
            session.close()

    def _run_module(
        self, module: RuleModule, policy: TenantPolicy, as_of,
    ) -> ModuleRunResult:
        tenant_id = policy.tenant_id
        started = time.monotonic()
        session = self._session_factory()
        with LogContext.bind(module_key=module.module_key):
            try:
                outcome = module.run(
                    TenantRun(
                        session=session,
                        ctx=CallerContext.system(tenant_id),
                        policy=policy,
                        stores=self._stores,
                        notifier=self._notifier,
                        as_of=as_of,
                    )
                )
                session.commit()
            except Exception as exc:
                session.rollback()
                logger.exception(
                    "rule_module_failed",
                    extra={
                        "tenant_id": str(tenant_id),
                        "module_key": module.module_key,
                    },
                )
                return ModuleRunResult(
                    tenant_id=tenant_id,
                    module_key=module.module_key,
                    status=ModuleRunStatus.FAILED,
                    errors=(f"{type(exc).__name__}: {exc}",),
                    duration_ms=_elapsed_ms(started),
                )
            finally:
                session.close()

            status = (
                ModuleRunStatus.SKIPPED
                if outcome.skipped_reason is not None
                else ModuleRunStatus.SUCCEEDED
            )
            logger.debug(
                "rule_module_completed",
                extra={
                    "status": status.value,
                    "changed": outcome.changed,
                    "skipped_reason": outcome.skipped_reason,
                },
            )
            return ModuleRunResult(
                tenant_id=tenant_id,
                module_key=module.module_key,
                status=status,
                changed=outcome.changed,
                details=dict(outcome.details),
                duration_ms=_elapsed_ms(started),
            )
