"""
WorkflowOrchestrator -- DI container for the recurring workflow system.

Contract:
    Wires the ModuleRegistry with every rule module, the StoreFactory with
    the parent-link registry, and builds TenantPassExecutor and
    WorkflowScheduler instances.  Single place where batch dependencies are
    composed.

Invariants enforced:
    - Clock injection (stores, executor and scheduler share one Clock).
    - Every configured module key is registered (checked at build time).
    - Nothing in rental_kernel / rental_modules imports from here.
"""

from __future__ import annotations

import threading
from datetime import tzinfo
from typing import Callable, Mapping
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from rental_config.schema import AppSettings
from rental_kernel.domain.clock import Clock, SystemClock
from rental_kernel.logging_config import get_logger
from rental_kernel.services.entity_store import StoreFactory
from rental_kernel.services.notifications import LoggingNotifier, Notifier
from rental_modules.leasing.config import LeasingConfig
from rental_modules.sample_links import default_sample_links

from rental_batch.domain.types import TriggerKind, TriggerSchedule
from rental_batch.services.coordinator import RunCoordinator
from rental_batch.services.executor import TenantPassExecutor
from rental_batch.services.scheduler import WorkflowScheduler
from rental_batch.tasks.base import ModuleRegistry

# Rule module implementations
from rental_batch.tasks.billing_tasks import InvoiceAgingModule, PaymentReminderModule
from rental_batch.tasks.deposit_tasks import DividendTriggerModule
from rental_batch.tasks.leasing_tasks import (
    LeaseExpiryModule,
    OfferExpiryModule,
    RenewalLadderModule,
    UpcomingExpirationsModule,
)
from rental_batch.tasks.prospect_tasks import ApplicationExpiryModule, TourNoShowModule
from rental_batch.tasks.reporting_tasks import DailyPaymentTotalModule, InspectionsDueModule

logger = get_logger("batch.orchestrator")


DEFAULT_SCHEDULES: tuple[TriggerSchedule, ...] = (
    TriggerSchedule(
        trigger=TriggerKind.NIGHTLY,
        cron_expression="0 2 * * *",
        run_on_startup=True,
        module_keys=(
            "billing.invoice_aging",
            "billing.payment_reminders",
            "leasing.renewal_ladder",
            "leasing.lease_expiry",
        ),
    ),
    TriggerSchedule(
        trigger=TriggerKind.MIDNIGHT,
        cron_expression="0 0 * * *",
        module_keys=(
            "reporting.daily_payment_total",
            "reporting.inspections_due",
            "applications.application_expiry",
            "leasing.offer_expiry",
            "deposits.dividend_trigger",
        ),
    ),
    TriggerSchedule(
        trigger=TriggerKind.HOURLY,
        cron_expression="0 * * * *",
        run_on_startup=True,
        module_keys=(
            "showings.tour_no_show",
            "leasing.upcoming_expirations",
        ),
    ),
)


def default_module_registry(leasing: LeasingConfig | None = None) -> ModuleRegistry:
    """Create a ModuleRegistry pre-loaded with every rule module."""
    leasing = leasing or LeasingConfig.with_defaults()
    registry = ModuleRegistry()
    registry.register(InvoiceAgingModule())
    registry.register(PaymentReminderModule())
    registry.register(RenewalLadderModule(leasing))
    registry.register(LeaseExpiryModule())
    registry.register(DailyPaymentTotalModule())
    registry.register(InspectionsDueModule())
    registry.register(ApplicationExpiryModule())
    registry.register(OfferExpiryModule())
    registry.register(DividendTriggerModule())
    registry.register(TourNoShowModule())
    registry.register(UpcomingExpirationsModule(leasing))
    return registry


def schedules_from_settings(settings: AppSettings) -> tuple[TriggerSchedule, ...]:
    """Trigger schedules from settings; packaged defaults when none are set.

    Raises:
        ValueError: a trigger name is not a ``TriggerKind``.
    """
    if not settings.scheduler.triggers:
        return DEFAULT_SCHEDULES
    return tuple(
        TriggerSchedule(
            trigger=TriggerKind(t.name),
            cron_expression=t.cron,
            module_keys=t.modules,
            run_on_startup=t.run_on_startup,
            is_active=t.enabled,
        )
        for t in settings.scheduler.triggers
    )


class WorkflowOrchestrator:
    """DI container for the recurring workflow system.

    Contract:
        - ``from_settings()`` factory creates a fully wired orchestrator.
        - ``create_executor()`` returns a TenantPassExecutor for ad-hoc runs.
        - ``create_scheduler()`` returns a WorkflowScheduler for background use.

    Non-goals:
        - Does NOT start the scheduler automatically -- caller decides.
        - Does NOT create tables or provision tenants.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        module_registry: ModuleRegistry,
        stores: StoreFactory,
        schedules: tuple[TriggerSchedule, ...] = DEFAULT_SCHEDULES,
        notifier: Notifier | None = None,
        timezone: tzinfo | None = None,
        poll_interval_seconds: float = 30.0,
    ) -> None:
        self._session_factory = session_factory
        self._registry = module_registry
        self._stores = stores
        self._schedules = schedules
        self._notifier = notifier or LoggingNotifier()
        self._tz = timezone
        self._poll_interval = poll_interval_seconds
        self._coordinator = RunCoordinator()

        # Fail at wiring time, not on the first fire.
        for schedule in schedules:
            for key in schedule.module_keys:
                module_registry.get(key)

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def from_settings(
        cls,
        session_factory: Callable[[], Session],
        settings: AppSettings | None = None,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
        module_registry: ModuleRegistry | None = None,
    ) -> WorkflowOrchestrator:
        """Create a fully wired orchestrator.

        Args:
            session_factory: Callable returning a new session per unit of work.
            settings: Loaded settings; packaged defaults when None.
            clock: Optional clock for deterministic testing.
            notifier: Where rule modules send notifications.
            module_registry: Optional pre-configured registry.  If None,
                uses the default registry with every rule module.
        """
        settings = settings or AppSettings()
        ladder = settings.renewal_ladder
        registry = module_registry if module_registry is not None else (
            default_module_registry(
                LeasingConfig(
                    renewal_window_tolerance_days=ladder.window_tolerance_days,
                    upcoming_expiration_days=ladder.upcoming_expiration_days,
                )
            )
        )
        tz = ZoneInfo(settings.scheduler.timezone) if settings.scheduler.timezone else None
        stores = StoreFactory(
            clock=clock or SystemClock(),
            soft_delete_enabled=settings.store.soft_delete_enabled,
            sample_links=default_sample_links(),
            timezone=tz,
        )

        orchestrator = cls(
            session_factory=session_factory,
            module_registry=registry,
            stores=stores,
            schedules=schedules_from_settings(settings),
            notifier=notifier,
            timezone=tz,
            poll_interval_seconds=settings.scheduler.poll_interval_seconds,
        )
        logger.info(
            "workflow_orchestrator_built",
            extra={
                "modules": list(registry.list_modules()),
                "triggers": [s.trigger.value for s in orchestrator.schedules],
                "timezone": settings.scheduler.timezone,
            },
        )
        return orchestrator

    # -------------------------------------------------------------------------
    # Executor / Scheduler
    # -------------------------------------------------------------------------

    def create_executor(
        self, stop_event: threading.Event | None = None,
    ) -> TenantPassExecutor:
        return TenantPassExecutor(
            session_factory=self._session_factory,
            module_registry=self._registry,
            stores=self._stores,
            notifier=self._notifier,
            timezone=self._tz,
            stop_event=stop_event,
        )

    def create_scheduler(
        self, poll_interval_seconds: float | None = None,
    ) -> WorkflowScheduler:
        """Scheduler with its own executor and stop signal.

        All schedulers built by one orchestrator share its RunCoordinator.
        """
        return WorkflowScheduler(
            executor=self.create_executor(),
            schedules=self._schedules,
            clock=self._stores.clock,
            coordinator=self._coordinator,
            timezone=self._tz,
            poll_interval_seconds=(
                poll_interval_seconds
                if poll_interval_seconds is not None
                else self._poll_interval
            ),
        )

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def stores(self) -> StoreFactory:
        return self._stores

    @property
    def clock(self) -> Clock:
        return self._stores.clock

    @property
    def module_registry(self) -> ModuleRegistry:
        return self._registry

    @property
    def schedules(self) -> tuple[TriggerSchedule, ...]:
        return self._schedules

    @property
    def pipelines(self) -> Mapping[TriggerKind, tuple[str, ...]]:
        return {s.trigger: s.module_keys for s in self._schedules}
