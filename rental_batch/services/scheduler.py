"""
WorkflowScheduler -- In-process polling scheduler for the recurring triggers.

Contract:
    Polls on a configurable interval, evaluates ``should_fire()`` (pure)
    against local wall-clock time from the injected Clock, and dispatches
    due triggers on worker threads through the ``RunCoordinator``.

Invariants enforced:
    - All timestamps from injected Clock, converted to the configured zone.
    - Schedule evaluation is pure (should_fire / compute_next_run).
    - A trigger still running when it comes due again is skipped.
    - Graceful shutdown: ``stop()`` raises the shared stop signal; in-flight
      passes finish their current tenant and return.
"""

from __future__ import annotations

import threading
from datetime import datetime, tzinfo
from typing import Sequence

from rental_kernel.domain.clock import Clock, local_now
from rental_kernel.exceptions import WorkflowError
from rental_kernel.logging_config import get_logger

from rental_batch.domain.schedule import arm, compute_next_run, should_fire
from rental_batch.domain.types import TriggerKind, TriggerRunResult, TriggerSchedule
from rental_batch.services.coordinator import RunCoordinator
from rental_batch.services.executor import TenantPassExecutor

logger = get_logger("batch.scheduler")


class WorkflowScheduler:
    """Fires trigger passes on their cron schedules.

    Contract:
        - ``tick()`` evaluates all triggers, dispatches due ones.
        - ``start()`` / ``stop()`` for background thread operation;
          ``start()`` also dispatches triggers flagged ``run_on_startup``.
        - ``run_now()`` runs one trigger synchronously.

    Non-goals:
        - NOT a distributed scheduler (no leader election).
        - Does NOT replay occurrences missed while the process was down.
    """

    def __init__(
        self,
        executor: TenantPassExecutor,
        schedules: Sequence[TriggerSchedule],
        clock: Clock,
        coordinator: RunCoordinator | None = None,
        timezone: tzinfo | None = None,
        poll_interval_seconds: float = 30.0,
    ):
        self._executor = executor
        self._clock = clock
        self._coordinator = coordinator or RunCoordinator()
        self._tz = timezone
        self._poll_interval = poll_interval_seconds
        self._stop_event = executor.stop_event
        self._lock = threading.Lock()
        self._schedules: dict[TriggerKind, TriggerSchedule] = {
            s.trigger: s for s in schedules
        }
        self._workers: list[threading.Thread] = []
        self._last_results: dict[TriggerKind, TriggerRunResult] = {}
        self._thread: threading.Thread | None = None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def tick(self) -> int:
        """Evaluate and dispatch due triggers (public for testing).

        Returns the number of triggers dispatched.
        """
        now = self._local_now()
        due: list[TriggerSchedule] = []
        with self._lock:
            for trigger, schedule in self._schedules.items():
                if schedule.is_active and schedule.next_run_at is None:
                    schedule = arm(schedule, now)
                    self._schedules[trigger] = schedule
                if not should_fire(schedule, now):
                    continue
                self._schedules[trigger] = schedule.fired(
                    now, compute_next_run(schedule.cron_expression, now),
                )
                due.append(schedule)

        fired = 0
        for schedule in due:
            if self._stop_event.is_set():
                break
            if self._dispatch(schedule, reason="schedule"):
                fired += 1
        return fired

    def start(self) -> None:
        """Start polling in a background thread and fire startup triggers."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        now = self._local_now()
        with self._lock:
            for trigger, schedule in self._schedules.items():
                if schedule.is_active:
                    self._schedules[trigger] = arm(schedule, now)
            startup = [
                s for s in self._schedules.values()
                if s.is_active and s.run_on_startup
            ]

        self._thread = threading.Thread(
            target=self._run_loop,
            name="workflow-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            "scheduler_started",
            extra={
                "poll_interval": self._poll_interval,
                "triggers": {
                    s.trigger.value: s.next_run_at for s in self.schedules
                },
            },
        )

        for schedule in startup:
            self._dispatch(schedule, reason="startup")

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop, stop polling and wait for in-flight passes.

        Args:
            timeout: Max seconds to wait for each thread to finish.
        """
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self.wait_idle(timeout)
        logger.info("scheduler_stopped")

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Join worker threads started so far; True when all finished."""
        with self._lock:
            workers = list(self._workers)
        for worker in workers:
            worker.join(timeout=timeout)
        with self._lock:
            self._workers = [w for w in self._workers if w.is_alive()]
            return not self._workers

    def run_now(self, trigger: TriggerKind) -> TriggerRunResult:
        """Run ``trigger`` synchronously on the calling thread.

        Raises:
            TriggerBusyError: a pass of ``trigger`` is already in flight.
        """
        schedule = self._schedule(trigger)
        with self._coordinator.exclusive(trigger):
            result = self._executor.run_trigger(trigger, schedule.module_keys)
        with self._lock:
            self._last_results[trigger] = result
        return result

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def coordinator(self) -> RunCoordinator:
        return self._coordinator

    @property
    def schedules(self) -> tuple[TriggerSchedule, ...]:
        with self._lock:
            return tuple(self._schedules.values())

    def last_result(self, trigger: TriggerKind) -> TriggerRunResult | None:
        with self._lock:
            return self._last_results.get(trigger)

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _local_now(self) -> datetime:
        return local_now(self._clock, self._tz)

    def _schedule(self, trigger: TriggerKind) -> TriggerSchedule:
        with self._lock:
            schedule = self._schedules.get(trigger)
        if schedule is None:
            raise WorkflowError(f"Trigger '{trigger.value}' is not configured")
        return schedule

    def _run_loop(self) -> None:
        """Background polling loop. Exits when stop_event is set."""
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("scheduler_tick_exception")
            # Wait for interval or until stopped
            self._stop_event.wait(timeout=self._poll_interval)

    def _dispatch(self, schedule: TriggerSchedule, reason: str) -> bool:
        trigger = schedule.trigger
        if not self._coordinator.try_begin(trigger):
            return False

        worker = threading.Thread(
            target=self._run_pass,
            args=(schedule,),
            name=f"trigger-{trigger.value}",
            daemon=True,
        )
        with self._lock:
            self._workers = [w for w in self._workers if w.is_alive()]
            self._workers.append(worker)
        logger.info(
            "trigger_dispatched",
            extra={"trigger": trigger.value, "reason": reason},
        )
        worker.start()
        return True

    def _run_pass(self, schedule: TriggerSchedule) -> None:
        trigger = schedule.trigger
        try:
            result = self._executor.run_trigger(trigger, schedule.module_keys)
            with self._lock:
                self._last_results[trigger] = result
        except Exception:
            logger.exception("trigger_pass_failed", extra={"trigger": trigger.value})
        finally:
            self._coordinator.end(trigger)
