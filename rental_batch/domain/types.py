"""
rental_batch.domain.types -- Pure frozen dataclasses for the scheduler.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples for
immutable collections.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


# =============================================================================
# Status enums
# =============================================================================


class TriggerKind(str, Enum):
    """Recurring triggers the scheduler fires."""

    NIGHTLY = "nightly"  # 02:00 local, plus once at startup
    MIDNIGHT = "midnight"  # 00:00 local
    HOURLY = "hourly"  # top of every hour, plus once at startup


class ModuleRunStatus(str, Enum):
    """Outcome of one rule module for one tenant."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"  # Raised; the tenant x module unit was rolled back
    SKIPPED = "skipped"  # Disabled by policy or calendar gate


# =============================================================================
# Result DTOs
# =============================================================================


@dataclass(frozen=True)
class ModuleOutcome:
    """What a rule module reports back to the executor.

    ``changed`` counts records the module transitioned.  A module that
    decided not to act (feature off, outside its calendar window) sets
    ``skipped_reason``.
    """

    changed: int = 0
    skipped_reason: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def skipped(cls, reason: str) -> ModuleOutcome:
        return cls(skipped_reason=reason)


@dataclass(frozen=True)
class ModuleRunResult:
    """Immutable result of one tenant x module unit of work."""

    tenant_id: UUID
    module_key: str
    status: ModuleRunStatus
    changed: int = 0
    errors: tuple[str, ...] = ()
    details: dict[str, Any] = field(default_factory=dict)
    duration_ms: int = 0


@dataclass(frozen=True)
class TriggerRunResult:
    """Immutable result of one full pass of a trigger over all tenants."""

    run_id: UUID
    trigger: TriggerKind
    started_at: datetime
    completed_at: datetime
    tenant_count: int
    module_results: tuple[ModuleRunResult, ...] = ()
    stopped_early: bool = False
    duration_ms: int = 0

    @property
    def succeeded(self) -> int:
        return self._count(ModuleRunStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(ModuleRunStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(ModuleRunStatus.SKIPPED)

    @property
    def changed(self) -> int:
        return sum(r.changed for r in self.module_results)

    def for_tenant(self, tenant_id: UUID) -> tuple[ModuleRunResult, ...]:
        return tuple(r for r in self.module_results if r.tenant_id == tenant_id)

    def _count(self, status: ModuleRunStatus) -> int:
        return sum(1 for r in self.module_results if r.status is status)


# =============================================================================
# Schedule DTOs
# =============================================================================


@dataclass(frozen=True)
class TriggerSchedule:
    """Immutable snapshot of one trigger's timing state.

    ``next_run_at`` / ``last_run_at`` are wall-clock times in the
    scheduler's configured timezone.
    """

    trigger: TriggerKind
    cron_expression: str
    module_keys: tuple[str, ...] = ()
    run_on_startup: bool = False
    is_active: bool = True
    next_run_at: datetime | None = None
    last_run_at: datetime | None = None

    def fired(self, at: datetime, next_run_at: datetime | None) -> TriggerSchedule:
        return replace(self, last_run_at=at, next_run_at=next_run_at)
