"""
rental_batch.domain -- Pure types and schedule evaluation.

ZERO I/O.  All types are frozen dataclasses.
"""

from rental_batch.domain.types import (
    ModuleOutcome,
    ModuleRunResult,
    ModuleRunStatus,
    TriggerKind,
    TriggerRunResult,
    TriggerSchedule,
)

__all__ = [
    "ModuleOutcome",
    "ModuleRunResult",
    "ModuleRunStatus",
    "TriggerKind",
    "TriggerRunResult",
    "TriggerSchedule",
]
