"""
rental_batch.tasks -- Rule module protocol, registry, and implementations.

Module files import from their respective rental_modules packages.
"""

from rental_batch.tasks.base import (
    ModuleRegistry,
    RuleModule,
    TenantRun,
)

__all__ = [
    "ModuleRegistry",
    "RuleModule",
    "TenantRun",
]
