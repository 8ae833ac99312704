"""
RuleModule protocol, per-tenant run context, and ModuleRegistry.

Contract:
    ``RuleModule`` defines the interface every domain rule module
    implements.  ``ModuleRegistry`` stores modules keyed by
    ``module_key``.

Rule modules are independent and idempotent: each selects the records
that need a transition *now*, applies it through the entity store under
the system actor, and is a no-op when run again with nothing new due.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.orm import Session

from rental_kernel.domain.clock import Clock
from rental_kernel.domain.context import CallerContext
from rental_kernel.domain.policy import TenantPolicy
from rental_kernel.exceptions import ModuleNotRegisteredError
from rental_kernel.services.entity_store import StoreFactory
from rental_kernel.services.notifications import Notifier

from rental_batch.domain.types import ModuleOutcome


# =============================================================================
# Run context
# =============================================================================


@dataclass(frozen=True)
class TenantRun:
    """Everything a rule module needs for one tenant pass.

    ``as_of`` is the pass's naive local wall-clock time; every module in
    the pass sees the same instant, compares domain datetime columns
    against it and stamps them with it.
    """

    session: Session
    ctx: CallerContext
    policy: TenantPolicy
    stores: StoreFactory
    notifier: Notifier
    as_of: datetime

    @property
    def tenant_id(self) -> UUID:
        return self.policy.tenant_id

    @property
    def today(self) -> date:
        return self.as_of.date()

    @property
    def clock(self) -> Clock:
        return self.stores.clock


# =============================================================================
# RuleModule Protocol
# =============================================================================


@runtime_checkable
class RuleModule(Protocol):
    """Protocol defining the interface for rule module implementations.

    Contract:
        - ``module_key``: unique string key registered in ModuleRegistry.
        - ``description``: human-readable label for logs.
        - ``run()``: evaluates one tenant; may raise, in which case the
          executor rolls back that tenant x module unit.

    Non-goals:
        - Does NOT commit -- the executor owns the transaction.
        - Does NOT loop over tenants.
    """

    @property
    def module_key(self) -> str: ...

    @property
    def description(self) -> str: ...

    def run(self, run: TenantRun) -> ModuleOutcome: ...


# =============================================================================
# ModuleRegistry
# =============================================================================


class ModuleRegistry:
    """Registry mapping module_key strings to RuleModule implementations.

    Contract:
        - ``register()`` adds a module; raises ValueError on duplicate.
        - ``get()`` retrieves by key; raises ModuleNotRegisteredError.
        - ``list_modules()`` returns all registered keys.
    """

    def __init__(self) -> None:
        self._modules: dict[str, RuleModule] = {}

    def register(self, module: RuleModule) -> None:
        if module.module_key in self._modules:
            raise ValueError(
                f"Rule module '{module.module_key}' is already registered"
            )
        self._modules[module.module_key] = module

    def get(self, module_key: str) -> RuleModule:
        try:
            return self._modules[module_key]
        except KeyError:
            raise ModuleNotRegisteredError(
                module_key, self.list_modules(),
            ) from None

    def list_modules(self) -> tuple[str, ...]:
        """Return all registered module keys, sorted."""
        return tuple(sorted(self._modules))

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, module_key: str) -> bool:
        return module_key in self._modules
