"""
Store capabilities.

The entity store is generic over *what a record can do*, not over a shared
base class.  Each protocol names one capability; the store inspects the
model class once and only applies the behaviors it supports:

    Identified      -> id assignment, lookups by id
    TenantScoped    -> tenant filter on reads, tenant forced on writes
    SoftDeletable   -> default reads skip deleted rows, delete flags the row
    SampleTaggable  -> sample-data flag inferred from parents on create
    AuditStamped    -> creator / modifier stamps

ORM models obtain the attributes from the mixins in ``rental_kernel.db.base``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID


@runtime_checkable
class Identified(Protocol):
    id: UUID | None


@runtime_checkable
class TenantScoped(Protocol):
    tenant_id: UUID


@runtime_checkable
class SoftDeletable(Protocol):
    is_deleted: bool


@runtime_checkable
class SampleTaggable(Protocol):
    is_sample_data: bool


@runtime_checkable
class AuditStamped(Protocol):
    created_at: datetime
    created_by_id: UUID
    updated_at: datetime | None
    updated_by_id: UUID | None


@dataclass(frozen=True)
class CapabilitySet:
    """Capabilities detected on a model class."""

    tenant_scoped: bool
    soft_deletable: bool
    sample_taggable: bool
    audit_stamped: bool

    @classmethod
    def of(cls, model: type) -> CapabilitySet:
        # Protocol isinstance checks need an instance; mapped classes expose
        # their columns as class attributes, so test attribute presence.
        def has(*names: str) -> bool:
            return all(hasattr(model, name) for name in names)

        return cls(
            tenant_scoped=has("tenant_id"),
            soft_deletable=has("is_deleted"),
            sample_taggable=has("is_sample_data"),
            audit_stamped=has(
                "created_at", "created_by_id", "updated_at", "updated_by_id"
            ),
        )
