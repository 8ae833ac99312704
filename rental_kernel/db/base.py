"""
Module: rental_kernel.db.base
Responsibility: Declarative base and column mixins for all ORM models.
    Provides the UUID primary key convention, the type annotation map, and
    one mixin per store capability (tenant scope, soft delete, sample-data
    taint, audit stamps).
Architecture position: Kernel > DB.  Lowest-level import target; every
    model file imports from here.  MUST NOT import from models/, services/
    or outer packages.

Invariants enforced:
    - UUID primary keys generated with uuid4.
    - Decimal maps to Numeric(38, 9); money is never a float.
    - Audit columns exist on every ``AuditedRecord`` but carry no defaults
      of their own: the entity store is their only writer.

Failure modes:
    - IntegrityError if an insert skips the store and leaves created_at or
      created_by_id empty.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, Boolean, Date, DateTime, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Converts Python UUID objects to their 36-character string form on bind
    and back on load.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is a uuid4-generated UUID stored as String(36).
        - Decimal maps to Numeric(38, 9).
        - datetime maps to DateTime(timezone=True).
          Domain wall-clock columns pass a naive DateTime explicitly.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        date: Date,
        PyUUID: UUIDString(),
        int: BigInteger,
        bool: Boolean,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


# ---------------------------------------------------------------------------
# Capability mixins
# ---------------------------------------------------------------------------


class TenantScopedMixin:
    """Row belongs to exactly one tenant."""

    tenant_id: Mapped[PyUUID] = mapped_column(
        UUIDString(), nullable=False, index=True
    )


class SoftDeleteMixin:
    """Row can be hidden from default reads without being removed."""

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class SampleDataMixin:
    """Row is demo / test data; children inherit the flag on create."""

    is_sample_data: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )


class AuditStampMixin:
    """
    Creator / last-modifier audit metadata.

    Contract:
        Written exclusively by ``EntityStore``.  created_* are set once on
        create; updated_* are set on every update and on soft delete.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    created_by_id: Mapped[PyUUID] = mapped_column(UUIDString(), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    updated_by_id: Mapped[PyUUID | None] = mapped_column(
        UUIDString(), nullable=True
    )


class AuditedRecord(
    TenantScopedMixin, SoftDeleteMixin, SampleDataMixin, AuditStampMixin, Base
):
    """
    Abstract table shape shared by every tenant-owned domain entity.

    Composes the four capability mixins; the store itself only relies on
    the capabilities (see ``rental_kernel.domain.capabilities``), so a model
    may also pick individual mixins.
    """

    __abstract__ = True


UUID = PyUUID
