"""
EntityStore -- tenant-isolated, audited persistence for one entity type.

Responsibility:
    The only writer of domain records.  Every create / update / delete made
    by a domain service or a rule module goes through ``EntityStore`` so
    that tenant isolation, soft delete and audit stamping cannot be skipped.

Architecture position:
    Kernel > Services.  Generic over a model class; behavior is selected by
    the capabilities the model exposes (``CapabilitySet``), not by a
    common base class.

Invariants enforced:
    - Every operation requires a tenant and an actor (UnauthenticatedError
      before any data access).
    - Reads never return soft-deleted rows or rows of another tenant.
    - Writes force the caller's tenant onto the record; an id owned by
      another tenant fails with ForbiddenError.
    - created_* / updated_* are stamped here from the injected Clock and
      never copied from caller input.
    - Stores flush, never commit.

Failure modes:
    - UnauthenticatedError: context lacks tenant or actor.
    - RecordNotFoundError: update / delete of an absent or deleted id.
    - ForbiddenError: update / delete of another tenant's record.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Any, Generic, TypeVar
from uuid import UUID, uuid4

from sqlalchemy import ColumnElement, func, inspect, select
from sqlalchemy.orm import Session

from rental_kernel.domain.capabilities import CapabilitySet, Identified
from rental_kernel.domain.clock import Clock, SystemClock, wall_clock_now
from rental_kernel.domain.context import CallerContext
from rental_kernel.exceptions import ForbiddenError, RecordNotFoundError
from rental_kernel.logging_config import get_logger
from rental_kernel.services.base import BaseService
from rental_kernel.services.sample_data import SampleDataResolver, SampleLinkRegistry

logger = get_logger("services.entity_store")

RecordT = TypeVar("RecordT", bound=Identified)

# Columns that only the store may write.
_PROTECTED_COLUMNS = frozenset({
    "id",
    "tenant_id",
    "is_deleted",
    "created_at",
    "created_by_id",
    "updated_at",
    "updated_by_id",
})


def _persisted_value(record: Any, attr: str) -> Any:
    """Value of ``attr`` as last loaded from the database.

    Pending in-memory edits are ignored, so a caller that rewrites
    ``tenant_id`` on a loaded record cannot make it look like its own.
    """
    state = inspect(record)
    if state.persistent:
        history = state.attrs[attr].history
        if history.deleted:
            return history.deleted[0]
    return getattr(record, attr)


class EntityStore(BaseService, Generic[RecordT]):
    """
    Audited CRUD for a single model class.

    Contract:
        get_by_id / get_all / count read; create / update / delete write.
        Every call takes the ``CallerContext`` first.

    Non-goals:
        - Does NOT commit; batched changes are committed by the caller.
        - Does NOT apply business rules; domain services do.
    """

    def __init__(
        self,
        session: Session,
        model: type[RecordT],
        clock: Clock | None = None,
        soft_delete_enabled: bool = True,
        sample_resolver: SampleDataResolver | None = None,
    ):
        super().__init__(session)
        self._model = model
        self._caps = CapabilitySet.of(model)
        self._clock = clock or SystemClock()
        self._soft_delete = soft_delete_enabled and self._caps.soft_deletable
        self._sample_resolver = sample_resolver
        self._entity_type = model.__name__.removesuffix("Model")

    @property
    def model(self) -> type[RecordT]:
        return self._model

    @property
    def capabilities(self) -> CapabilitySet:
        return self._caps

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_by_id(self, ctx: CallerContext, record_id: UUID) -> RecordT | None:
        """Return the live record with ``record_id`` in the caller's tenant.

        Soft-deleted records and records of other tenants read as None.
        """
        tenant_id, _ = ctx.require()
        with self.session.no_autoflush:
            record = self.session.get(self._model, record_id)
        if record is None or self._is_deleted(record):
            return None
        if self._caps.tenant_scoped and _persisted_value(record, "tenant_id") != tenant_id:
            logger.warning(
                "cross_tenant_read_blocked",
                extra={
                    "entity_type": self._entity_type,
                    "record_id": str(record_id),
                    "caller_tenant_id": str(tenant_id),
                },
            )
            return None
        return record

    def get_all(
        self,
        ctx: CallerContext,
        *criteria: ColumnElement[bool],
        order_by: Any = None,
    ) -> list[RecordT]:
        """Return live records of the caller's tenant matching ``criteria``."""
        tenant_id, _ = ctx.require()
        stmt = self._scoped_select(tenant_id).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        return list(self.session.execute(stmt).scalars().all())

    def count(self, ctx: CallerContext, *criteria: ColumnElement[bool]) -> int:
        """Number of live records of the caller's tenant matching ``criteria``."""
        tenant_id, _ = ctx.require()
        scoped = self._scoped_select(tenant_id).where(*criteria).subquery()
        stmt = select(func.count()).select_from(scoped)
        return int(self.session.execute(stmt).scalar_one())

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create(self, ctx: CallerContext, record: RecordT) -> RecordT:
        """Persist a new record owned by the caller's tenant."""
        tenant_id, actor_id = ctx.require()

        if self._caps.tenant_scoped:
            # Context wins over whatever the caller put on the record.
            record.tenant_id = tenant_id
        if record.id is None:
            record.id = uuid4()
        if self._caps.soft_deletable:
            record.is_deleted = False
        if self._caps.audit_stamped:
            record.created_at = self._clock.now()
            record.created_by_id = actor_id
            record.updated_at = None
            record.updated_by_id = None
        if self._caps.sample_taggable:
            record.is_sample_data = bool(record.is_sample_data)
            if self._sample_resolver is not None:
                record.is_sample_data = self._sample_resolver.infer_sample_flag(
                    ctx, record,
                )

        self.session.add(record)
        self.session.flush()

        logger.debug(
            "record_created",
            extra={
                "entity_type": self._entity_type,
                "record_id": str(record.id),
                "created_by_id": str(actor_id),
            },
        )
        return record

    def update(self, ctx: CallerContext, record: RecordT) -> RecordT:
        """Overwrite an existing record's fields and stamp the modifier.

        ``record`` may be the loaded instance itself or a detached copy
        carrying the same id.
        """
        tenant_id, actor_id = ctx.require()
        existing = self._load_owned(record.id, tenant_id)

        if record is not existing:
            for attr in inspect(self._model).column_attrs:
                if attr.key not in _PROTECTED_COLUMNS:
                    setattr(existing, attr.key, getattr(record, attr.key))

        if self._caps.tenant_scoped:
            existing.tenant_id = tenant_id
        self._stamp_modified(existing, actor_id)
        self.session.flush()

        logger.debug(
            "record_updated",
            extra={
                "entity_type": self._entity_type,
                "record_id": str(existing.id),
                "updated_by_id": str(actor_id),
            },
        )
        return existing

    def delete(self, ctx: CallerContext, record_id: UUID) -> bool:
        """Soft-delete (or, when disabled, remove) a record."""
        tenant_id, actor_id = ctx.require()
        existing = self._load_owned(record_id, tenant_id)

        if self._soft_delete:
            existing.is_deleted = True
            self._stamp_modified(existing, actor_id)
        else:
            self.session.delete(existing)
        self.session.flush()

        logger.info(
            "record_deleted",
            extra={
                "entity_type": self._entity_type,
                "record_id": str(record_id),
                "soft": self._soft_delete,
                "deleted_by_id": str(actor_id),
            },
        )
        return True

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _scoped_select(self, tenant_id: UUID):
        stmt = select(self._model)
        if self._caps.soft_deletable:
            stmt = stmt.where(self._model.is_deleted.is_(False))
        if self._caps.tenant_scoped:
            stmt = stmt.where(self._model.tenant_id == tenant_id)
        return stmt

    def _is_deleted(self, record: RecordT) -> bool:
        return self._caps.soft_deletable and bool(
            _persisted_value(record, "is_deleted")
        )

    def _load_owned(self, record_id: UUID | None, tenant_id: UUID) -> RecordT:
        """Load a live record and verify the caller's tenant owns it."""
        if record_id is None:
            raise RecordNotFoundError(self._entity_type, "None")
        with self.session.no_autoflush:
            existing = self.session.get(self._model, record_id)
        if existing is None or self._is_deleted(existing):
            raise RecordNotFoundError(self._entity_type, str(record_id))
        if self._caps.tenant_scoped:
            owner = _persisted_value(existing, "tenant_id")
            if owner != tenant_id:
                logger.warning(
                    "cross_tenant_write_rejected",
                    extra={
                        "entity_type": self._entity_type,
                        "record_id": str(record_id),
                        "caller_tenant_id": str(tenant_id),
                    },
                )
                raise ForbiddenError(
                    self._entity_type, str(record_id), str(tenant_id),
                )
        return existing

    def _stamp_modified(self, record: RecordT, actor_id: UUID) -> None:
        if self._caps.audit_stamped:
            record.updated_at = self._clock.now()
            record.updated_by_id = actor_id


class StoreFactory:
    """
    Builds ``EntityStore`` instances sharing one clock, delete policy and
    parent-link table.

    ``timezone`` is the zone domain datetime columns are written in; see
    ``wall_clock_now``.  Audit stamps stay aware instants from the clock.

    One factory lives for the whole process; stores are cheap and bound to
    the session of the operation that needs them.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        soft_delete_enabled: bool = True,
        sample_links: SampleLinkRegistry | None = None,
        timezone: tzinfo | None = None,
    ):
        self._clock = clock or SystemClock()
        self._tz = timezone
        self._soft_delete_enabled = soft_delete_enabled
        self._sample_links = sample_links or SampleLinkRegistry()

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def timezone(self) -> tzinfo | None:
        return self._tz

    @property
    def sample_links(self) -> SampleLinkRegistry:
        return self._sample_links

    def wall_clock_now(self) -> datetime:
        """Current naive local time, the frame of domain datetime columns."""
        return wall_clock_now(self._clock, self._tz)

    def for_model(self, session: Session, model: type[RecordT]) -> EntityStore[RecordT]:
        return EntityStore(
            session,
            model,
            clock=self._clock,
            soft_delete_enabled=self._soft_delete_enabled,
            sample_resolver=SampleDataResolver(session, self._sample_links),
        )
