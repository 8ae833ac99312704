"""
Tenant policy access: provisioning, per-tenant reads, tenant enumeration.

``TenantDirectory`` is the one place that reads across tenants: it lists the
distinct tenant ids that own a live policy row.  Tenants without a policy
row are invisible to the scheduler.
"""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from rental_kernel.domain.context import CallerContext
from rental_kernel.domain.policy import TenantPolicy
from rental_kernel.exceptions import ValidationFailedError
from rental_kernel.logging_config import get_logger
from rental_kernel.models.tenant_policy import TenantPolicyModel
from rental_kernel.services.entity_store import StoreFactory

logger = get_logger("services.policy")


class PolicyService:
    """Creates and reads tenant policy rows through the entity store."""

    def __init__(self, session: Session, stores: StoreFactory):
        self._store = stores.for_model(session, TenantPolicyModel)

    def provision_tenant(
        self, ctx: CallerContext, name: str | None = None,
    ) -> TenantPolicy:
        """Create the default policy row for ``ctx.tenant_id`` (idempotent)."""
        tenant_id, _ = ctx.require()
        existing = self._store.get_all(ctx)
        if existing:
            return existing[0].to_dto()

        model = TenantPolicyModel.from_dto(TenantPolicy(tenant_id=tenant_id))
        model.name = name
        self._store.create(ctx, model)
        logger.info("tenant_provisioned", extra={"tenant_id": str(tenant_id)})
        return model.to_dto()

    def get_policy(self, ctx: CallerContext) -> TenantPolicy:
        """Policy of the caller's tenant; defaults when no row exists."""
        tenant_id, _ = ctx.require()
        rows = self._store.get_all(ctx)
        if not rows:
            logger.warning(
                "tenant_policy_missing", extra={"tenant_id": str(tenant_id)},
            )
            return TenantPolicy(tenant_id=tenant_id)
        return rows[0].to_dto()

    def update_policy(self, ctx: CallerContext, **changes) -> TenantPolicy:
        """Change individual policy fields of the caller's tenant."""
        rows = self._store.get_all(ctx)
        if not rows:
            self.provision_tenant(ctx)
            rows = self._store.get_all(ctx)
        row = rows[0]
        unknown = sorted(
            key for key in changes
            if key not in TenantPolicy.__dataclass_fields__ or key == "tenant_id"
        )
        if unknown:
            raise ValidationFailedError(
                f"Unknown policy fields: {', '.join(unknown)}",
                [f"Unknown policy field: {key}" for key in unknown],
            )
        try:
            replace(row.to_dto(), **changes)
        except ValueError as exc:
            raise ValidationFailedError(str(exc)) from exc
        for key, value in changes.items():
            setattr(row, key, value)
        self._store.update(ctx, row)
        return row.to_dto()


class TenantDirectory:
    """Lists tenants known to the scheduler."""

    def __init__(self, session: Session):
        self._session = session

    def list_tenant_ids(self) -> tuple[UUID, ...]:
        stmt = (
            select(TenantPolicyModel.tenant_id)
            .where(TenantPolicyModel.is_deleted.is_(False))
            .distinct()
            .order_by(TenantPolicyModel.tenant_id)
        )
        return tuple(self._session.execute(stmt).scalars().all())


class PolicyReader:
    """Read-only policy access for scheduler passes (system actor)."""

    def __init__(self, session: Session, stores: StoreFactory):
        self._service = PolicyService(session, stores)

    def get_policy(self, tenant_id: UUID) -> TenantPolicy:
        return self._service.get_policy(CallerContext.system(tenant_id))
