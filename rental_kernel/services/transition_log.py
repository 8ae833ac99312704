"""TransitionLog -- records workflow status changes via the entity store."""

from __future__ import annotations

from enum import Enum
from uuid import UUID

from sqlalchemy.orm import Session

from rental_kernel.domain.context import CallerContext
from rental_kernel.logging_config import get_logger
from rental_kernel.models.workflow_transition import WorkflowTransitionModel
from rental_kernel.services.entity_store import StoreFactory

logger = get_logger("services.transition_log")


def _status_text(status: str | Enum | None) -> str | None:
    if isinstance(status, Enum):
        return status.value
    return status


class TransitionLog:
    """Appends ``WorkflowTransitionModel`` rows."""

    def __init__(self, session: Session, stores: StoreFactory):
        self._store = stores.for_model(session, WorkflowTransitionModel)

    def record(
        self,
        ctx: CallerContext,
        entity_type: str,
        entity_id: UUID,
        from_status: str | Enum | None,
        to_status: str | Enum,
        action: str,
        reason: str | None = None,
    ) -> WorkflowTransitionModel:
        entry = WorkflowTransitionModel(
            entity_type=entity_type,
            entity_id=entity_id,
            from_status=_status_text(from_status),
            to_status=_status_text(to_status),
            action=action,
            reason=reason,
        )
        self._store.create(ctx, entry)
        logger.info(
            "workflow_transition",
            extra={
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "from_status": entry.from_status,
                "to_status": entry.to_status,
                "action": action,
            },
        )
        return entry

    def history(
        self, ctx: CallerContext, entity_type: str, entity_id: UUID,
    ) -> list[WorkflowTransitionModel]:
        return self._store.get_all(
            ctx,
            WorkflowTransitionModel.entity_type == entity_type,
            WorkflowTransitionModel.entity_id == entity_id,
            order_by=WorkflowTransitionModel.created_at,
        )
