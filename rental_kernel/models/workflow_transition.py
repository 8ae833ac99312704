"""
WorkflowTransitionModel -- append-only log of automated status changes.

Each row records one transition a rule module (or a domain service) made:
which record, from which status to which, the action name and a reason.
Rows are written through ``EntityStore.create`` so they carry the acting
user (the system actor for scheduler passes) in ``created_by_id``.
"""

from uuid import UUID

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import AuditedRecord, UUIDString


class WorkflowTransitionModel(AuditedRecord):
    """ORM model for workflow transition log entries."""

    __tablename__ = "workflow_transitions"

    __table_args__ = (
        Index("idx_workflow_transitions_entity", "entity_type", "entity_id"),
    )

    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    from_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    to_status: Mapped[str] = mapped_column(String(50), nullable=False)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<WorkflowTransition {self.entity_type}:{self.entity_id} "
            f"{self.from_status}->{self.to_status}>"
        )
