"""Caller identity and the reserved system actor."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from rental_kernel.exceptions import UnauthenticatedError

SYSTEM_ACTOR_ID = UUID("00000000-0000-0000-0000-000000000001")
SYSTEM_ACTOR_NAME = "System"


@dataclass(frozen=True)
class CallerContext:
    """
    Who is calling, on behalf of which tenant.

    Every store operation receives one.  Scheduler-driven changes use
    ``CallerContext.system(tenant_id)`` so audit stamps carry the reserved
    system actor instead of a human user.
    """

    tenant_id: UUID | None
    actor_id: UUID | None

    @classmethod
    def system(cls, tenant_id: UUID) -> CallerContext:
        return cls(tenant_id=tenant_id, actor_id=SYSTEM_ACTOR_ID)

    @property
    def is_system(self) -> bool:
        return self.actor_id == SYSTEM_ACTOR_ID

    def require(self) -> tuple[UUID, UUID]:
        """Return ``(tenant_id, actor_id)`` or raise UnauthenticatedError."""
        if self.actor_id is None:
            raise UnauthenticatedError("actor_id")
        if self.tenant_id is None:
            raise UnauthenticatedError("tenant_id")
        return self.tenant_id, self.actor_id
