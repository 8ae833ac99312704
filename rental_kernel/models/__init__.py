"""Kernel ORM models."""

from rental_kernel.models.tenant_policy import TenantPolicyModel
from rental_kernel.models.workflow_transition import WorkflowTransitionModel

__all__ = [
    "TenantPolicyModel",
    "WorkflowTransitionModel",
]
