"""
Rental Kernel - tenant-scoped audited persistence.

Provides the pieces every domain object passes through:
- Audited entity store (create / read / update / soft-delete)
- Tenant isolation enforced at the store, never by callers
- Sample-data taint propagation on create
- Reserved system actor for scheduler-driven changes
"""

__version__ = "0.1.0"
