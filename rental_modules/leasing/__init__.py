"""Leasing module: leases, renewal ladder and lease offers."""

from rental_modules.leasing.config import LeasingConfig
from rental_modules.leasing.models import (
    RENEWAL_LADDER,
    LeaseOfferStatus,
    LeaseStatus,
    RenewalStage,
    RenewalStatus,
)
from rental_modules.leasing.workflows import LEASE_OFFER_WORKFLOW, LEASE_WORKFLOW

__all__ = [
    "LeasingConfig",
    "RENEWAL_LADDER",
    "LeaseOfferStatus",
    "LeaseStatus",
    "RenewalStage",
    "RenewalStatus",
    "LEASE_OFFER_WORKFLOW",
    "LEASE_WORKFLOW",
]
