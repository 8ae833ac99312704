"""Prospects module: leads, property tours and rental applications."""

from rental_modules.prospects.models import (
    ApplicationStatus,
    ProspectStatus,
    TourStatus,
)
from rental_modules.prospects.workflows import (
    APPLICATION_WORKFLOW,
    PROSPECT_WORKFLOW,
    TOUR_WORKFLOW,
)

__all__ = [
    "ApplicationStatus",
    "ProspectStatus",
    "TourStatus",
    "APPLICATION_WORKFLOW",
    "PROSPECT_WORKFLOW",
    "TOUR_WORKFLOW",
]
