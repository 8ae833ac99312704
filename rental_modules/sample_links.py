"""
Parent links used to infer ``is_sample_data`` on new records.

A record created under a sample unit, lease, invoice, contact, prospect or
application is itself sample data.  Links are listed in the order the
resolver consults them; the first sample parent found wins.
"""

from rental_kernel.services.sample_data import ParentLink, SampleLinkRegistry
from rental_modules.billing.orm import InvoiceModel, PaymentModel
from rental_modules.deposits.orm import DepositDividendModel, SecurityDepositModel
from rental_modules.leasing.orm import LeaseModel, LeaseOfferModel
from rental_modules.properties.orm import ContactModel, UnitModel
from rental_modules.prospects.orm import (
    ProspectModel,
    RentalApplicationModel,
    TourModel,
)


def default_sample_links() -> SampleLinkRegistry:
    """Registry covering every child model in ``rental_modules``."""
    registry = SampleLinkRegistry()
    registry.register(
        LeaseModel,
        ParentLink("unit_id", UnitModel),
        ParentLink("contact_id", ContactModel),
    )
    registry.register(
        InvoiceModel,
        ParentLink("unit_id", UnitModel),
        ParentLink("lease_id", LeaseModel),
        ParentLink("contact_id", ContactModel),
    )
    registry.register(
        PaymentModel,
        ParentLink("lease_id", LeaseModel),
        ParentLink("invoice_id", InvoiceModel),
    )
    registry.register(
        ProspectModel,
        ParentLink("interested_unit_id", UnitModel),
    )
    registry.register(
        TourModel,
        ParentLink("unit_id", UnitModel),
        ParentLink("prospect_id", ProspectModel),
    )
    registry.register(
        RentalApplicationModel,
        ParentLink("unit_id", UnitModel),
        ParentLink("prospect_id", ProspectModel),
    )
    registry.register(
        LeaseOfferModel,
        ParentLink("unit_id", UnitModel),
        ParentLink("prospect_id", ProspectModel),
        ParentLink("application_id", RentalApplicationModel),
    )
    registry.register(
        SecurityDepositModel,
        ParentLink("lease_id", LeaseModel),
        ParentLink("contact_id", ContactModel),
    )
    registry.register(
        DepositDividendModel,
        ParentLink("lease_id", LeaseModel),
        ParentLink("contact_id", ContactModel),
    )
    return registry
