"""Properties module: rentable units and the people who rent them."""

from rental_modules.properties.models import UnitStatus

__all__ = ["UnitStatus"]
