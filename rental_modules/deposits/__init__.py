"""Deposits module: security deposit investment pool and yearly dividends."""

from rental_modules.deposits.models import DividendStatus, PoolStatus

__all__ = ["DividendStatus", "PoolStatus"]
