"""
rental_config -- process settings for the rental back office.

``load_settings(path)`` returns frozen ``AppSettings`` built from the
packaged ``defaults.yaml`` with an optional override file merged over it.
``get_settings()`` caches the defaults-only result for the process.
"""

from __future__ import annotations

from functools import lru_cache

from rental_config.loader import load_settings
from rental_config.schema import (
    AppSettings,
    LoggingSettings,
    RenewalLadderSettings,
    SchedulerSettings,
    StoreSettings,
    TriggerSettings,
)


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return load_settings()


__all__ = [
    "AppSettings",
    "LoggingSettings",
    "RenewalLadderSettings",
    "SchedulerSettings",
    "StoreSettings",
    "TriggerSettings",
    "get_settings",
    "load_settings",
]
