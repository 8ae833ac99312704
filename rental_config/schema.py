"""
Application settings schema.

Process-level settings (database, scheduler timing, rule-module tuning) as
frozen dataclasses.  Per-tenant business policy is NOT here: it lives in
the ``tenant_policies`` table and reaches rule modules as ``TenantPolicy``.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class StoreSettings:
    """Database connection and entity-store behavior."""

    database_url: str = "sqlite:///rental.db"
    soft_delete_enabled: bool = True
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10


@dataclass(frozen=True)
class TriggerSettings:
    """One recurring trigger and the rule modules it runs, in order."""

    name: str
    cron: str
    modules: tuple[str, ...] = ()
    run_on_startup: bool = False
    enabled: bool = True


@dataclass(frozen=True)
class SchedulerSettings:
    """Polling loop and trigger table.

    ``timezone`` is an IANA name; None means the host's local zone.
    """

    timezone: str | None = None
    poll_interval_seconds: float = 30.0
    shutdown_timeout_seconds: float = 30.0
    triggers: tuple[TriggerSettings, ...] = ()

    def trigger(self, name: str) -> TriggerSettings | None:
        for t in self.triggers:
            if t.name == name:
                return t
        return None


@dataclass(frozen=True)
class RenewalLadderSettings:
    window_tolerance_days: int = 5
    upcoming_expiration_days: int = 30


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class AppSettings:
    """Root of the settings tree."""

    store: StoreSettings = field(default_factory=StoreSettings)
    scheduler: SchedulerSettings = field(default_factory=SchedulerSettings)
    renewal_ladder: RenewalLadderSettings = field(default_factory=RenewalLadderSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
