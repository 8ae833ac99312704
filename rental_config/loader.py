"""
Settings Loader (``rental_config.loader``).

Responsibility
--------------
Loads YAML settings files and parses them into the frozen dataclasses of
``rental_config.schema``.  The packaged ``defaults.yaml`` is always read
first; an override file is merged over it.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or invalid values  -> ``ValueError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from rental_config.schema import (
    AppSettings,
    LoggingSettings,
    RenewalLadderSettings,
    SchedulerSettings,
    StoreSettings,
    TriggerSettings,
)

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def merge_settings(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``.

    ``scheduler.triggers`` lists are merged per trigger ``name``; any other
    list in ``override`` replaces the base list.
    """
    merged = dict(base)
    for key, value in override.items():
        if key == "triggers" and isinstance(value, list):
            merged[key] = _merge_triggers(base.get(key) or [], value)
        elif isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged


def _merge_triggers(
    base: list[dict[str, Any]], override: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    by_name = {t["name"]: dict(t) for t in base}
    order = [t["name"] for t in base]
    for entry in override:
        name = entry.get("name")
        if name is None:
            raise ValueError("Every scheduler trigger needs a name")
        if name in by_name:
            by_name[name].update(entry)
        else:
            by_name[name] = dict(entry)
            order.append(name)
    return [by_name[name] for name in order]


def _section(data: dict[str, Any], name: str, allowed: set[str]) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' must be a mapping")
    unknown = set(section) - allowed
    if unknown:
        raise ValueError(f"Unknown keys in '{name}': {sorted(unknown)}")
    return section


def parse_trigger(data: dict[str, Any]) -> TriggerSettings:
    unknown = set(data) - {"name", "cron", "modules", "run_on_startup", "enabled"}
    if unknown:
        raise ValueError(f"Unknown trigger keys: {sorted(unknown)}")
    cron = str(data["cron"])
    if len(cron.split()) != 5:
        raise ValueError(
            f"Trigger '{data['name']}': cron must have 5 fields, got '{cron}'"
        )
    modules = tuple(data.get("modules") or ())
    if len(set(modules)) != len(modules):
        raise ValueError(f"Trigger '{data['name']}' lists a module twice")
    return TriggerSettings(
        name=str(data["name"]),
        cron=cron,
        modules=modules,
        run_on_startup=bool(data.get("run_on_startup", False)),
        enabled=bool(data.get("enabled", True)),
    )


def parse_settings(data: dict[str, Any]) -> AppSettings:
    """
    Build ``AppSettings`` from a merged settings dict.

    Raises:
        ValueError: unknown keys, bad timezone, non-positive intervals,
            duplicate trigger names or an unknown log level.
    """
    unknown = set(data) - {"store", "scheduler", "renewal_ladder", "logging"}
    if unknown:
        raise ValueError(f"Unknown settings sections: {sorted(unknown)}")

    store_data = _section(data, "store", set(StoreSettings.__dataclass_fields__))
    store = StoreSettings(**store_data)
    if not store.database_url:
        raise ValueError("store.database_url is required")

    sched_data = _section(
        data, "scheduler",
        {"timezone", "poll_interval_seconds", "shutdown_timeout_seconds", "triggers"},
    )
    triggers = tuple(parse_trigger(t) for t in sched_data.get("triggers") or ())
    names = [t.name for t in triggers]
    if len(set(names)) != len(names):
        raise ValueError(f"Duplicate scheduler trigger names: {names}")
    scheduler = SchedulerSettings(
        timezone=sched_data.get("timezone"),
        poll_interval_seconds=float(sched_data.get("poll_interval_seconds", 30)),
        shutdown_timeout_seconds=float(sched_data.get("shutdown_timeout_seconds", 30)),
        triggers=triggers,
    )
    if scheduler.poll_interval_seconds <= 0:
        raise ValueError("scheduler.poll_interval_seconds must be positive")
    if scheduler.timezone is not None:
        try:
            ZoneInfo(scheduler.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(
                f"Unknown scheduler.timezone '{scheduler.timezone}'"
            ) from exc

    ladder = RenewalLadderSettings(
        **_section(data, "renewal_ladder", set(RenewalLadderSettings.__dataclass_fields__))
    )
    log = LoggingSettings(
        **_section(data, "logging", set(LoggingSettings.__dataclass_fields__))
    )
    if log.level.upper() not in _LOG_LEVELS:
        raise ValueError(f"Unknown logging.level '{log.level}'")

    return AppSettings(
        store=store, scheduler=scheduler, renewal_ladder=ladder, logging=log,
    )


def load_settings(path: str | Path | None = None) -> AppSettings:
    """Load packaged defaults, merge ``path`` over them, and parse."""
    data = load_yaml_file(DEFAULTS_PATH)
    if path is not None:
        data = merge_settings(data, load_yaml_file(Path(path)))
    return parse_settings(data)
