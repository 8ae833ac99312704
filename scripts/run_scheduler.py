#!/usr/bin/env python3
"""
Run the recurring workflow scheduler, or one trigger pass, against a database.

Usage:
    python3 scripts/run_scheduler.py [--config settings.yaml] <command> [options]

Commands:
    create-tables            Create every table (idempotent).
    provision --tenant-id U  Create the default policy row for a tenant.
    run --trigger T          Run one trigger pass now and print a summary.
    serve                    Run the scheduler until interrupted (Ctrl-C).

Examples:
    python3 scripts/run_scheduler.py --database-url sqlite:///rental.db create-tables
    python3 scripts/run_scheduler.py provision --tenant-id 7d3c... --name "Acme Rentals"
    python3 scripts/run_scheduler.py run --trigger nightly
    python3 scripts/run_scheduler.py --config prod.yaml serve
"""

from __future__ import annotations

import argparse
import sys
import threading
from pathlib import Path
from uuid import UUID

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Rental back office workflow scheduler.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML settings file merged over the packaged defaults.",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override store.database_url from settings.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override logging.level from settings (DEBUG, INFO, ...).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("create-tables", help="Create every table.")

    provision = sub.add_parser("provision", help="Provision a tenant policy row.")
    provision.add_argument("--tenant-id", type=UUID, required=True)
    provision.add_argument("--name", default=None)

    run = sub.add_parser("run", help="Run one trigger pass now.")
    run.add_argument(
        "--trigger",
        required=True,
        choices=["nightly", "midnight", "hourly"],
    )

    sub.add_parser("serve", help="Run the scheduler until interrupted.")
    return parser.parse_args(argv)


def _print_summary(result) -> None:
    print(
        f"{result.trigger.value}: {result.tenant_count} tenant(s), "
        f"{result.succeeded} succeeded, {result.failed} failed, "
        f"{result.skipped} skipped, {result.changed} change(s) "
        f"in {result.duration_ms} ms"
    )
    for r in result.module_results:
        line = f"  {r.tenant_id} {r.module_key:<34} {r.status.value:<9} {r.changed}"
        if r.errors:
            line += f"  {'; '.join(r.errors)}"
        print(line)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    from rental_batch.domain.types import TriggerKind
    from rental_batch.orchestrator import WorkflowOrchestrator
    from rental_config import load_settings
    from rental_kernel.db.engine import (
        create_tables,
        get_session_factory,
        init_engine_from_url,
        session_scope,
    )
    from rental_kernel.domain.context import CallerContext
    from rental_kernel.logging_config import configure_logging, get_logger
    from rental_kernel.services.entity_store import StoreFactory
    from rental_kernel.services.policy_service import PolicyService

    settings = load_settings(args.config)
    configure_logging(level=(args.log_level or settings.logging.level).upper())
    logger = get_logger("scripts.run_scheduler")

    store = settings.store
    init_engine_from_url(
        args.database_url or store.database_url,
        echo=store.echo,
        pool_size=store.pool_size,
        max_overflow=store.max_overflow,
    )

    if args.command == "create-tables":
        create_tables()
        print("Tables created.")
        return 0

    if args.command == "provision":
        stores = StoreFactory(soft_delete_enabled=store.soft_delete_enabled)
        with session_scope() as session:
            policy = PolicyService(session, stores).provision_tenant(
                CallerContext.system(args.tenant_id), name=args.name,
            )
        print(f"Tenant {policy.tenant_id} provisioned.")
        return 0

    orchestrator = WorkflowOrchestrator.from_settings(
        get_session_factory(), settings,
    )
    scheduler = orchestrator.create_scheduler()

    if args.command == "run":
        result = scheduler.run_now(TriggerKind(args.trigger))
        _print_summary(result)
        return 1 if result.failed else 0

    scheduler.start()
    print("Scheduler running; press Ctrl-C to stop.")
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("scheduler_interrupted")
    finally:
        scheduler.stop(timeout=settings.scheduler.shutdown_timeout_seconds)
    return 0


if __name__ == "__main__":
    sys.exit(main())
