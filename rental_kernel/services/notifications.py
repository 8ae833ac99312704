"""
Notification dispatch seam.

Rule modules announce transitions through a ``Notifier``.  Delivery (mail,
SMS, in-app) lives outside this system; the default ``LoggingNotifier``
just records the notification as a structured log line.

A failing notifier must never undo the transition it reports on:
``dispatch_safely`` catches and logs delivery errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable
from uuid import UUID

from rental_kernel.logging_config import get_logger

logger = get_logger("services.notifications")


@dataclass(frozen=True)
class RecipientSet:
    """Who should receive a notification within a tenant."""

    everyone: bool = False
    user_ids: frozenset[UUID] = field(default_factory=frozenset)

    @classmethod
    def all_members(cls) -> RecipientSet:
        return cls(everyone=True)

    @classmethod
    def users(cls, *user_ids: UUID) -> RecipientSet:
        return cls(user_ids=frozenset(user_ids))


@runtime_checkable
class Notifier(Protocol):
    def notify(
        self,
        tenant_id: UUID,
        recipients: RecipientSet,
        title: str,
        body: str,
    ) -> None: ...


class LoggingNotifier:
    """Notifier that writes each notification to the log."""

    def notify(
        self,
        tenant_id: UUID,
        recipients: RecipientSet,
        title: str,
        body: str,
    ) -> None:
        logger.info(
            "notification_dispatched",
            extra={
                "tenant_id": str(tenant_id),
                "everyone": recipients.everyone,
                "recipient_count": len(recipients.user_ids),
                "title": title,
                "body": body,
            },
        )


def dispatch_safely(
    notifier: Notifier,
    tenant_id: UUID,
    recipients: RecipientSet,
    title: str,
    body: str,
) -> bool:
    """Send a notification; log and return False on delivery failure."""
    try:
        notifier.notify(tenant_id, recipients, title, body)
    except Exception:
        logger.exception(
            "notification_failed",
            extra={"tenant_id": str(tenant_id), "title": title},
        )
        return False
    return True
