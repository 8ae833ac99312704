"""
RunCoordinator -- at most one in-flight pass per trigger.

A fire that arrives while the previous pass of the same trigger is still
running is skipped and logged, never queued.  Different triggers do not
block each other.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from rental_kernel.exceptions import TriggerBusyError
from rental_kernel.logging_config import get_logger

from rental_batch.domain.types import TriggerKind

logger = get_logger("batch.coordinator")


class RunCoordinator:
    """Per-trigger busy gates.

    Contract:
        - ``try_begin(trigger)`` returns True and marks the trigger busy,
          or returns False (and logs ``trigger_skipped_busy``) when a pass
          is already in flight.
        - ``end(trigger)`` clears the busy mark.
        - ``exclusive(trigger)`` wraps both; raises TriggerBusyError.
    """

    def __init__(self) -> None:
        self._gates: dict[TriggerKind, threading.Lock] = {
            kind: threading.Lock() for kind in TriggerKind
        }

    def try_begin(self, trigger: TriggerKind) -> bool:
        if self._gates[trigger].acquire(blocking=False):
            return True
        logger.warning("trigger_skipped_busy", extra={"trigger": trigger.value})
        return False

    def end(self, trigger: TriggerKind) -> None:
        self._gates[trigger].release()

    def is_busy(self, trigger: TriggerKind) -> bool:
        return self._gates[trigger].locked()

    @contextmanager
    def exclusive(self, trigger: TriggerKind) -> Iterator[None]:
        if not self.try_begin(trigger):
            raise TriggerBusyError(trigger.value)
        try:
            yield
        finally:
            self.end(trigger)
