"""
Tests for rental_batch.services.coordinator -- per-trigger busy gates.
"""

import threading

import pytest

from rental_kernel.exceptions import TriggerBusyError

from rental_batch.domain.types import TriggerKind
from rental_batch.services.coordinator import RunCoordinator


class TestTryBegin:
    def test_begin_and_end(self):
        coordinator = RunCoordinator()
        assert coordinator.try_begin(TriggerKind.NIGHTLY)
        assert coordinator.is_busy(TriggerKind.NIGHTLY)
        coordinator.end(TriggerKind.NIGHTLY)
        assert not coordinator.is_busy(TriggerKind.NIGHTLY)

    def test_second_begin_refused_and_logged(self, captured_logs):
        coordinator = RunCoordinator()
        coordinator.try_begin(TriggerKind.HOURLY)

        assert not coordinator.try_begin(TriggerKind.HOURLY)

        skipped = [r for r in captured_logs() if r["message"] == "trigger_skipped_busy"]
        assert len(skipped) == 1
        assert skipped[0]["trigger"] == "hourly"
        assert skipped[0]["level"] == "WARNING"

    def test_triggers_are_independent(self):
        coordinator = RunCoordinator()
        assert coordinator.try_begin(TriggerKind.NIGHTLY)
        assert coordinator.try_begin(TriggerKind.MIDNIGHT)
        assert coordinator.try_begin(TriggerKind.HOURLY)

    def test_refused_from_another_thread(self):
        coordinator = RunCoordinator()
        coordinator.try_begin(TriggerKind.NIGHTLY)
        outcome = []

        worker = threading.Thread(
            target=lambda: outcome.append(coordinator.try_begin(TriggerKind.NIGHTLY)),
        )
        worker.start()
        worker.join()

        assert outcome == [False]


class TestExclusive:
    def test_releases_on_exit(self):
        coordinator = RunCoordinator()
        with coordinator.exclusive(TriggerKind.NIGHTLY):
            assert coordinator.is_busy(TriggerKind.NIGHTLY)
        assert not coordinator.is_busy(TriggerKind.NIGHTLY)

    def test_releases_on_error(self):
        coordinator = RunCoordinator()
        with pytest.raises(RuntimeError):
            with coordinator.exclusive(TriggerKind.NIGHTLY):
                raise RuntimeError("pass failed")
        assert not coordinator.is_busy(TriggerKind.NIGHTLY)

    def test_busy_raises(self):
        coordinator = RunCoordinator()
        coordinator.try_begin(TriggerKind.MIDNIGHT)

        with pytest.raises(TriggerBusyError) as exc_info:
            with coordinator.exclusive(TriggerKind.MIDNIGHT):
                pass

        assert exc_info.value.trigger == "midnight"
        assert exc_info.value.code == "TRIGGER_BUSY"
        # The refused caller must not release the holder's gate.
        assert coordinator.is_busy(TriggerKind.MIDNIGHT)
