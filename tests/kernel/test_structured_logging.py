"""
Tests for rental_kernel.logging_config.

Validates the JSON formatter, LogContext binding, and structured exception
fields.
"""

import json
import logging
from decimal import Decimal
from uuid import uuid4

from rental_kernel.exceptions import ForbiddenError
from rental_kernel.logging_config import LogContext, StructuredFormatter, get_logger


def _format(record: logging.LogRecord) -> dict:
    return json.loads(StructuredFormatter().format(record))


def _record(msg: str, level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("rental_kernel.test", level, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    def test_base_fields(self):
        payload = _format(_record("something_happened"))
        assert payload["message"] == "something_happened"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "rental_kernel.test"
        assert "ts" in payload

    def test_extra_fields_serialized(self):
        tenant = uuid4()
        payload = _format(
            _record("late_fee_applied", tenant=tenant, late_fee=Decimal("50.00")),
        )
        assert payload["tenant"] == str(tenant)
        assert payload["late_fee"] == "50.00"

    def test_exception_fields(self):
        try:
            raise ForbiddenError("Unit", "u-1", "t-2")
        except ForbiddenError:
            import sys

            record = _record("write_rejected", level=logging.ERROR)
            record.exc_info = sys.exc_info()
        payload = _format(record)

        assert payload["exc_type"] == "ForbiddenError"
        assert payload["exc_code"] == "FORBIDDEN"
        assert payload["exc_record_id"] == "u-1"
        assert "traceback" in payload


class TestLogContext:
    def test_bound_fields_appear_in_output(self):
        run_id = uuid4()
        with LogContext.bind(run_id=run_id, trigger="nightly"):
            payload = _format(_record("inside"))
        assert payload["run_id"] == str(run_id)
        assert payload["trigger"] == "nightly"

    def test_bind_restores_on_exit(self):
        with LogContext.bind(tenant_id="outer"):
            with LogContext.bind(tenant_id="inner", module_key="m"):
                assert LogContext.get_all()["tenant_id"] == "inner"
            assert LogContext.get_all() == {"tenant_id": "outer"}
        assert LogContext.get_all() == {}

    def test_none_values_ignored(self):
        with LogContext.bind(tenant_id=None, trigger="hourly"):
            assert LogContext.get_all() == {"trigger": "hourly"}

    def test_get_logger_namespace(self, captured_logs):
        get_logger("tests.namespace").info("namespaced", extra={"n": 1})
        logs = captured_logs()
        assert logs[-1]["logger"] == "rental_kernel.tests.namespace"
        assert logs[-1]["n"] == 1
