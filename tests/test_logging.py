"""Tests for the structured logging system (finance_schedule/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from finance_schedule.exceptions import OverdueError
from finance_schedule.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite's DEBUG setup."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_all_logs(stream)[0]
        assert record["message"] == "hello"
        assert record["level"] == "INFO"
        assert record["logger"] == "finance_schedule.test"
        assert "ts" in record

    def test_extra_fields_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        entry_id = uuid4()
        get_logger("test").info(
            "entry_settled",
            extra={"transaction_id": entry_id, "amount": Decimal("33.34"), "due_date": date(2024, 2, 1)},
        )

        record = _parse_all_logs(stream)[0]
        assert record["transaction_id"] == str(entry_id)
        assert record["amount"] == "33.34"
        assert record["due_date"] == "2024-02-01"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        couple_id = uuid4()
        with LogContext.bind(couple_id=couple_id, correlation_id="req-1"):
            get_logger("test").info("inside")
        get_logger("test").info("outside")

        inside, outside = _parse_all_logs(stream)
        assert inside["couple_id"] == str(couple_id)
        assert inside["correlation_id"] == "req-1"
        assert "couple_id" not in outside

    def test_scheduling_error_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        entry_id = uuid4()
        try:
            raise OverdueError(entry_id, date(2024, 1, 1), date(2024, 3, 1), 30)
        except OverdueError:
            get_logger("test").warning("settlement_failed", exc_info=True)

        record = _parse_all_logs(stream)[0]
        assert record["exc_type"] == "OverdueError"
        assert record["exc_code"] == "OVERDUE"
        assert record["exc_entry_id"] == str(entry_id)
        assert record["exc_threshold_days"] == 30
        assert "traceback" in record


# ---------------------------------------------------------------------------
# LogContext
# ---------------------------------------------------------------------------


class TestLogContext:
    def test_set_and_clear(self):
        LogContext.set(template_id="t-1", entry_id="e-1")
        assert LogContext.get_all() == {"template_id": "t-1", "entry_id": "e-1"}
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous_value(self):
        LogContext.set(template_id="outer")
        with LogContext.bind(template_id="inner"):
            assert LogContext.get_all()["template_id"] == "inner"
        assert LogContext.get_all()["template_id"] == "outer"

    def test_bind_ignores_none_and_unknown(self):
        with LogContext.bind(couple_id=None, not_a_field="x"):
            assert LogContext.get_all() == {}


# ---------------------------------------------------------------------------
# configure_logging / get_logger
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    def test_idempotent(self):
        handler, _ = _make_handler()
        configure_logging(handler=handler)
        configure_logging(handler=handler)
        assert len(logging.getLogger("finance_schedule").handlers) == 1

    def test_does_not_propagate(self):
        configure_logging(handler=_make_handler()[0])
        assert logging.getLogger("finance_schedule").propagate is False

    def test_logger_hierarchy(self):
        logger = get_logger("services.settlement")
        assert logger.name == "finance_schedule.services.settlement"
        assert logger.parent.name in ("finance_schedule.services", "finance_schedule")
