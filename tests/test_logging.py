"""Tests for billing_kernel.logging_config: JSON lines, bound context, setup."""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from billing_kernel.domain.invoice import InvoiceStatus
from billing_kernel.exceptions import CorruptStateError
from billing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def emitted():
    """
    Configure logging into a buffer; calling the fixture value returns the
    records written so far, parsed.
    """
    buffer = StringIO()

    def _configure(level=logging.INFO):
        handler = logging.StreamHandler(buffer)
        configure_logging(handler=handler, level=level)

    def _records() -> list[dict]:
        return [json.loads(line) for line in buffer.getvalue().splitlines() if line]

    _records.configure = _configure
    _configure()
    return _records


log = get_logger("tests.logging")


class TestRecordShape:
    def test_core_keys(self, emitted):
        log.info("invoice_draft_started")

        (record,) = emitted()
        assert record["message"] == "invoice_draft_started"
        assert record["level"] == "INFO"
        assert record["logger"] == "billing_kernel.tests.logging"
        assert datetime.fromisoformat(record["ts"]).tzinfo is not None

    def test_extra_payload_is_flattened(self, emitted):
        log.info("invoice_committed", extra={"invoice_number": "101", "line_ids": [201, 202]})

        (record,) = emitted()
        assert record["invoice_number"] == "101"
        assert record["line_ids"] == [201, 202]

    def test_non_json_values_are_rendered(self, emitted):
        request_id = uuid4()
        issued = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        log.info(
            "typed_payload",
            extra={
                "total": Decimal("33.60"),
                "issued_at": issued,
                "request_id": request_id,
                "status": InvoiceStatus.FINALIZED,
                "names": ("invoice_counter",),
            },
        )

        (record,) = emitted()
        assert record["total"] == "33.60"
        assert record["issued_at"] == issued.isoformat()
        assert record["request_id"] == str(request_id)
        assert record["status"] == "finalized"
        assert record["names"] == ["invoice_counter"]

    def test_kernel_error_fields(self, emitted):
        try:
            raise CorruptStateError("invoice_counter", "abc", "counter is not an integer")
        except CorruptStateError:
            log.error("sequence_counter_corrupt", exc_info=True)

        (record,) = emitted()
        assert record["exc_type"] == "CorruptStateError"
        assert record["exc_code"] == "CORRUPT_STATE"
        assert record["exc_parameter_name"] == "invoice_counter"
        assert record["exc_raw_value"] == "abc"
        assert "Traceback" in record["traceback"]

    def test_plain_exception_has_no_code(self, emitted):
        try:
            raise ValueError("boom")
        except ValueError:
            log.warning("unexpected", exc_info=True)

        (record,) = emitted()
        assert record["exc_message"] == "boom"
        assert "exc_code" not in record

    def test_below_level_is_dropped(self, emitted):
        log.debug("noise")
        log.warning("kept")
        assert [r["message"] for r in emitted()] == ["kept"]

    def test_formatter_works_standalone(self):
        record = logging.makeLogRecord({"name": "x", "levelname": "INFO", "msg": "standalone"})
        assert json.loads(StructuredFormatter().format(record))["message"] == "standalone"


class TestBoundContext:
    def test_bound_fields_reach_records(self, emitted):
        with LogContext.bind(draft_id="d-1", actor_id="clerk-7"):
            log.info("inside")
        log.info("outside")

        inside, outside = emitted()
        assert inside["draft_id"] == "d-1"
        assert inside["actor_id"] == "clerk-7"
        assert "draft_id" not in outside

    def test_nested_bind_restores_outer_value(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner", invoice_number="101"):
            assert LogContext.get_all() == {"correlation_id": "inner", "invoice_number": "101"}
        assert LogContext.get_all() == {"correlation_id": "outer"}

    def test_none_values_are_ignored(self):
        LogContext.set(trace_id="t", draft_id=None)
        assert LogContext.get_all() == {"trace_id": "t"}

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            LogContext.set(event_id="e")

    def test_clear(self):
        LogContext.set(correlation_id="c", actor_id="a", draft_id="d", invoice_number="n", trace_id="t")
        assert len(LogContext.get_all()) == 5
        LogContext.clear()
        assert LogContext.get_all() == {}


class TestSetup:
    def test_configure_is_idempotent(self, emitted):
        kernel_logger = logging.getLogger("billing_kernel")
        before = list(kernel_logger.handlers)

        configure_logging(handler=logging.StreamHandler(StringIO()))

        assert kernel_logger.handlers == before
        json_handlers = [h for h in before if isinstance(h.formatter, StructuredFormatter)]
        assert len(json_handlers) == 1

    def test_reset_allows_reconfiguration(self, emitted):
        reset_logging()
        emitted.configure(level="DEBUG")
        get_logger("deep.nested").debug("visible")
        assert emitted()[-1]["logger"] == "billing_kernel.deep.nested"

    def test_kernel_logs_do_not_propagate(self, emitted):
        assert logging.getLogger("billing_kernel").propagate is False
