"""Tests for structured logging and correlation IDs."""

import json
import logging
import sys

import pytest

from glucopredict.logging_config import (
    JsonFormatter,
    TextFormatter,
    correlation_id_ctx,
    get_logger,
    setup_logging,
)
from glucopredict.middleware import CORRELATION_ID_HEADER


def make_record(level=logging.INFO, msg="Test message", **attrs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="/app/test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=attrs.pop("exc_info", None),
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def test_basic_fields(self):
        parsed = json.loads(JsonFormatter(service_name="svc").format(make_record()))

        assert parsed["level"] == "INFO"
        assert parsed["service"] == "svc"
        assert parsed["logger"] == "test.logger"
        assert parsed["message"] == "Test message"
        assert "timestamp" in parsed
        assert "correlation_id" not in parsed
        assert "location" not in parsed

    def test_includes_correlation_id(self):
        token = correlation_id_ctx.set("corr-123")
        try:
            parsed = json.loads(JsonFormatter().format(make_record()))
        finally:
            correlation_id_ctx.reset(token)

        assert parsed["correlation_id"] == "corr-123"

    def test_merges_extra_fields(self):
        record = make_record(extra_fields={"user_id": "u-1", "horizon_minutes": 120})
        parsed = json.loads(JsonFormatter().format(record))

        assert parsed["user_id"] == "u-1"
        assert parsed["horizon_minutes"] == 120

    def test_error_includes_location_and_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            exc_info = sys.exc_info()

        record = make_record(level=logging.ERROR, exc_info=exc_info, funcName="fn")
        parsed = json.loads(JsonFormatter().format(record))

        assert parsed["location"] == {"file": "/app/test.py", "line": 42, "function": "fn"}
        assert "ValueError" in parsed["exception"]


class TestTextFormatter:
    def test_basic_line(self):
        output = TextFormatter(service_name="svc").format(make_record())

        assert " - svc - INFO - [-] - Test message" in output

    def test_appends_extra_fields(self):
        output = TextFormatter().format(make_record(extra_fields={"user_id": "u-1"}))
        assert output.endswith("Test message user_id=u-1")

    def test_includes_correlation_id(self):
        token = correlation_id_ctx.set("abc-123")
        try:
            output = TextFormatter().format(make_record())
        finally:
            correlation_id_ctx.reset(token)

        assert "[abc-123]" in output


class TestStructuredLogger:
    def test_passes_fields_as_extra(self, caplog):
        logger = get_logger("glucopredict.test")

        with caplog.at_level(logging.INFO):
            logger.info("Prediction done", user_id="u-1")

        record = caplog.records[-1]
        assert record.getMessage() == "Prediction done"
        assert record.extra_fields == {"user_id": "u-1"}

    def test_without_fields(self, caplog):
        logger = get_logger("glucopredict.test")

        with caplog.at_level(logging.WARNING):
            logger.warning("Plain warning")

        assert not hasattr(caplog.records[-1], "extra_fields")

    def test_exception_records_traceback(self, caplog):
        logger = get_logger("glucopredict.test")

        with caplog.at_level(logging.ERROR):
            try:
                raise RuntimeError("fail")
            except RuntimeError:
                logger.exception("Failed", step="decay")

        record = caplog.records[-1]
        assert record.exc_info is not None
        assert record.extra_fields == {"step": "decay"}


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_handler(self):
        setup_logging(log_format="json", log_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_text_handler_and_quiet_loggers(self):
        setup_logging(log_format="text", log_level="info")

        assert isinstance(logging.getLogger().handlers[0].formatter, TextFormatter)
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


class TestCorrelationIdMiddleware:
    async def test_generates_id(self, client):
        response = await client.get("/health/live")
        assert response.headers[CORRELATION_ID_HEADER]

    async def test_echoes_inbound_id(self, client):
        response = await client.get(
            "/health/live", headers={CORRELATION_ID_HEADER: "req-42"}
        )
        assert response.headers[CORRELATION_ID_HEADER] == "req-42"

    async def test_replaces_oversized_id(self, client):
        response = await client.get(
            "/health/live", headers={CORRELATION_ID_HEADER: "x" * 500}
        )
        assert response.headers[CORRELATION_ID_HEADER] != "x" * 500

    async def test_context_is_reset_after_request(self, client):
        await client.get("/health/live", headers={CORRELATION_ID_HEADER: "req-43"})
        assert correlation_id_ctx.get() is None
