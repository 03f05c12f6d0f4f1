"""
Unit tests for structured logging.
"""

import io
import json
import logging
import sys

import pytest

from shared.logging import (
    JSONFormatter,
    StructuredLogger,
    TraceContext,
    get_correlation_id,
    get_event_id,
    init_structured_logger,
)
from tests.factories import CORRELATION_ID, EVENT_ID


def _record(msg="hello", **attrs):
    record = logging.LogRecord("decision_plane.pm", logging.INFO, __file__, 10, msg, (), None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestJSONFormatter:
    def test_core_fields(self):
        line = json.loads(JSONFormatter("decision_core", "test").format(_record()))
        assert line["level"] == "INFO"
        assert line["service"] == "decision_core"
        assert line["environment"] == "test"
        assert line["logger"] == "decision_plane.pm"
        assert line["message"] == "hello"
        assert line["timestamp"].endswith("+00:00")
        assert "correlation_id" not in line

    def test_trace_ids_attached(self):
        with TraceContext(CORRELATION_ID, EVENT_ID):
            line = json.loads(JSONFormatter("decision_core").format(_record()))
        assert line["correlation_id"] == CORRELATION_ID
        assert line["event_id"] == EVENT_ID

    def test_extra_fields_merged(self):
        record = _record(extra_fields={"symbol": "EURUSD", "decision": "ALLOW"})
        line = json.loads(JSONFormatter("decision_core").format(record))
        assert line["symbol"] == "EURUSD"
        assert line["decision"] == "ALLOW"

    def test_exception_info(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record(exc_info=sys.exc_info())
        line = json.loads(JSONFormatter("decision_core").format(record))
        assert line["exception"]["type"] == "ValueError"
        assert line["exception"]["message"] == "boom"


@pytest.mark.unit
class TestTraceContext:
    def test_restores_previous_values(self):
        assert get_correlation_id() is None
        with TraceContext(CORRELATION_ID):
            assert get_correlation_id() == CORRELATION_ID
            assert get_event_id() is None
            with TraceContext(CORRELATION_ID, EVENT_ID):
                assert get_event_id() == EVENT_ID
            assert get_event_id() is None
        assert get_correlation_id() is None

    def test_reset_on_error(self):
        with pytest.raises(RuntimeError):
            with TraceContext(CORRELATION_ID):
                raise RuntimeError("cycle failed")
        assert get_correlation_id() is None


@pytest.mark.unit
class TestStructuredLogger:
    def test_kwargs_become_fields(self):
        stream = io.StringIO()
        log = StructuredLogger("test.structured", "decision_core", stream=stream)
        log.info("Cycle done", intents=2)
        line = json.loads(stream.getvalue())
        assert line["message"] == "Cycle done"
        assert line["intents"] == 2

    def test_plain_text_output(self):
        stream = io.StringIO()
        log = StructuredLogger("test.plain", "decision_core", json_output=False, stream=stream)
        log.warning("careful")
        assert " - test.plain - WARNING - careful" in stream.getvalue()

    def test_package_loggers_share_handler(self, restore_package_loggers):
        stream = io.StringIO()
        init_structured_logger(
            "decision_core_test", "test", level=logging.DEBUG,
            logger_names=["decision_plane"], stream=stream,
        )
        with TraceContext(CORRELATION_ID):
            logging.getLogger("decision_plane.pm.portfolio_manager").debug("PM %s", "ALLOW")
        line = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert line["message"] == "PM ALLOW"
        assert line["service"] == "decision_core_test"
        assert line["correlation_id"] == CORRELATION_ID

    def test_reinit_applies_new_settings(self, restore_package_loggers):
        first, second = io.StringIO(), io.StringIO()
        init_structured_logger(
            "decision_core_reinit", "test", logger_names=["decision_plane"], stream=first,
        )
        init_structured_logger(
            "decision_core_reinit", "test", level=logging.DEBUG,
            logger_names=["decision_plane"], stream=second,
        )
        logging.getLogger("decision_plane.mcl.classifier").debug("MCL %s", "EURUSD")

        assert first.getvalue() == ""
        assert json.loads(second.getvalue())["message"] == "MCL EURUSD"
        assert len(logging.getLogger("decision_core_reinit").handlers) == 1
