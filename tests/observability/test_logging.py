"""
Tests for correlation id propagation and log configuration.
"""

import logging

import pytest

from ragdesk.observability import configure_logging, get_correlation_id, set_correlation_id
from ragdesk.observability.correlation import clear_correlation_id
from ragdesk.observability.logger import CorrelationIdFilter


@pytest.fixture(autouse=True)
def reset_correlation():
    yield
    clear_correlation_id()


def _record() -> logging.LogRecord:
    return logging.LogRecord("ragdesk.test", logging.INFO, __file__, 1, "hello", None, None)


class TestCorrelationId:
    def test_generated_when_missing(self):
        value = set_correlation_id()

        assert value
        assert get_correlation_id() == value

    def test_explicit_value_kept(self):
        set_correlation_id("req-1")

        assert get_correlation_id() == "req-1"

    def test_cleared(self):
        set_correlation_id("req-1")
        clear_correlation_id()

        assert get_correlation_id() == ""


class TestCorrelationIdFilter:
    def test_attaches_active_id(self):
        set_correlation_id("req-9")
        record = _record()

        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "req-9"

    def test_placeholder_outside_request(self):
        record = _record()

        CorrelationIdFilter().filter(record)

        assert record.correlation_id == "-"


def test_configure_logging_replaces_handlers():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging("debug")
        configure_logging("warning")

        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert any(isinstance(f, CorrelationIdFilter) for f in root.handlers[0].filters)
        assert logging.getLogger("botocore").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
