"""
Unit tests for structured logging utilities.
"""

import json
import logging
import sys
from io import StringIO

import pytest

from ghmailer.utils.logging import (
    setup_logging,
    get_logger,
    JSONFormatter,
    log_push_event,
    log_delivery,
    log_error_with_context,
)


@pytest.fixture
def captured():
    """Attach a JSON handler to a dedicated logger and yield (adapter, stream)."""
    logger = get_logger("ghmailer.tests.capture")
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.logger.addHandler(handler)
    logger.logger.setLevel(logging.DEBUG)
    yield logger, stream
    logger.logger.removeHandler(handler)


def test_json_formatter():
    """Test JSON formatter produces valid JSON output."""
    formatter = JSONFormatter()

    logger = logging.getLogger("ghmailer.tests.formatter")
    logger.setLevel(logging.INFO)

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    try:
        logger.info("Test message", extra={"subscriber": "alice", "commit_id": "abc123"})
    finally:
        logger.removeHandler(handler)

    log_data = json.loads(stream.getvalue())

    assert "timestamp" in log_data
    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "ghmailer.tests.formatter"
    assert log_data["message"] == "Test message"
    assert log_data["subscriber"] == "alice"
    assert log_data["commit_id"] == "abc123"
    assert "source" in log_data


def test_json_formatter_includes_exception():
    """Test exception details are serialized."""
    formatter = JSONFormatter()

    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.getLogger("x").makeRecord(
            "x", logging.ERROR, __file__, 1, "failed", (), exc_info=sys.exc_info()
        )

    log_data = json.loads(formatter.format(record))

    assert log_data["error"]["type"] == "ValueError"
    assert log_data["error"]["message"] == "boom"
    assert "Traceback" in log_data["error"]["stack_trace"]


def test_get_logger_with_context():
    """Test getting logger with context."""
    logger = get_logger("test_module", subscriber="alice", repository="public-repo")

    assert logger.extra["subscriber"] == "alice"
    assert logger.extra["repository"] == "public-repo"


def test_with_context_does_not_mutate_parent():
    """Test with_context returns a new adapter."""
    logger = get_logger("test_module", subscriber="alice")
    child = logger.with_context(commit_id="abc123")

    assert child.extra == {"subscriber": "alice", "commit_id": "abc123"}
    assert "commit_id" not in logger.extra


def test_log_push_event(captured):
    """Test push event logging."""
    logger, stream = captured

    log_push_event(logger, repository="public-repo", ref="refs/heads/master", commit_count=2)

    log_data = json.loads(stream.getvalue())

    assert log_data["repository"] == "public-repo"
    assert log_data["ref"] == "refs/heads/master"
    assert log_data["context"]["commit_count"] == 2


def test_log_delivery(captured):
    """Test successful delivery logging."""
    logger, stream = captured

    log_delivery(logger, subscriber="alice", commit_id="abc123")

    log_data = json.loads(stream.getvalue())

    assert log_data["level"] == "INFO"
    assert log_data["subscriber"] == "alice"
    assert log_data["commit_id"] == "abc123"


def test_log_delivery_with_error(captured):
    """Test failed delivery logging."""
    logger, stream = captured

    log_delivery(logger, subscriber="alice", commit_id="abc123", error="Connection refused")

    log_data = json.loads(stream.getvalue())

    assert log_data["level"] == "ERROR"
    assert log_data["context"]["error"] == "Connection refused"


def test_log_error_with_context(captured):
    """Test error logging attaches the exception."""
    logger, stream = captured

    log_error_with_context(logger, "Dispatch failed", RuntimeError("smtp down"), subscriber="bob")

    log_data = json.loads(stream.getvalue())

    assert log_data["subscriber"] == "bob"
    assert log_data["error"]["type"] == "RuntimeError"


def test_setup_logging_installs_json_handler():
    """Test setup_logging replaces root handlers with a JSON handler."""
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level

    try:
        setup_logging("DEBUG")

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
