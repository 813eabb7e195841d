"""Unit tests for the logging utility."""

from __future__ import annotations

import json
import logging
import sys

import pytest
from authcore.core.logger import JSONFormatter, configure_logging, ensure_request_id


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logging_sets_level(restore_root_logger) -> None:
    """``configure_logging`` should set the root logger level."""

    # Act
    configure_logging("debug")

    # Assert
    assert restore_root_logger.level == logging.DEBUG
    [handler] = restore_root_logger.handlers
    assert isinstance(handler.formatter, JSONFormatter)


def test_formatter_promotes_known_extras() -> None:
    record = logging.makeLogRecord(
        {
            "name": "authcore.services.tokens.service",
            "levelname": "WARNING",
            "msg": "token.refresh_reuse",
            "user_id": 42,
            "jti": "abc",
            "reason": "replay",
            "password": "never-logged",
        }
    )

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "token.refresh_reuse"
    assert payload["level"] == "WARNING"
    assert payload["user_id"] == 42
    assert payload["jti"] == "abc"
    assert payload["reason"] == "replay"
    assert "password" not in payload
    assert payload["request_id"] is None


def test_formatter_includes_exception_text() -> None:
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord(
            "x", logging.ERROR, __file__, 1, "failed", None, exc_info=sys.exc_info()
        )

    payload = json.loads(JSONFormatter().format(record))

    assert "ValueError: boom" in payload["exc_info"]


def test_request_id_header_is_echoed(client) -> None:
    resp = client.get("/api/v1/health", headers={"X-Request-ID": "req-123"})

    assert resp.headers["X-Request-ID"] == "req-123"


def test_request_id_is_generated_outside_requests() -> None:
    assert ensure_request_id() != ensure_request_id()
