"""Tests for logging configuration."""

from logging import DEBUG, INFO, getLogger

import pytest
import structlog
from structlog.stdlib import BoundLogger
from structlog.testing import capture_logs
from structlog.types import BindableLogger

from locator.core.logging import configure_logging, get_logger, get_request_logger


@pytest.fixture(autouse=True)
def restore_logging():
    """Put the test-mode configuration back after each test."""
    yield
    configure_logging(testing=True)


def processor_names() -> list[str]:
    return [
        getattr(p, "__name__", p.__class__.__name__)
        for p in structlog.get_config()["processors"]
    ]


def test_json_renderer_outside_tests() -> None:
    """Production configuration renders JSON lines."""
    configure_logging(json_logs=True)
    assert "JSONRenderer" in processor_names()


def test_key_value_renderer_in_tests() -> None:
    """Test mode never renders JSON."""
    configure_logging(testing=True, json_logs=True)
    names = processor_names()
    assert "JSONRenderer" not in names
    assert "KeyValueRenderer" in names


def test_context_variables_are_merged() -> None:
    """Request-scoped context is merged into every event."""
    configure_logging(testing=True)
    assert "merge_contextvars" in processor_names()


@pytest.mark.parametrize("level,expected", [("debug", DEBUG), ("DEBUG", DEBUG), ("bogus", INFO)])
def test_level_names(level: str, expected: int) -> None:
    """Level names are case-insensitive with an info fallback."""
    configure_logging(testing=True, level=level)
    assert getLogger("locator").level == expected
    assert getLogger("locator").propagate is False
    assert len(getLogger("locator").handlers) == 1


def test_get_logger() -> None:
    """get_logger returns a structured logger."""
    logger = get_logger(__name__)
    assert isinstance(logger, BoundLogger | BindableLogger)

    with capture_logs() as logs:
        logger.info("geocode_strategy", strategy="structured")
    assert logs == [
        {"event": "geocode_strategy", "strategy": "structured", "log_level": "info"}
    ]


def test_get_request_logger_binds_request_id() -> None:
    """get_request_logger binds the request ID."""
    logger = get_request_logger("test-request-id")
    with capture_logs() as logs:
        logger.info("request_processed")
    assert logs[0]["request_id"] == "test-request-id"


def test_get_request_logger_without_id() -> None:
    """No request ID means no binding."""
    logger = get_request_logger()
    with capture_logs() as logs:
        logger.info("request_processed")
    assert "request_id" not in logs[0]
