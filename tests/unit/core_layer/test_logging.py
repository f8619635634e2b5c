"""
Unit Tests for Logging Module

Tests logger configuration, request context, and the redaction processor.
"""

from unittest.mock import MagicMock

import pytest

from tourcache.core.config.constants import Stage
from tourcache.core.logging.logger import (
    add_log_level_name,
    add_request_id,
    add_timestamp,
    clear_request_id,
    get_logger,
    get_request_id,
    log_stage,
    redact_pii,
    set_request_id,
    setup_logging,
)


@pytest.mark.unit
class TestLoggerCreation:
    """Test logger creation and configuration."""

    def test_get_logger_returns_logger_instance(self):
        logger = get_logger(__name__)

        assert logger is not None
        assert hasattr(logger, "info")

    @pytest.mark.parametrize("log_format", ["json", "console"])
    def test_setup_logging_accepts_formats(self, log_format):
        setup_logging(log_level="DEBUG", log_format=log_format)
        get_logger("test").info("configured", stage="TEST")


@pytest.mark.unit
class TestRequestContext:
    """Test request ID context management."""

    def test_set_and_clear(self):
        set_request_id("req-123")
        assert get_request_id() == "req-123"

        clear_request_id()
        assert get_request_id() is None

    def test_add_request_id_processor(self):
        set_request_id("req-456")
        try:
            event = add_request_id(None, "info", {"event": "x"})
        finally:
            clear_request_id()

        assert event["request_id"] == "req-456"

    def test_no_request_id_when_unset(self):
        clear_request_id()

        assert "request_id" not in add_request_id(None, "info", {"event": "x"})


@pytest.mark.unit
class TestProcessors:
    """Test the custom structlog processors."""

    def test_redacts_sensitive_fields(self):
        event = redact_pii(
            None,
            "info",
            {"event": "Cache set", "key": "verification:a@b.com", "value": {"code": 1}, "namespace": "verification"},
        )

        assert event["key"] == "[REDACTED]"
        assert event["value"] == "[REDACTED]"
        assert event["namespace"] == "verification"

    def test_redacts_email_and_phone_in_message(self):
        event = redact_pii(None, "info", {"event": "user ana@example.com called 555-123-4567"})

        assert "ana@example.com" not in event["event"]
        assert "[EMAIL]" in event["event"]
        assert "[PHONE]" in event["event"]

    def test_timestamp_is_utc_z(self):
        event = add_timestamp(None, "info", {})

        assert event["timestamp"].endswith("Z")

    def test_level_name_upper(self):
        assert add_log_level_name(None, "info", {"level": "warning"})["level"] == "WARNING"


@pytest.mark.unit
class TestLogStage:
    """Test the log_stage helper."""

    def test_enum_stage_is_logged_by_value(self):
        logger = MagicMock()

        log_stage(logger, Stage.CACHE_GET, "Cache hit", level="debug", namespace="student")

        logger.debug.assert_called_once_with("Cache hit", stage="CACHE.GET", namespace="student")

    def test_string_stage(self):
        logger = MagicMock()

        log_stage(logger, "REDIS.CONNECT", "connected")

        logger.info.assert_called_once_with("connected", stage="REDIS.CONNECT")
