"""Tests for structured logging module."""

import asyncio
import logging
import uuid
from unittest.mock import Mock, patch

import pytest

from pgmux.core.exceptions import ConnectError, PgMuxException
from pgmux.logging.structured import (
    ContextFilter,
    LogContext,
    StructuredLogger,
)


def _record(name: str = "pgmux.test") -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname="test.py",
        lineno=42,
        msg="Test message",
        args=(),
        exc_info=None,
    )


class TestLogContext:
    """Test cases for LogContext class."""

    def test_context_initialization(self):
        """Test LogContext initializes correctly."""
        assert LogContext().get_all() == {}
        assert LogContext({"instance": "analytics"}).get("instance") == "analytics"

    def test_set_and_get_context_value(self):
        """Test setting and getting context values."""
        context = LogContext()

        context.set("instance", "analytics")
        context.set("limit", 42)

        assert context.get("instance") == "analytics"
        assert context.get("limit") == 42
        assert context.get("nonexistent") is None
        assert context.get("nonexistent", "default") == "default"

    def test_update_and_replace(self):
        """Test updating and replacing context."""
        context = LogContext()
        context.set("existing", "value")

        context.update({"action": "version", "existing": "updated"})
        assert context.get_all() == {"existing": "updated", "action": "version"}

        context.replace({"only": 1})
        assert context.get_all() == {"only": 1}

    def test_get_all_returns_copy(self):
        """Test that callers cannot mutate the stored context."""
        context = LogContext()
        context.set("instance", "analytics")

        context.get_all()["instance"] = "changed"

        assert context.get("instance") == "analytics"

    @pytest.mark.asyncio
    async def test_task_isolation(self):
        """Test that context is isolated between asyncio tasks."""
        context = LogContext()
        results = {}

        async def route(instance: str) -> None:
            context.set("instance", instance)
            await asyncio.sleep(0.01)  # Let the other tasks run
            results[instance] = context.get("instance")

        await asyncio.gather(route("analytics"), route("billing"), route("reporting"))

        assert results == {
            "analytics": "analytics",
            "billing": "billing",
            "reporting": "reporting",
        }
        assert context.get("instance") is None


class TestContextFilter:
    """Test cases for ContextFilter class."""

    def test_filter_adds_context_to_record(self):
        """Test that filter adds context to log records."""
        context = LogContext()
        context.set("instance", "analytics")
        context.set("action", "wal_activity")

        record = _record()
        result = ContextFilter(context).filter(record)

        assert result is True
        assert record.instance == "analytics"
        assert record.action == "wal_activity"

    def test_filter_adds_standard_metadata(self):
        """Test that filter adds correlation id and timestamp."""
        context = LogContext()
        context.set("correlation_id", "test_correlation")

        record = _record()
        ContextFilter(context).filter(record)

        assert record.correlation_id == "test_correlation"
        assert isinstance(record.timestamp_iso, str)

    def test_filter_without_correlation(self):
        """Test the correlation placeholder."""
        record = _record()
        ContextFilter(LogContext()).filter(record)

        assert record.correlation_id == "unknown"

    def test_filter_doesnt_override_existing_attributes(self):
        """Test that filter doesn't override existing record attributes."""
        context = LogContext()
        context.set("name", "context_name")

        record = _record("original_logger_name")
        ContextFilter(context).filter(record)

        assert record.name == "original_logger_name"


class TestStructuredLogger:
    """Test cases for StructuredLogger class."""

    def test_logger_initialization(self):
        """Test StructuredLogger initializes correctly."""
        logger = StructuredLogger("test.logger")

        assert logger.name == "test.logger"
        assert logger.get_level() == "INFO"
        assert logger._enable_correlation is True

    def test_logger_initialization_with_options(self):
        """Test StructuredLogger initialization with custom options."""
        logger = StructuredLogger("test.logger.options", level="DEBUG", enable_correlation=False)

        assert logger.get_level() == "DEBUG"
        assert logger._enable_correlation is False

    def test_set_and_get_level(self):
        """Test setting and getting log levels."""
        logger = StructuredLogger("test.logger.level")

        logger.set_level("debug")
        assert logger.get_level() == "DEBUG"
        assert logger.is_enabled_for("DEBUG")

        logger.set_level("ERROR")
        assert logger.get_level() == "ERROR"
        assert not logger.is_enabled_for("WARNING")

    def test_invalid_log_level_raises_exception(self):
        """Test that invalid log level raises exception."""
        logger = StructuredLogger("test.logger")

        with pytest.raises(PgMuxException) as exc_info:
            logger.set_level("INVALID_LEVEL")

        assert exc_info.value.code == "UNKNOWN_LOG_LEVEL"

    def test_log_by_level_name(self):
        """Test log() with an unknown level."""
        logger = StructuredLogger("test.logger")

        with pytest.raises(PgMuxException):
            logger.log("verbose", "message")

    @patch("structlog.get_logger")
    def test_logging_methods_call_structlog(self, mock_get_logger):
        """Test that logging methods call structlog correctly."""
        mock_structlog_logger = Mock()
        mock_get_logger.return_value = mock_structlog_logger

        logger = StructuredLogger("test.logger", enable_correlation=False)

        logger.debug("Debug message", instance="analytics")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")
        logger.critical("Critical message")

        mock_structlog_logger.debug.assert_called_once_with(
            "Debug message", logger="test.logger", instance="analytics"
        )
        mock_structlog_logger.info.assert_called_once()
        mock_structlog_logger.warning.assert_called_once()
        mock_structlog_logger.error.assert_called_once()
        mock_structlog_logger.critical.assert_called_once()

    @patch("structlog.get_logger")
    def test_events_carry_context(self, mock_get_logger):
        """Test that context values become event fields."""
        mock_structlog_logger = Mock()
        mock_get_logger.return_value = mock_structlog_logger
        logger = StructuredLogger("test.logger")

        with logger.context(correlation_id="corr-1", instance="analytics"):
            logger.info("Routing request", action="version")

        mock_structlog_logger.info.assert_called_once_with(
            "Routing request",
            logger="test.logger",
            correlation_id="corr-1",
            instance="analytics",
            action="version",
        )

    def test_context_manager(self):
        """Test logger context manager functionality."""
        logger = StructuredLogger("test.logger")
        logger._context.set("initial", "value")

        with logger.context(instance="analytics", action="tables_info"):
            context = logger.get_context()
            assert context["initial"] == "value"
            assert context["instance"] == "analytics"
            assert context["action"] == "tables_info"

        context = logger.get_context()
        assert "initial" in context
        assert "instance" not in context

    def test_bind_creates_new_logger_with_context(self):
        """Test that bind creates new logger with bound context."""
        logger = StructuredLogger("test.logger")
        logger._context.set("original", "value")

        bound_logger = logger.bind(instance="analytics")

        assert "instance" not in logger.get_context()
        assert bound_logger.get_context() == {"original": "value", "instance": "analytics"}
        assert bound_logger is not logger
        assert bound_logger.name == logger.name

    def test_correlation_id_generated_on_first_event(self):
        """Test automatic correlation ID generation."""
        logger = StructuredLogger("test.logger")
        assert logger.get_correlation_id() is None

        logger.info("First event")

        uuid.UUID(logger.get_correlation_id())

    def test_correlation_id_from_context(self):
        """Test a correlation ID supplied through context()."""
        logger = StructuredLogger("test.logger")

        with logger.context(correlation_id="req-123"):
            assert logger.get_correlation_id() == "req-123"

        assert logger.get_correlation_id() is None

    def test_correlation_disabled(self):
        """Test correlation ID when disabled."""
        logger = StructuredLogger("test.logger", enable_correlation=False)

        with logger.context(correlation_id="test-id"):
            assert logger.get_correlation_id() is None

    def test_operation_logging(self):
        """Test operation start, success and failure logging."""
        logger = StructuredLogger("test.logger")

        operation_context = logger.log_operation_start("registry_build", instances=3)

        assert operation_context["operation"] == "registry_build"
        assert operation_context["instances"] == 3
        assert "operation_id" in operation_context
        assert "start_time" in operation_context

        logger.log_operation_success(operation_context, registered=2)
        logger.log_operation_failure(
            operation_context,
            ConnectError("failed to ping database: refused", code="CONNECT_FAILED"),
        )

    def test_exception_logging(self):
        """Test exception logging with traceback."""
        logger = StructuredLogger("test.logger")

        try:
            raise ValueError("Test exception")
        except ValueError:
            logger.exception("An error occurred", operation="test")

    def test_logger_repr(self):
        """Test logger string representation."""
        logger = StructuredLogger("test.logger.repr", level="DEBUG")

        repr_str = repr(logger)

        assert "StructuredLogger" in repr_str
        assert "test.logger.repr" in repr_str
        assert "DEBUG" in repr_str
