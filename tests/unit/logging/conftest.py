"""Logging-specific test configuration and fixtures."""

import logging
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest
import structlog

from pgmux.config.models import LoggingConfig
from pgmux.logging.factory import LoggerFactory


@pytest.fixture
def temp_log_file():
    """Create temporary log file for testing."""
    with tempfile.NamedTemporaryFile(suffix=".log", delete=False) as temp_file:
        temp_path = Path(temp_file.name)

    yield temp_path

    temp_path.unlink(missing_ok=True)


@pytest.fixture
def sample_logging_config(temp_log_file):
    """Create sample logging configuration."""
    return LoggingConfig(
        level="INFO",
        format="json",
        file_path=temp_log_file,
        console_output=False,
        max_file_size=1048576,  # 1MB
        backup_count=3,
    )


@pytest.fixture
def logger_factory():
    """Create clean logger factory for testing."""
    factory = LoggerFactory()
    yield factory
    factory.shutdown()


@pytest.fixture
def mock_handler():
    """Create mock logging handler."""
    handler = Mock()
    handler.level = logging.INFO
    return handler


@pytest.fixture(autouse=True)
def cleanup_global_logging():
    """Restore global logging state after each test."""
    yield

    from pgmux.logging.factory import _global_factory
    _global_factory.shutdown()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)

    # Back to the quiet configuration of the suite
    structlog.configure(
        processors=[structlog.testing.LogCapture()],
        logger_factory=structlog.testing.ReturnLoggerFactory(),
        wrapper_class=structlog.BoundLogger,
        cache_logger_on_first_use=False,
    )
