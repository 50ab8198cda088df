"""Structured logging implementation for pgmux.

This module provides structured logging capabilities with context management,
correlation IDs, and consistent formatting across the system.

Classes:
    StructuredLogger: Main structured logging interface
    LogContext: Task-local context for log correlation
    ContextFilter: Filter for adding context to stdlib log records

Example:
    >>> logger = StructuredLogger("database.client")
    >>> with logger.context(instance="analytics", action="wal_activity"):
    ...     logger.info("Dispatching query")
    ...     logger.warning("Action unsupported", server_version="13.4")
"""

import contextvars
import logging
import time
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Generator, Optional

import structlog

from ..core.exceptions import PgMuxException

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LogContext:
    """Context for log correlation and metadata.

    Values are stored in a ``contextvars.ContextVar`` so every asyncio task
    sees its own copy: context set while one request is routed never leaks
    into a request running concurrently on the same thread.

    Example:
        >>> context = LogContext()
        >>> context.set("instance", "analytics")
        >>> context.get_all()
        {'instance': 'analytics'}
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._var: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
            f"pgmux_log_context_{id(self)}"
        )
        self._default: Dict[str, Any] = dict(initial or {})

    def _current(self) -> Dict[str, Any]:
        return self._var.get(self._default)

    def set(self, key: str, value: Any) -> None:
        """Set context value."""
        updated = dict(self._current())
        updated[key] = value
        self._var.set(updated)

    def get(self, key: str, default: Any = None) -> Any:
        """Get context value, or ``default`` if the key is unset."""
        return self._current().get(key, default)

    def get_all(self) -> Dict[str, Any]:
        """Get a copy of all context values."""
        return dict(self._current())

    def update(self, context: Dict[str, Any]) -> None:
        """Update context with multiple values."""
        updated = dict(self._current())
        updated.update(context)
        self._var.set(updated)

    def replace(self, context: Dict[str, Any]) -> None:
        """Replace the whole context."""
        self._var.set(dict(context))


class ContextFilter(logging.Filter):
    """Logging filter that adds context information to log records.

    This filter copies the current ``LogContext`` values onto every stdlib
    log record that passes through it.
    """

    def __init__(self, context: LogContext) -> None:
        super().__init__()
        self._context = context

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context information to log record.

        Returns:
            True (always allow record through)
        """
        for key, value in self._context.get_all().items():
            # Never override existing record attributes
            if not hasattr(record, key):
                setattr(record, key, value)

        if not hasattr(record, "correlation_id"):
            record.correlation_id = self._context.get("correlation_id", "unknown")

        if not hasattr(record, "timestamp_iso"):
            record.timestamp_iso = datetime.fromtimestamp(record.created).isoformat()

        return True


class StructuredLogger:
    """Structured logger with context management and correlation.

    Keyword arguments passed to the logging methods become structured fields
    of the event.

    Attributes:
        name: Logger name

    Example:
        >>> logger = StructuredLogger("registry")
        >>> with logger.context(instance="analytics"):
        ...     logger.info("Instance registered", version="16.2")
        >>> bound = logger.bind(instance="billing")
        >>> bound.warning("Registration skipped", error_code="CONNECT_FAILED")
    """

    def __init__(
        self,
        name: str,
        *,
        level: str = "INFO",
        enable_correlation: bool = True,
        context: Optional[LogContext] = None,
    ) -> None:
        """Initialize structured logger.

        Args:
            name: Logger name (typically module name)
            level: Initial log level
            enable_correlation: Whether to attach correlation IDs
            context: Context to share (bound loggers get their own copy)
        """
        self.name = name
        self._enable_correlation = enable_correlation
        self._logger = structlog.get_logger(name)
        self._context = context or LogContext()

        self._stdlib_logger = logging.getLogger(name)
        self._stdlib_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        if not any(isinstance(f, ContextFilter) for f in self._stdlib_logger.filters):
            self._stdlib_logger.addFilter(ContextFilter(self._context))

    def _ensure_correlation_id(self) -> str:
        correlation_id = self._context.get("correlation_id")
        if not correlation_id:
            correlation_id = str(uuid.uuid4())
            self._context.set("correlation_id", correlation_id)
        return correlation_id

    def _prepare_event_dict(self, **kwargs: Any) -> Dict[str, Any]:
        """Merge context, correlation ID and event fields."""
        event_dict: Dict[str, Any] = {"logger": self.name}
        event_dict.update(self._context.get_all())

        if self._enable_correlation:
            event_dict["correlation_id"] = self._ensure_correlation_id()

        event_dict.update(kwargs)
        return event_dict

    @contextmanager
    def context(self, **context_data: Any) -> Generator[None, None, None]:
        """Context manager for adding temporary context data.

        Example:
            >>> with logger.context(instance="analytics", action="version"):
            ...     logger.info("Routing request")
        """
        old_context = self._context.get_all()
        try:
            self._context.update(context_data)
            yield
        finally:
            self._context.replace(old_context)

    def bind(self, **context_data: Any) -> "StructuredLogger":
        """Create new logger instance with bound context.

        Example:
            >>> client_logger = logger.bind(instance="analytics")
            >>> client_logger.info("Connected")  # includes instance
        """
        bound_context = self._context.get_all()
        bound_context.update(context_data)
        return StructuredLogger(
            self.name,
            level=self.get_level(),
            enable_correlation=self._enable_correlation,
            context=LogContext(bound_context),
        )

    def set_level(self, level: str) -> None:
        """Set logging level.

        Raises:
            PgMuxException: If the level name is unknown
        """
        if not isinstance(level, str) or level.upper() not in _LEVELS:
            raise PgMuxException(
                f"Unknown log level: {level}",
                code="UNKNOWN_LOG_LEVEL",
            )
        self._stdlib_logger.setLevel(getattr(logging, level.upper()))

    def get_level(self) -> str:
        """Get current logging level name."""
        return logging.getLevelName(self._stdlib_logger.getEffectiveLevel())

    def is_enabled_for(self, level: str) -> bool:
        return self._stdlib_logger.isEnabledFor(getattr(logging, level.upper(), logging.INFO))

    def log(self, level: str, message: str, **kwargs: Any) -> None:
        """Log a message at a level given by name."""
        method = getattr(self, level.lower(), None)
        if method is None or level.upper() not in _LEVELS:
            raise PgMuxException(f"Unknown log level: {level}", code="UNKNOWN_LOG_LEVEL")
        method(message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._logger.debug(message, **self._prepare_event_dict(**kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message."""
        self._logger.info(message, **self._prepare_event_dict(**kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._logger.warning(message, **self._prepare_event_dict(**kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message."""
        self._logger.error(message, **self._prepare_event_dict(**kwargs))

    def critical(self, message: str, **kwargs: Any) -> None:
        """Log critical message."""
        self._logger.critical(message, **self._prepare_event_dict(**kwargs))

    def exception(self, message: str, exc_info: bool = True, **kwargs: Any) -> None:
        """Log error message with the active exception's traceback."""
        self._logger.error(message, exc_info=exc_info, **self._prepare_event_dict(**kwargs))

    def log_operation_start(self, operation: str, **context: Any) -> Dict[str, Any]:
        """Log operation start and return the context for completion logging."""
        operation_context = {
            "operation_id": str(uuid.uuid4()),
            "operation": operation,
            "start_time": time.time(),
            **context,
        }
        self.info("Operation started", **operation_context)
        return operation_context

    def log_operation_success(self, operation_context: Dict[str, Any], **results: Any) -> None:
        """Log successful operation completion."""
        duration_ms = (time.time() - operation_context["start_time"]) * 1000
        self.info(
            "Operation completed successfully",
            duration_ms=duration_ms,
            **operation_context,
            **results,
        )

    def log_operation_failure(
        self,
        operation_context: Dict[str, Any],
        error: Exception,
        **error_context: Any,
    ) -> None:
        """Log operation failure, including the pgmux error code when present."""
        duration_ms = (time.time() - operation_context["start_time"]) * 1000
        self.error(
            "Operation failed",
            duration_ms=duration_ms,
            error=getattr(error, "message", str(error)),
            error_type=type(error).__name__,
            error_code=getattr(error, "code", None),
            **operation_context,
            **error_context,
        )

    def get_correlation_id(self) -> Optional[str]:
        if not self._enable_correlation:
            return None
        return self._context.get("correlation_id")

    def get_context(self) -> Dict[str, Any]:
        """Get current context data."""
        return self._context.get_all()

    def __repr__(self) -> str:
        return (
            f"StructuredLogger("
            f"name={self.name!r}, "
            f"level={self.get_level()!r}, "
            f"correlation={self._enable_correlation})"
        )
