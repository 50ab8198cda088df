"""Log formatters for the pgmux logging system.

Classes:
    JSONFormatter: JSON format for structured logging
    TextFormatter: Human-readable text format

Example:
    >>> formatter = JSONFormatter()
    >>> handler.setFormatter(formatter)
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

# Attributes every stdlib LogRecord carries; anything else is an extra field
_STANDARD_ATTRS = frozenset({
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "message", "exc_info", "exc_text",
    "stack_info", "taskName",
})


def _extra_fields(record: logging.LogRecord, exclude: Iterable[str] = ()) -> Dict[str, Any]:
    excluded = set(exclude)
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS and key not in excluded
    }


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured log output.

    Example:
        {
            "timestamp": "2024-05-02T10:30:45.123456",
            "level": "INFO",
            "logger": "pgmux.database.registry",
            "message": "Instance registered",
            "correlation_id": "550e8400-e29b-41d4-a716-446655440000",
            "instance": "analytics"
        }
    """

    def __init__(
        self,
        *,
        timestamp_format: str = "iso",
        include_module: bool = False,
        exclude_fields: Optional[list] = None,
    ) -> None:
        """Initialize JSON formatter.

        Args:
            timestamp_format: Timestamp format ("iso", "unix")
            include_module: Include module and line number
            exclude_fields: List of fields to exclude from output
        """
        super().__init__()
        self.timestamp_format = timestamp_format
        self.include_module = include_module
        self.exclude_fields = set(exclude_fields or [])

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {"message": record.getMessage()}

        if "timestamp" not in self.exclude_fields:
            if self.timestamp_format == "unix":
                log_data["timestamp"] = record.created
            else:
                log_data["timestamp"] = datetime.fromtimestamp(record.created).isoformat()

        log_data["level"] = record.levelname
        log_data["logger"] = record.name

        if self.include_module:
            log_data["module"] = record.module
            log_data["line"] = record.lineno

        if record.exc_info and "exception" not in self.exclude_fields:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        # Record fields win over event fields of the same name
        for key, value in _extra_fields(record, self.exclude_fields).items():
            log_data.setdefault(key, value)

        return json.dumps(log_data, default=str, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """Human-readable text formatter.

    Example:
        2024-05-02 10:30:45.123 [INFO] pgmux.database.registry: Instance registered (instance=analytics)
    """

    COLOR_CODES = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
    }

    def __init__(self, *, include_extras: bool = True, colors: bool = False) -> None:
        super().__init__()
        self.include_extras = include_extras
        self.colors = colors

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as human-readable text."""
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%Y-%m-%d %H:%M:%S.") + f"{dt.microsecond:06d}"[:3]

        level = record.levelname
        if self.colors and level in self.COLOR_CODES:
            level_str = f"{self.COLOR_CODES[level]}[{level}]{self.COLOR_CODES['RESET']}"
        else:
            level_str = f"[{level}]"

        parts = [timestamp, level_str, f"{record.name}:", record.getMessage()]

        if self.include_extras:
            extras = [
                f"{key}={value}" if isinstance(value, str) else f"{key}={value!r}"
                for key, value in _extra_fields(record).items()
            ]
            if extras:
                parts.append("(" + ", ".join(extras) + ")")

        formatted = " ".join(parts)
        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)
        return formatted


def get_formatter(format_type: str, **kwargs: Any) -> logging.Formatter:
    """Get formatter instance by type.

    Args:
        format_type: Formatter type ('json', 'text')
        **kwargs: Additional formatter arguments

    Raises:
        ValueError: If format_type is not supported
    """
    format_type = format_type.lower()

    if format_type == "json":
        return JSONFormatter(**kwargs)
    elif format_type == "text":
        return TextFormatter(**kwargs)
    raise ValueError(f"Unsupported formatter type: {format_type}")
