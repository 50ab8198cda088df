"""Logger factory and configuration for pgmux.

This module provides centralized logger creation and configuration
management for the pgmux logging system.

Classes:
    LoggerFactory: Main logger factory and configuration manager
    LoggerConfig: Configuration for logger instances

Functions:
    get_logger: Convenience function for getting loggers
    get_performance_logger: Convenience function for getting performance loggers
    configure_logging: Configure logging system globally

Example:
    >>> from pgmux.logging import get_logger, configure_logging
    >>> configure_logging(level="INFO", format="json")
    >>> logger = get_logger(__name__)
    >>> logger.info("Registry built", registered=3, skipped=1)
"""

import logging
import logging.handlers
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog

from ..core.exceptions import ValidationError
from .formatters import get_formatter
from .performance import PerformanceLogger
from .structured import StructuredLogger

if TYPE_CHECKING:
    from ..config.models import LoggingConfig


@dataclass
class LoggerConfig:
    """Configuration for logger instances.

    Attributes:
        level: Log level
        format: Log format (json, text)
        console_output: Enable console output
        file_path: Log file path (enables file output)
        max_file_size: Maximum file size before rotation
        backup_count: Number of backup files to keep
        correlation_ids: Enable correlation ID tracking
    """
    level: str = "INFO"
    format: str = "json"
    console_output: bool = True
    file_path: Optional[str] = None
    max_file_size: int = 10485760  # 10MB
    backup_count: int = 5
    correlation_ids: bool = True


class LoggerFactory:
    """Factory for creating and configuring pgmux loggers.

    Loggers are cached by name. Creating a logger never touches global
    logging state; handlers and structlog processors are only installed by
    an explicit ``configure_*`` call.

    Example:
        >>> factory = LoggerFactory()
        >>> factory.configure_from_config(settings.logging)
        >>> logger = factory.get_logger("database.registry")
        >>> perf_logger = factory.get_performance_logger("database.client")
    """

    def __init__(self, config: Optional[LoggerConfig] = None) -> None:
        self.config = config or LoggerConfig()
        self.initialized = False
        self._loggers: Dict[str, StructuredLogger] = {}
        self._performance_loggers: Dict[str, PerformanceLogger] = {}
        self._handlers: List[logging.Handler] = []

    def configure_from_config(self, logging_config: "LoggingConfig") -> None:
        """Configure factory from a ``LoggingConfig`` instance."""
        self.config = LoggerConfig(
            level=logging_config.level,
            format=logging_config.format,
            console_output=logging_config.console_output,
            file_path=str(logging_config.file_path) if logging_config.file_path else None,
            max_file_size=logging_config.max_file_size,
            backup_count=logging_config.backup_count,
        )
        self._configure_logging_system()

    def configure_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Configure factory from dictionary; unknown keys are ignored."""
        valid_keys = set(LoggerConfig.__dataclass_fields__)
        filtered = {k: v for k, v in config_dict.items() if k in valid_keys}
        self.config = replace(self.config, **filtered)
        self._configure_logging_system()

    def _level(self) -> int:
        level = getattr(logging, str(self.config.level).upper(), None)
        if not isinstance(level, int):
            raise ValidationError(f"Invalid log level: {self.config.level}")
        return level

    def _configure_logging_system(self) -> None:
        self._configure_stdlib_logging()
        self._configure_structlog()
        self.initialized = True

        for logger in self._loggers.values():
            logger.set_level(self.config.level)

    def _configure_stdlib_logging(self) -> None:
        """Install console and rotating file handlers on the root logger."""
        level = self._level()
        root_logger = logging.getLogger()
        root_logger.setLevel(level)

        # Replace handlers installed by a previous configuration only
        for handler in self._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self._handlers.clear()

        formatter = get_formatter(self.config.format)

        if self.config.console_output:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(level)
            console_handler.setFormatter(formatter)
            self._handlers.append(console_handler)

        if self.config.file_path:
            file_path = Path(self.config.file_path)
            file_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                filename=str(file_path),
                maxBytes=self.config.max_file_size,
                backupCount=self.config.backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            self._handlers.append(file_handler)

        for handler in self._handlers:
            root_logger.addHandler(handler)

    def _configure_structlog(self) -> None:
        """Configure structlog to emit through the stdlib handlers."""
        processors: List[Any] = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            # Hand fields to the stdlib formatters as record extras
            structlog.stdlib.render_to_log_kwargs,
        ]

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=False,
        )

    def get_logger(
        self,
        name: str,
        *,
        level: Optional[str] = None,
        enable_correlation: Optional[bool] = None,
    ) -> StructuredLogger:
        """Get or create a structured logger.

        Args:
            name: Logger name (typically module name)
            level: Override default log level
            enable_correlation: Override correlation ID setting

        Returns:
            StructuredLogger instance
        """
        cache_key = f"{name}_{level}_{enable_correlation}"
        if cache_key in self._loggers:
            return self._loggers[cache_key]

        logger = StructuredLogger(
            name=name,
            level=level or self.config.level,
            enable_correlation=(
                enable_correlation if enable_correlation is not None else self.config.correlation_ids
            ),
        )
        self._loggers[cache_key] = logger
        return logger

    def get_performance_logger(
        self,
        name: str,
        *,
        auto_log: Optional[bool] = None,
        track_metrics: bool = True,
    ) -> PerformanceLogger:
        """Get or create a performance logger."""
        cache_key = f"{name}_{auto_log}_{track_metrics}"
        if cache_key in self._performance_loggers:
            return self._performance_loggers[cache_key]

        perf_logger = PerformanceLogger(
            name=name,
            auto_log=auto_log if auto_log is not None else True,
            track_metrics=track_metrics,
            logger=self.get_logger(f"perf.{name}"),
        )
        self._performance_loggers[cache_key] = perf_logger
        return perf_logger

    def set_level(self, level: str) -> None:
        """Set log level for the root logger and every cached logger.

        Raises:
            ValidationError: If the level name is unknown
        """
        if not isinstance(getattr(logging, level.upper(), None), int):
            raise ValidationError(f"Invalid log level: {level}")

        self.config.level = level.upper()
        for logger in self._loggers.values():
            logger.set_level(level)
        logging.getLogger().setLevel(getattr(logging, level.upper()))

    def shutdown(self) -> None:
        """Remove installed handlers and clear logger caches."""
        root_logger = logging.getLogger()
        for handler in self._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self._handlers.clear()

        self._loggers.clear()
        self._performance_loggers.clear()
        self.initialized = False

    def __repr__(self) -> str:
        return (
            f"LoggerFactory("
            f"level={self.config.level!r}, "
            f"format={self.config.format!r}, "
            f"initialized={self.initialized})"
        )


# Global logger factory instance
_global_factory = LoggerFactory()


def configure_logging(
    *,
    level: str = "INFO",
    format: str = "json",
    console_output: bool = True,
    file_path: Optional[str] = None,
    **kwargs: Any,
) -> None:
    """Configure pgmux logging system globally.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format (json, text)
        console_output: Enable console output
        file_path: Log file path (enables rotating file output)
        **kwargs: Additional ``LoggerConfig`` options

    Example:
        >>> configure_logging(level="DEBUG", format="text", file_path="/var/log/pgmux.log")
    """
    _global_factory.configure_from_dict({
        "level": level,
        "format": format,
        "console_output": console_output,
        "file_path": file_path,
        **kwargs,
    })


def get_logger(
    name: str,
    *,
    level: Optional[str] = None,
    enable_correlation: Optional[bool] = None,
) -> StructuredLogger:
    """Get or create a structured logger using the global factory.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Router ready", actions=13)
    """
    return _global_factory.get_logger(name=name, level=level, enable_correlation=enable_correlation)


def get_performance_logger(
    name: str,
    *,
    auto_log: Optional[bool] = None,
    track_metrics: bool = True,
) -> PerformanceLogger:
    """Get or create a performance logger using the global factory.

    Example:
        >>> perf_logger = get_performance_logger("database.client")
        >>> with perf_logger.measure("database_sizes"):
        ...     rows = await pool.fetch(SELECT_DATABASE_SIZES)
    """
    return _global_factory.get_performance_logger(
        name=name,
        auto_log=auto_log,
        track_metrics=track_metrics,
    )


def get_factory() -> LoggerFactory:
    """Get the global logger factory instance."""
    return _global_factory


def shutdown_logging() -> None:
    """Shutdown the global logging system."""
    _global_factory.shutdown()
