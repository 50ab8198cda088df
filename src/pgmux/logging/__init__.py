"""pgmux structured logging framework.

This package provides structured logging and performance timing for pgmux.

Classes:
    StructuredLogger: Main structured logging interface
    PerformanceLogger: Performance monitoring and timing
    LoggerFactory: Logger creation and configuration
    JSONFormatter / TextFormatter: stdlib formatters

Example:
    >>> from pgmux.logging import get_logger, get_performance_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Instance registered", instance="analytics")
    >>>
    >>> perf_logger = get_performance_logger("database.client")
    >>> with perf_logger.measure("cache_hit_rate"):
    ...     pass
"""

from .factory import (
    LoggerConfig,
    LoggerFactory,
    configure_logging,
    get_factory,
    get_logger,
    get_performance_logger,
    shutdown_logging,
)
from .formatters import JSONFormatter, TextFormatter, get_formatter
from .performance import PerformanceLogger, PerformanceMetrics, TimingContext, TimingMetrics
from .structured import ContextFilter, LogContext, StructuredLogger

__all__ = [
    # Factory and configuration
    "LoggerConfig",
    "LoggerFactory",
    "configure_logging",
    "get_factory",
    "get_logger",
    "get_performance_logger",
    "shutdown_logging",

    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "get_formatter",

    # Performance logging
    "PerformanceLogger",
    "PerformanceMetrics",
    "TimingContext",
    "TimingMetrics",

    # Structured logging
    "ContextFilter",
    "LogContext",
    "StructuredLogger",
]
