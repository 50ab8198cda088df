"""Performance logging for pgmux operations.

This module provides timing of diagnostic operations and aggregation of the
measurements per operation name.

Classes:
    TimingMetrics: A single timing measurement
    PerformanceMetrics: Aggregated metrics of one operation
    TimingContext: Context manager for operation timing
    PerformanceLogger: Main performance logging interface

Example:
    >>> perf_logger = PerformanceLogger("database.client")
    >>> with perf_logger.measure("tables_info", instance="analytics") as timer:
    ...     rows = await pool.fetch(sql, limit)
    >>> timer.duration_ms
    12.7
"""

import statistics
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Generator, Optional, Union

from .structured import StructuredLogger

# Durations kept per operation for median and p95
DEFAULT_SAMPLE_SIZE = 1000
# Failure messages kept per operation
MAX_RECORDED_ERRORS = 50


@dataclass
class TimingMetrics:
    """Metrics for a single timing measurement.

    Attributes:
        operation: Operation name
        start_time: Operation start (perf counter)
        end_time: Operation end (perf counter)
        duration: Duration in seconds
        metadata: Additional metadata
        success: Whether operation succeeded
        error: Error information if failed
    """
    operation: str
    start_time: float
    end_time: Optional[float] = None
    duration: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    success: bool = True
    error: Optional[str] = None

    def complete(self, success: bool = True, error: Optional[str] = None) -> None:
        """Mark timing as complete."""
        self.end_time = time.perf_counter()
        self.duration = self.end_time - self.start_time
        self.success = success
        self.error = error

    @property
    def duration_ms(self) -> Optional[float]:
        return self.duration * 1000 if self.duration is not None else None

    @property
    def is_complete(self) -> bool:
        return self.end_time is not None


@dataclass
class PerformanceMetrics:
    """Aggregated performance metrics for an operation.

    Counters, totals and extremes cover every call. Median and p95 are taken
    over the latest ``sample_size`` durations, and only the latest
    ``MAX_RECORDED_ERRORS`` failure messages are kept.
    """
    operation: str
    sample_size: int = DEFAULT_SAMPLE_SIZE
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    total_duration: float = 0.0
    min_duration: Optional[float] = None
    max_duration: Optional[float] = None
    errors: Deque[str] = field(default_factory=lambda: deque(maxlen=MAX_RECORDED_ERRORS))
    _durations: Deque[float] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._durations = deque(maxlen=self.sample_size)

    def add_timing(self, timing: TimingMetrics) -> None:
        """Add a completed timing measurement to the aggregate."""
        if not timing.is_complete or timing.duration is None:
            return

        self.total_calls += 1
        if timing.success:
            self.successful_calls += 1
        else:
            self.failed_calls += 1
            if timing.error:
                self.errors.append(timing.error)

        duration = timing.duration
        self.total_duration += duration
        self._durations.append(duration)

        if self.min_duration is None or duration < self.min_duration:
            self.min_duration = duration
        if self.max_duration is None or duration > self.max_duration:
            self.max_duration = duration

    @property
    def avg_duration(self) -> Optional[float]:
        if self.total_calls == 0:
            return None
        return self.total_duration / self.total_calls

    @property
    def median_duration(self) -> Optional[float]:
        if not self._durations:
            return None
        return statistics.median(self._durations)

    @property
    def p95_duration(self) -> Optional[float]:
        # Percentiles only with sufficient data
        if len(self._durations) < 20:
            return None
        sorted_durations = sorted(self._durations)
        return sorted_durations[int(len(sorted_durations) * 0.95)]

    @property
    def success_rate(self) -> float:
        """Success rate as percentage (0-100)."""
        if self.total_calls == 0:
            return 0.0
        return (self.successful_calls / self.total_calls) * 100

    @property
    def error_rate(self) -> float:
        """Error rate as percentage (0-100)."""
        if self.total_calls == 0:
            return 0.0
        return (self.failed_calls / self.total_calls) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "total_calls": self.total_calls,
            "successful_calls": self.successful_calls,
            "failed_calls": self.failed_calls,
            "success_rate": self.success_rate,
            "error_rate": self.error_rate,
            "total_duration": self.total_duration,
            "min_duration": self.min_duration,
            "max_duration": self.max_duration,
            "avg_duration": self.avg_duration,
            "median_duration": self.median_duration,
            "p95_duration": self.p95_duration,
            "error_count": len(self.errors),
        }


class TimingContext:
    """Context manager for measuring operation timing.

    Example:
        >>> with TimingContext("version_query") as timer:
        ...     raw = await pool.fetchval("SELECT version()")
        >>> print(f"Query took {timer.duration_ms:.2f}ms")
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[StructuredLogger] = None,
        metadata: Optional[Dict[str, Any]] = None,
        auto_log: bool = True,
    ) -> None:
        self.operation = operation
        self.logger = logger
        self.metadata = metadata or {}
        self.auto_log = auto_log
        self._timing: Optional[TimingMetrics] = None

    @property
    def timing(self) -> Optional[TimingMetrics]:
        return self._timing

    @property
    def duration(self) -> Optional[float]:
        return self._timing.duration if self._timing else None

    @property
    def duration_ms(self) -> Optional[float]:
        return self._timing.duration_ms if self._timing else None

    def __enter__(self) -> "TimingContext":
        self._timing = TimingMetrics(
            operation=self.operation,
            start_time=time.perf_counter(),
            metadata=self.metadata,
        )

        if self.logger and self.auto_log:
            self.logger.debug("Operation started", operation=self.operation, **self.metadata)

        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._timing is None:
            return

        success = exc_type is None
        error = getattr(exc_val, "message", None) or (str(exc_val) if exc_val else None)
        self._timing.complete(success=success, error=error)

        if self.logger and self.auto_log:
            if success:
                self.logger.debug(
                    "Operation completed",
                    operation=self.operation,
                    duration_ms=self._timing.duration_ms,
                    success=True,
                    **self.metadata,
                )
            else:
                self.logger.warning(
                    "Operation failed",
                    operation=self.operation,
                    duration_ms=self._timing.duration_ms,
                    success=False,
                    error=error,
                    error_code=getattr(exc_val, "code", None),
                    **self.metadata,
                )


class PerformanceLogger:
    """Performance logger for monitoring operation timings.

    Attributes:
        name: Logger name
        logger: Underlying structured logger

    Example:
        >>> perf_logger = PerformanceLogger("database.client")
        >>> with perf_logger.measure("connection_stats"):
        ...     row = await pool.fetchrow(sql)
        >>> perf_logger.get_metrics("connection_stats").total_calls
        1
    """

    def __init__(
        self,
        name: str,
        *,
        auto_log: bool = True,
        track_metrics: bool = True,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        """Initialize performance logger.

        Args:
            name: Logger name
            auto_log: Whether to automatically log timing results
            track_metrics: Whether to track aggregated metrics
            sample_size: Durations kept per operation for median and p95
            logger: Custom structured logger instance
        """
        self.name = name
        self.auto_log = auto_log
        self.track_metrics = track_metrics
        self.sample_size = sample_size
        self.logger = logger or StructuredLogger(f"perf.{name}")
        self._metrics: Dict[str, PerformanceMetrics] = {}

    @contextmanager
    def measure(self, operation: str, **metadata: Any) -> Generator[TimingContext, None, None]:
        """Context manager for measuring operation performance.

        Args:
            operation: Operation name
            **metadata: Additional metadata

        Yields:
            TimingContext for the operation
        """
        timing_context = TimingContext(
            operation=operation,
            logger=self.logger if self.auto_log else None,
            metadata=metadata,
            auto_log=self.auto_log,
        )

        try:
            with timing_context as ctx:
                yield ctx
        finally:
            if self.track_metrics and timing_context.timing:
                self._add_timing_to_metrics(timing_context.timing)

    def _add_timing_to_metrics(self, timing: TimingMetrics) -> None:
        if timing.operation not in self._metrics:
            self._metrics[timing.operation] = PerformanceMetrics(
                operation=timing.operation,
                sample_size=self.sample_size,
            )
        self._metrics[timing.operation].add_timing(timing)

    def get_metrics(
        self, operation: Optional[str] = None
    ) -> Union[PerformanceMetrics, Dict[str, PerformanceMetrics]]:
        """Get metrics for one operation, or a dict of all of them."""
        if operation:
            return self._metrics.get(operation, PerformanceMetrics(operation=operation))
        return dict(self._metrics)

    def __repr__(self) -> str:
        return (
            f"PerformanceLogger("
            f"name={self.name!r}, "
            f"operations={len(self._metrics)}, "
            f"auto_log={self.auto_log})"
        )
