"""pgmux exception hierarchy.

This module defines the structured error taxonomy used across pgmux. Every
error carries a stable error code, optional context and the originating cause
so that callers (the router in particular) can turn any failure into a
well-formed response envelope.

Classes:
    PgMuxException: Base exception for all pgmux operations
    ConfigurationError: Configuration related errors
    ConnectionError: Instance connection errors
    VersionError: Server version detection errors
    QueryError: Diagnostic query errors
    RoutingError: Query routing errors

Example:
    >>> try:
    ...     await client.connect()
    ... except ConnectError as e:
    ...     logger.error("Connection failed", error_code=e.code, context=e.context)
"""

import asyncio
from typing import Any, Dict, Optional


class PgMuxException(Exception):
    """Base exception for all pgmux operations.

    Attributes:
        message: Bare human-readable message (without the error code)
        code: Unique error code for categorization
        context: Additional context information about the error
        cause: Original exception that caused this error (if any)

    Example:
        >>> raise PgMuxException(
        ...     "Operation failed",
        ...     code="OPERATION_FAILED",
        ...     context={"instance": "analytics"}
        ... )
    """

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        """Initialize pgmux exception.

        Args:
            message: Human-readable error description
            code: Unique error code for categorization (defaults to class name)
            context: Additional context information
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message: str = message
        self.code: str = code or self.__class__.__name__
        self.context: Dict[str, Any] = context or {}
        self.cause: Optional[BaseException] = cause

    def __str__(self) -> str:
        """Return formatted error message with code."""
        return f"{self.code}: {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation of the exception."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"context={self.context!r}, "
            f"cause={self.cause!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(PgMuxException):
    """Configuration related errors.

    Raised when configuration is invalid, missing, or cannot be processed.
    """
    pass


class ValidationError(ConfigurationError):
    """Data validation errors."""
    pass


class ConfigNotFoundError(ConfigurationError):
    """Raised when the resolver cannot find the connection parameters of an instance."""
    pass


class ConnectionError(PgMuxException):
    """Instance connection related errors.

    Base class for client construction and initial handshake failures.
    """
    pass


class ClientCreationError(ConnectionError):
    """Raised when an instance client cannot be constructed."""
    pass


class ConnectError(ConnectionError):
    """Raised when an instance client fails to reach the ready state.

    The originating failure (pool creation, ping or version detection) is
    available as ``cause``.
    """
    pass


class VersionError(PgMuxException):
    """Server version detection errors."""
    pass


class VersionQueryError(VersionError):
    """Raised when the server version query itself fails."""
    pass


class VersionUnparsableError(VersionError):
    """Raised when the reported version string cannot be parsed."""
    pass


class VersionNotDetectedError(VersionError):
    """Raised when the version is requested from a client that never became ready."""
    pass


class QueryError(PgMuxException):
    """Diagnostic query errors.

    Raised when a query fails against the target server. Driver exceptions
    are wrapped in this class and kept as ``cause``.
    """
    pass


class UnsupportedOnVersionError(QueryError):
    """Raised when an action is not available on the detected server version."""
    pass


class ExtensionMissingError(QueryError):
    """Raised when a required server-side extension is not installed."""
    pass


class NotFoundError(PgMuxException):
    """Raised when a named database or instance does not exist."""
    pass


class InstanceAlreadyExistsError(PgMuxException):
    """Raised when registering an instance whose name is already taken."""
    pass


class RoutingError(PgMuxException):
    """Query routing errors."""
    pass


class ClientNotFoundError(RoutingError):
    """Raised when an instance has no live registry entry."""
    pass


class UnsupportedActionError(RoutingError):
    """Raised when a request names an unknown action."""
    pass


class TimeoutError(PgMuxException):
    """Operation timeout errors."""
    pass


# Error code constants
class ErrorCodes:
    """Common error codes for pgmux exceptions."""

    # Configuration errors
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_INVALID = "CONFIG_INVALID"
    CONFIG_VALIDATION_FAILED = "CONFIG_VALIDATION_FAILED"

    # Connection errors
    CLIENT_CREATION_FAILED = "CLIENT_CREATION_FAILED"
    CONNECT_FAILED = "CONNECT_FAILED"
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    AUTH_FAILED = "AUTH_FAILED"

    # Version errors
    VERSION_QUERY_FAILED = "VERSION_QUERY_FAILED"
    VERSION_UNPARSABLE = "VERSION_UNPARSABLE"
    VERSION_NOT_DETECTED = "VERSION_NOT_DETECTED"

    # Query errors
    QUERY_EXECUTION_FAILED = "QUERY_EXECUTION_FAILED"
    UNSUPPORTED_ON_VERSION = "UNSUPPORTED_ON_VERSION"
    EXTENSION_MISSING = "EXTENSION_MISSING"
    NOT_FOUND = "NOT_FOUND"
    CLIENT_NOT_READY = "CLIENT_NOT_READY"

    # Instance management errors
    INSTANCE_ALREADY_EXISTS = "INSTANCE_ALREADY_EXISTS"

    # Routing errors
    CLIENT_NOT_FOUND = "CLIENT_NOT_FOUND"
    UNSUPPORTED_ACTION = "UNSUPPORTED_ACTION"

    # Generic errors
    INIT_FAILED = "INIT_FAILED"
    OPERATION_TIMEOUT = "OPERATION_TIMEOUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def create_error_from_exception(
    exc: Exception,
    message: Optional[str] = None,
    code: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
) -> PgMuxException:
    """Create pgmux exception from generic exception.

    pgmux exceptions are returned unchanged; everything else is mapped onto
    the closest class of the hierarchy.

    Args:
        exc: Original exception to convert
        message: Override message (uses original if not provided)
        code: Error code to assign
        context: Additional context information

    Returns:
        Appropriate pgmux exception type

    Example:
        >>> try:
        ...     await pool.fetch(query)
        ... except OSError as e:
        ...     raise create_error_from_exception(
        ...         e,
        ...         code=ErrorCodes.QUERY_EXECUTION_FAILED,
        ...         context={"instance": "analytics"}
        ...     )
    """
    if isinstance(exc, PgMuxException):
        return exc

    error_message = message or str(exc) or exc.__class__.__name__
    error_context = context or {}

    # Map common exception types to pgmux exceptions
    exception_mapping = {
        ConnectionRefusedError: ConnectError,
        asyncio.TimeoutError: TimeoutError,
        ValueError: ValidationError,
        TypeError: ValidationError,
        KeyError: NotFoundError,
    }

    exception_class = exception_mapping.get(type(exc), PgMuxException)

    return exception_class(
        error_message,
        code=code,
        context=error_context,
        cause=exc,
    )
