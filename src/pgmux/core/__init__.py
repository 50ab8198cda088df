"""pgmux core infrastructure.

This package provides the foundational components for pgmux including base
classes, exception handling, protocols and utilities.

Modules:
    base: Component base classes
    exceptions: Exception hierarchy
    protocols: System protocols and interfaces
    utils: Utility functions

Classes:
    BaseComponent: Base class for all components
    AsyncComponent: Base class for async components
    LifecycleComponent: Base class with a tracked state machine
    PgMuxException: Base exception class

Example:
    >>> from pgmux.core import LifecycleComponent
    >>> from pgmux.core.exceptions import ConfigNotFoundError
    >>> from pgmux.core.utils import safe_int
"""

from .base import (
    AsyncComponent,
    BaseComponent,
    LifecycleComponent,
)
from .exceptions import (
    ClientCreationError,
    ClientNotFoundError,
    ConfigNotFoundError,
    ConfigurationError,
    ConnectError,
    ConnectionError,
    ErrorCodes,
    ExtensionMissingError,
    InstanceAlreadyExistsError,
    NotFoundError,
    PgMuxException,
    QueryError,
    RoutingError,
    TimeoutError,
    UnsupportedActionError,
    UnsupportedOnVersionError,
    ValidationError,
    VersionError,
    VersionNotDetectedError,
    VersionQueryError,
    VersionUnparsableError,
    create_error_from_exception,
)
from .protocols import (
    ClientFactory,
    ClientRegistry,
    ConfigResolver,
    DiagnosticsClient,
    InstanceStorage,
)
from .utils import (
    ValidationUtils,
    safe_cast,
    safe_int,
)

__all__ = [
    # Base classes
    "BaseComponent",
    "AsyncComponent",
    "LifecycleComponent",

    # Exceptions
    "PgMuxException",
    "ConfigurationError",
    "ValidationError",
    "ConfigNotFoundError",
    "ConnectionError",
    "ClientCreationError",
    "ConnectError",
    "VersionError",
    "VersionQueryError",
    "VersionUnparsableError",
    "VersionNotDetectedError",
    "QueryError",
    "UnsupportedOnVersionError",
    "ExtensionMissingError",
    "NotFoundError",
    "InstanceAlreadyExistsError",
    "RoutingError",
    "ClientNotFoundError",
    "UnsupportedActionError",
    "TimeoutError",
    "ErrorCodes",
    "create_error_from_exception",

    # Protocols
    "ConfigResolver",
    "InstanceStorage",
    "DiagnosticsClient",
    "ClientFactory",
    "ClientRegistry",

    # Utilities
    "ValidationUtils",
    "safe_cast",
    "safe_int",
]
