"""Base classes for pgmux components.

This module provides the foundational abstract base classes that long-lived
pgmux components inherit from, ensuring consistent configuration handling,
initialization and lifecycle tracking.

Classes:
    BaseComponent: Generic base class for all pgmux components
    AsyncComponent: Base class for async-capable components
    LifecycleComponent: Base class for components with a tracked state machine

Example:
    >>> class InstanceClient(LifecycleComponent[ConnectionConfig]):
    ...     async def _async_initialize(self) -> None:
    ...         self._pool = await asyncpg.create_pool(...)
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import (
    Any,
    ClassVar,
    Dict,
    Generic,
    List,
    Tuple,
    TypeVar,
)

import structlog

from .exceptions import (
    ConfigurationError,
    ErrorCodes,
    PgMuxException,
    ValidationError,
)

# Configuration type
T = TypeVar("T")


class BaseComponent(Generic[T], ABC):
    """Base class for all pgmux components.

    Type Parameters:
        T: Type of configuration object this component accepts

    Attributes:
        component_name: Name of the component for logging and identification
        component_version: Component version for compatibility checking
    """

    component_name: ClassVar[str] = "BaseComponent"
    component_version: ClassVar[str] = "1.0.0"

    def __init__(self, config: T) -> None:
        """Initialize base component.

        Args:
            config: Configuration object for this component

        Raises:
            ValidationError: If configuration is missing
            ConfigurationError: If configuration is invalid
        """
        if config is None:
            raise ValidationError(
                "Configuration cannot be None",
                code="CONFIG_NULL",
                context={"component": self.component_name},
            )

        self._config: T = config
        self._initialized: bool = False
        self._creation_time: float = time.time()
        self._logger = structlog.get_logger(self.__class__.__name__)

        if not self.validate_config():
            raise ConfigurationError(
                f"Invalid configuration for {self.component_name}",
                code=ErrorCodes.CONFIG_INVALID,
                context={"component": self.component_name},
            )

    @property
    def config(self) -> T:
        """Get component configuration."""
        return self._config

    @property
    def is_initialized(self) -> bool:
        """Check if component is initialized."""
        return self._initialized

    @property
    def uptime(self) -> float:
        """Get component uptime in seconds."""
        return time.time() - self._creation_time

    def validate_config(self) -> bool:
        """Validate component configuration.

        Subclasses override this method to implement component-specific
        configuration validation.

        Returns:
            True if configuration is valid
        """
        return self._config is not None

    def get_health_status(self) -> Dict[str, Any]:
        """Get component health status.

        Returns:
            Dictionary containing component health information
        """
        return {
            "component": self.component_name,
            "component_version": self.component_version,
            "initialized": self._initialized,
            "uptime_seconds": self.uptime,
            "status": "healthy" if self._initialized else "not_initialized",
        }

    def __repr__(self) -> str:
        """Return string representation of component."""
        return (
            f"{self.__class__.__name__}("
            f"name={self.component_name!r}, "
            f"initialized={self._initialized}, "
            f"uptime={self.uptime:.2f}s)"
        )


class AsyncComponent(BaseComponent[T]):
    """Base class for async-capable components.

    This class provides async initialization and cleanup support for
    components that perform network I/O.
    """

    def __init__(self, config: T) -> None:
        """Initialize async component.

        Args:
            config: Configuration object for this component
        """
        super().__init__(config)
        self._initialization_lock = asyncio.Lock()
        self._cleanup_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize component asynchronously.

        Concurrent callers are serialized; a component that is already
        initialized returns immediately.

        Raises:
            PgMuxException: If initialization fails. pgmux errors raised by
                ``_async_initialize`` propagate unchanged, anything else is
                wrapped with code ``INIT_FAILED``.
        """
        async with self._initialization_lock:
            if self._initialized:
                return

            self._logger.debug("Initializing component", component=self.component_name)

            try:
                await self._async_initialize()
            except PgMuxException as e:
                self._logger.error(
                    "Component initialization failed",
                    component=self.component_name,
                    error=str(e),
                )
                raise
            except Exception as e:
                self._logger.error(
                    "Component initialization failed",
                    component=self.component_name,
                    error=str(e),
                )
                raise PgMuxException(
                    f"Failed to initialize {self.component_name}: {e}",
                    code=ErrorCodes.INIT_FAILED,
                    context={"component": self.component_name},
                    cause=e,
                ) from e

            self._initialized = True
            self._logger.debug(
                "Component initialized successfully",
                component=self.component_name,
            )

    async def cleanup(self) -> None:
        """Clean up component resources asynchronously.

        Cleanup errors are logged and not raised, so they never mask the
        error that triggered the cleanup.
        """
        async with self._cleanup_lock:
            if not self._initialized:
                return

            try:
                await self._async_cleanup()
            except Exception as e:
                self._logger.error(
                    "Component cleanup failed",
                    component=self.component_name,
                    error=str(e),
                )
            finally:
                self._initialized = False

    @abstractmethod
    async def _async_initialize(self) -> None:
        """Perform async initialization work."""
        pass

    async def _async_cleanup(self) -> None:
        """Perform async cleanup work."""
        pass

    async def __aenter__(self) -> "AsyncComponent[T]":
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.cleanup()


class LifecycleComponent(AsyncComponent[T]):
    """Base class for components with a tracked lifecycle state machine.

    States move ``created -> starting -> running`` on success and
    ``starting -> failed`` on error; ``failed`` is terminal. Subclasses can
    rename the states through the ``STATE_*`` class attributes.
    """

    STATE_CREATED: ClassVar[str] = "created"
    STATE_STARTING: ClassVar[str] = "starting"
    STATE_RUNNING: ClassVar[str] = "running"
    STATE_FAILED: ClassVar[str] = "failed"
    STATE_STOPPED: ClassVar[str] = "stopped"

    def __init__(self, config: T) -> None:
        """Initialize lifecycle component.

        Args:
            config: Configuration object for this component
        """
        super().__init__(config)
        self._state: str = self.STATE_CREATED
        self._state_history: List[Tuple[str, float]] = [(self.STATE_CREATED, time.time())]

    @property
    def state(self) -> str:
        """Get current component state."""
        return self._state

    @property
    def state_history(self) -> List[Tuple[str, float]]:
        """Get component state history as (state, timestamp) tuples."""
        return self._state_history.copy()

    def _set_state(self, new_state: str) -> None:
        """Set component state and record it in history."""
        self._state = new_state
        self._state_history.append((new_state, time.time()))

        self._logger.debug(
            "Component state changed",
            component=self.component_name,
            new_state=new_state,
        )

    async def initialize(self) -> None:
        """Initialize component with state tracking.

        Raises:
            PgMuxException: If the component is not in the created state or
                initialization fails
        """
        if self._state != self.STATE_CREATED:
            raise PgMuxException(
                f"Cannot initialize component in state: {self._state}",
                code="INVALID_STATE",
                context={
                    "component": self.component_name,
                    "current_state": self._state,
                },
            )

        self._set_state(self.STATE_STARTING)

        try:
            await super().initialize()
        except BaseException:
            self._set_state(self.STATE_FAILED)
            raise

        self._set_state(self.STATE_RUNNING)

    async def cleanup(self) -> None:
        """Clean up component with state tracking."""
        if self._state in (self.STATE_STOPPED, self.STATE_FAILED):
            return

        await super().cleanup()
        self._set_state(self.STATE_STOPPED)

    def get_health_status(self) -> Dict[str, Any]:
        """Get component health status including lifecycle state."""
        status = super().get_health_status()
        status["state"] = self._state
        return status
