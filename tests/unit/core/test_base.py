"""Unit tests for pgmux base classes.

This module tests the base component classes including configuration
handling, async initialization and lifecycle state tracking.
"""

import asyncio

import pytest

from pgmux.core.base import AsyncComponent, BaseComponent, LifecycleComponent
from pgmux.core.exceptions import (
    ConfigurationError,
    ConnectError,
    PgMuxException,
    ValidationError,
)


# Test configuration class - NOT a test class (no Test prefix)
class ComponentTestConfig:
    """Test configuration for component testing."""
    def __init__(self, name: str = "test", valid: bool = True):
        self.name = name
        self.valid = valid


class _TestableBaseComponent(BaseComponent[ComponentTestConfig]):
    component_name = "TestComponent"
    component_version = "2.1.0"

    def validate_config(self) -> bool:
        return self.config.valid


class _TestableAsyncComponent(AsyncComponent[ComponentTestConfig]):
    component_name = "TestAsyncComponent"

    def __init__(self, config: ComponentTestConfig, error: Exception = None):
        super().__init__(config)
        self.error = error
        self.initialize_calls = 0
        self.cleanup_called = False

    async def _async_initialize(self) -> None:
        self.initialize_calls += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error

    async def _async_cleanup(self) -> None:
        self.cleanup_called = True


class _LifecycleDefaults(LifecycleComponent[ComponentTestConfig]):
    component_name = "LifecycleDefaults"

    async def _async_initialize(self) -> None:
        pass


class _ConnectingComponent(LifecycleComponent[ComponentTestConfig]):
    """Lifecycle component with renamed states."""
    component_name = "ConnectingComponent"

    STATE_STARTING = "connecting"
    STATE_RUNNING = "ready"
    STATE_STOPPED = "closed"

    def __init__(self, config: ComponentTestConfig, error: BaseException = None):
        super().__init__(config)
        self.error = error

    async def _async_initialize(self) -> None:
        if self.error is not None:
            raise self.error


class TestBaseComponent:
    """Test BaseComponent functionality."""

    def test_component_initialization(self):
        config = ComponentTestConfig(name="test_component")
        component = _TestableBaseComponent(config)

        assert component.config is config
        assert not component.is_initialized
        assert component.component_name == "TestComponent"
        assert component.component_version == "2.1.0"
        assert component.uptime >= 0

    def test_none_config_raises_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            _TestableBaseComponent(None)

        assert exc_info.value.code == "CONFIG_NULL"

    def test_invalid_config_raises_configuration_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _TestableBaseComponent(ComponentTestConfig(valid=False))

        assert exc_info.value.code == "CONFIG_INVALID"
        assert exc_info.value.context["component"] == "TestComponent"

    def test_component_health_status(self):
        component = _TestableBaseComponent(ComponentTestConfig())

        health = component.get_health_status()

        assert health["component"] == "TestComponent"
        assert health["component_version"] == "2.1.0"
        assert health["initialized"] is False
        assert health["status"] == "not_initialized"
        assert "uptime_seconds" in health

    def test_component_repr(self):
        repr_str = repr(_TestableBaseComponent(ComponentTestConfig()))

        assert "_TestableBaseComponent" in repr_str
        assert "TestComponent" in repr_str
        assert "initialized=False" in repr_str


class TestAsyncComponent:
    """Test AsyncComponent functionality."""

    @pytest.mark.asyncio
    async def test_initialize_and_cleanup(self):
        component = _TestableAsyncComponent(ComponentTestConfig())

        await component.initialize()
        assert component.is_initialized

        await component.cleanup()
        assert not component.is_initialized
        assert component.cleanup_called

    @pytest.mark.asyncio
    async def test_concurrent_initialize_runs_once(self):
        component = _TestableAsyncComponent(ComponentTestConfig())

        await asyncio.gather(component.initialize(), component.initialize(), component.initialize())

        assert component.initialize_calls == 1

    @pytest.mark.asyncio
    async def test_cleanup_without_init_is_noop(self):
        component = _TestableAsyncComponent(ComponentTestConfig())

        await component.cleanup()

        assert not component.cleanup_called

    @pytest.mark.asyncio
    async def test_context_manager(self):
        component = _TestableAsyncComponent(ComponentTestConfig())

        async with component as ctx_component:
            assert ctx_component is component
            assert component.is_initialized

        assert not component.is_initialized

    @pytest.mark.asyncio
    async def test_generic_error_wrapped_as_init_failed(self):
        component = _TestableAsyncComponent(ComponentTestConfig(), error=RuntimeError("boom"))

        with pytest.raises(PgMuxException) as exc_info:
            await component.initialize()

        assert exc_info.value.code == "INIT_FAILED"
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert not component.is_initialized

    @pytest.mark.asyncio
    async def test_pgmux_error_propagates_unchanged(self):
        error = ConnectError("failed to ping database: refused", code="CONNECT_FAILED")
        component = _TestableAsyncComponent(ComponentTestConfig(), error=error)

        with pytest.raises(ConnectError) as exc_info:
            await component.initialize()

        assert exc_info.value is error


class TestLifecycleComponent:
    """Test LifecycleComponent functionality."""

    @pytest.mark.asyncio
    async def test_default_state_transitions(self):
        component = _LifecycleDefaults(ComponentTestConfig())
        assert component.state == "created"

        await component.initialize()
        assert component.state == "running"

        await component.cleanup()
        assert component.state == "stopped"

        states = [state for state, _ in component.state_history]
        assert states == ["created", "starting", "running", "stopped"]

    @pytest.mark.asyncio
    async def test_renamed_states(self):
        component = _ConnectingComponent(ComponentTestConfig())

        await component.initialize()
        assert component.state == "ready"

        await component.cleanup()
        assert component.state == "closed"

    @pytest.mark.asyncio
    async def test_failure_is_terminal(self):
        component = _ConnectingComponent(ComponentTestConfig(), error=ConnectError("refused"))

        with pytest.raises(ConnectError):
            await component.initialize()

        assert component.state == "failed"
        assert [s for s, _ in component.state_history] == ["created", "connecting", "failed"]

        with pytest.raises(PgMuxException) as exc_info:
            await component.initialize()
        assert exc_info.value.code == "INVALID_STATE"

        # cleanup of a failed component leaves it failed
        await component.cleanup()
        assert component.state == "failed"

    @pytest.mark.asyncio
    async def test_cancellation_marks_failed(self):
        component = _ConnectingComponent(ComponentTestConfig(), error=asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await component.initialize()

        assert component.state == "failed"

    def test_health_status_includes_state(self):
        health = _ConnectingComponent(ComponentTestConfig()).get_health_status()

        assert health["state"] == "created"

