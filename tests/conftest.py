"""Pytest configuration and shared fixtures.

This module provides pytest configuration and shared fixtures for all tests
in the pgmux test suite. No test needs a live PostgreSQL server: asyncpg
pools are replaced with ``AsyncMock`` objects.
"""

import asyncio
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog

from pgmux.config.models import ConnectionConfig
from pgmux.instances.models import Instance

# Configure test logging to suppress noise during tests
structlog.configure(
    processors=[structlog.testing.LogCapture()],
    logger_factory=structlog.testing.ReturnLoggerFactory(),
    cache_logger_on_first_use=False,
)

PG14_VERSION = "PostgreSQL 14.5 (Debian 14.5-1.pgdg110+1) on x86_64-pc-linux-gnu, compiled by gcc"
PG13_VERSION = "PostgreSQL 13.4 on x86_64-pc-linux-gnu, compiled by gcc (GCC) 10.2.1, 64-bit"
PG17_VERSION = "PostgreSQL 17.0 on aarch64-unknown-linux-gnu, compiled by gcc, 64-bit"


def make_pool(version_string: str = PG14_VERSION) -> MagicMock:
    """Build an asyncpg pool double.

    ``fetchval`` answers the ping with 1 and the version query with
    ``version_string``; anything else returns None unless a test overrides it.
    """
    pool = MagicMock()

    async def fetchval(query: str, *args: Any) -> Any:
        if query == "SELECT 1":
            return 1
        if query == "SELECT version()":
            return version_string
        return None

    pool.fetchval = AsyncMock(side_effect=fetchval)
    pool.fetch = AsyncMock(return_value=[])
    pool.fetchrow = AsyncMock(return_value=None)
    pool.execute = AsyncMock(return_value="CREATE TABLE")
    pool.close = AsyncMock()
    pool.terminate = MagicMock()
    return pool


class FakeClient:
    """In-memory stand-in for ``InstanceClient`` used by registry and router tests."""

    def __init__(
        self,
        name: str,
        *,
        connect_error: Optional[BaseException] = None,
        connect_delay: float = 0.0,
    ) -> None:
        self.instance_name = name
        self.connect_error = connect_error
        self.connect_delay = connect_delay
        self.is_ready = False
        self.closed = False
        self.connect_calls = 0

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.connect_error is not None:
            raise self.connect_error
        self.is_ready = True

    async def close(self) -> None:
        self.closed = True
        self.is_ready = False


class FakeFactory:
    """Client factory double that hands out ``FakeClient`` objects."""

    def __init__(self, **client_options: Dict[str, Any]) -> None:
        self.client_options: Dict[str, Dict[str, Any]] = dict(client_options)
        self.created: List[FakeClient] = []
        self.create_errors: Dict[str, Exception] = {}

    def create_client(self, instance: Instance) -> FakeClient:
        if instance.name in self.create_errors:
            raise self.create_errors[instance.name]
        client = FakeClient(instance.name, **self.client_options.get(instance.name, {}))
        self.created.append(client)
        return client


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def mock_logger():
    """Mock structured logger for testing."""
    logger = MagicMock()
    logger.bind.return_value = logger
    return logger


@pytest.fixture
def connection_config() -> ConnectionConfig:
    """Connection parameters of a test instance."""
    return ConnectionConfig(
        host="db.internal",
        port=5433,
        user="monitor",
        password="s3cret",
        database="orders",
    )


@pytest.fixture
def instance_env() -> Dict[str, str]:
    """Per-instance environment variables for two instances."""
    return {
        "PSQL_INSTANCE_ANALYTICS_HOST": "10.0.0.5",
        "PSQL_INSTANCE_ANALYTICS_PORT": "5433",
        "PSQL_INSTANCE_ANALYTICS_USER": "monitor",
        "PSQL_INSTANCE_ANALYTICS_PASSWORD": "s3cret",
        "PSQL_INSTANCE_BILLING_HOST": "10.0.0.6",
    }


@pytest.fixture
def pool_factory():
    """Factory for asyncpg pool doubles."""
    return make_pool


@pytest.fixture
def sample_settings_data() -> dict:
    """Sample application settings for testing."""
    return {
        "metadata_database": {
            "host": "meta.internal",
            "port": 5432,
            "user": "pgmux",
            "password": "meta-password",
            "database": "pgmux",
        },
        "logging": {
            "level": "debug",
            "format": "text",
            "console_output": False,
        },
        "registration_timeout": 3.5,
    }


@pytest.fixture
def settings_file(temp_dir: Path, sample_settings_data: dict) -> Path:
    """Create temporary settings file."""
    import yaml

    config_path = temp_dir / "pgmux.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_settings_data, f)
    return config_path


# Pytest markers for different test categories
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (slower, real dependencies)"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests that take > 1 second"
    )
    config.addinivalue_line(
        "markers", "database: marks tests of the database layer"
    )


# Auto-mark tests based on their location
def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(config.rootdir) / "tests")

        if test_path.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)
        elif test_path.parts[0] == "integration":
            item.add_marker(pytest.mark.integration)

        if "database" in test_path.parts:
            item.add_marker(pytest.mark.database)

        if not any(mark.name == "slow" for mark in item.iter_markers()):
            if any(mark.name == "integration" for mark in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture
def fake_factory() -> FakeFactory:
    """Client factory handing out in-memory clients."""
    return FakeFactory()


@pytest.fixture
def fake_client_class():
    """The in-memory client class, for tests that build clients directly."""
    return FakeClient
