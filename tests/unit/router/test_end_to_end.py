"""End-to-end routing through real instance clients.

Registry, client factory and ``InstanceClient`` are the production classes;
only ``asyncpg.create_pool`` is patched, handing out pool doubles from
``conftest.make_pool``.
"""

from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pgmux.config.resolver import EnvConfigResolver
from pgmux.core.exceptions import ErrorCodes
from pgmux.database.client import InstanceClient
from pgmux.database.factory import InstanceClientFactory
from pgmux.database.registry import InstanceRegistry
from pgmux.instances.manager import InstanceManager
from pgmux.instances.models import Instance
from pgmux.instances.storage import InMemoryInstanceStorage
from pgmux.router.router import QueryRequest, QueryRouter

PG13 = "PostgreSQL 13.4 on x86_64-pc-linux-gnu, compiled by gcc (GCC) 10.2.1, 64-bit"
PG14 = "PostgreSQL 14.5 on x86_64-pc-linux-gnu"

HOSTS = {"analytics": "10.0.0.5", "billing": "10.0.0.6"}


@pytest.fixture
def factory() -> InstanceClientFactory:
    environ = {
        "PSQL_INSTANCE_ANALYTICS_HOST": HOSTS["analytics"],
        "PSQL_INSTANCE_ANALYTICS_USER": "monitor",
        "PSQL_INSTANCE_BILLING_HOST": HOSTS["billing"],
    }
    return InstanceClientFactory(EnvConfigResolver(environ))


@pytest.fixture
def pools(pool_factory):
    """One pool double per instance host: analytics runs PG 13, billing PG 14."""
    versions = {HOSTS["analytics"]: PG13, HOSTS["billing"]: PG14}
    created: Dict[str, MagicMock] = {}

    async def create_pool(**kwargs: Any) -> MagicMock:
        pool = pool_factory(versions[kwargs["host"]])
        created[kwargs["host"]] = pool
        return pool

    with patch("asyncpg.create_pool", AsyncMock(side_effect=create_pool)) as mock:
        mock.created = created
        yield mock


class TestEndToEndRouting:
    """Route requests through registered production clients."""

    @pytest.mark.asyncio
    async def test_wal_activity_rejected_on_pg13(self, factory, pools):
        registry = InstanceRegistry(factory)
        manager = InstanceManager(InMemoryInstanceStorage(), registry)
        router = QueryRouter(registry)

        await manager.register_instance(Instance(name="analytics", database_name="orders"))

        client = registry.get_instance_client("analytics")
        assert isinstance(client, InstanceClient)
        assert client.is_ready
        assert client.version().major == 13

        response = await router.route_query(
            QueryRequest("analytics", "wal_activity"), Instance(name="analytics")
        )

        assert response.success is False
        assert response.error_code == ErrorCodes.UNSUPPORTED_ON_VERSION
        assert response.error == "WAL statistics not supported in PostgreSQL 13.4 (requires >= 14)"
        pools.created[HOSTS["analytics"]].fetchrow.assert_not_awaited()

        await registry.close()
        pools.created[HOSTS["analytics"]].close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_registry_built_from_stored_instances(self, factory, pools):
        storage = InMemoryInstanceStorage()
        await storage.create_instance(Instance(name="analytics"))
        await storage.create_instance(Instance(name="billing"))

        registry = await InstanceRegistry.from_storage(storage, factory)

        assert len(registry) == 2
        assert pools.await_count == 2
        clients = [registry.get_instance_client(name) for name in ("analytics", "billing")]
        assert all(isinstance(client, InstanceClient) for client in clients)
        assert all(client.is_ready for client in clients)
        assert [client.version().major for client in clients] == [13, 14]

        response = await QueryRouter(registry).route_query(QueryRequest("billing", "version"))
        assert response.success
        assert response.data.short == "14.5"

        await registry.close()
