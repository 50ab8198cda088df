"""Unit tests for the instance registration workflow."""

from unittest.mock import patch

import pytest

from pgmux.core.exceptions import (
    ConnectError,
    InstanceAlreadyExistsError,
    NotFoundError,
    ValidationError,
)
from pgmux.database.registry import InstanceRegistry
from pgmux.instances.manager import InstanceManager
from pgmux.instances.models import Instance
from pgmux.instances.storage import InMemoryInstanceStorage


@pytest.fixture
def storage():
    return InMemoryInstanceStorage()


@pytest.fixture
def manager(storage, fake_factory):
    return InstanceManager(storage, InstanceRegistry(fake_factory))


class TestInstanceManager:
    """Test instance registration."""

    @pytest.mark.asyncio
    async def test_register_stores_and_connects(self, manager, storage, fake_factory):
        stored = await manager.register_instance(
            Instance(name="analytics", database_name="orders", creator_username="dba")
        )

        assert stored.id == 1
        assert (await storage.get_instance_by_name("analytics")).database_name == "orders"
        assert fake_factory.created[0].instance_name == "analytics"
        assert fake_factory.created[0].is_ready

    @pytest.mark.asyncio
    async def test_register_duplicate(self, manager, fake_factory):
        await manager.register_instance(Instance(name="analytics"))

        with pytest.raises(InstanceAlreadyExistsError) as exc_info:
            await manager.register_instance(Instance(name="analytics"))

        assert exc_info.value.message == "instance analytics already exists"
        assert len(fake_factory.created) == 1

    @pytest.mark.asyncio
    async def test_register_duplicate_differing_in_case(self, manager, storage, fake_factory):
        await manager.register_instance(Instance(name="analytics"))

        with pytest.raises(InstanceAlreadyExistsError) as exc_info:
            await manager.register_instance(Instance(name="ANALYTICS"))

        assert exc_info.value.message == "instance ANALYTICS already exists"
        assert len(storage) == 1
        assert len(fake_factory.created) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "bad name", "semi;colon"])
    async def test_register_invalid_name(self, manager, storage, name):
        with pytest.raises(ValidationError):
            await manager.register_instance(Instance(name=name))

        assert len(storage) == 0

    @pytest.mark.asyncio
    async def test_connect_failure_keeps_stored_record(self, manager, storage, fake_factory):
        fake_factory.client_options["analytics"] = {"connect_error": OSError("refused")}

        with pytest.raises(ConnectError):
            await manager.register_instance(Instance(name="analytics"))

        assert (await storage.get_instance_by_name("analytics")).id == 1

    @pytest.mark.asyncio
    async def test_get_and_list(self, manager):
        await manager.register_instance(Instance(name="b"))
        await manager.register_instance(Instance(name="a"))

        assert (await manager.get_instance("a")).name == "a"
        assert [i.name for i in await manager.list_instances()] == ["a", "b"]
        with pytest.raises(NotFoundError):
            await manager.get_instance("c")

    @pytest.mark.asyncio
    async def test_failed_registration_logged_as_operation(self, manager, fake_factory):
        fake_factory.client_options["analytics"] = {"connect_error": OSError("refused")}

        with patch.object(manager.logger, "log_operation_failure") as failure:
            with pytest.raises(ConnectError):
                await manager.register_instance(Instance(name="analytics"))

        operation, error = failure.call_args.args
        assert operation["operation"] == "register_instance"
        assert operation["instance"] == "analytics"
        assert isinstance(error, ConnectError)
