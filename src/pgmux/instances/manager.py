"""Instance registration workflow."""

from typing import List

from ..core.exceptions import (
    ErrorCodes,
    InstanceAlreadyExistsError,
    NotFoundError,
    PgMuxException,
    ValidationError,
)
from ..core.protocols import ClientRegistry, InstanceStorage
from ..core.utils import ValidationUtils
from ..logging import get_logger
from .models import Instance


class InstanceManager:
    """Register instances in the store and bring them live in the registry.

    Args:
        storage: Instance metadata store
        registry: Registry that receives newly stored instances

    Example:
        >>> manager = InstanceManager(storage, registry)
        >>> await manager.register_instance(Instance(name="analytics", database_name="orders"))
    """

    def __init__(self, storage: InstanceStorage, registry: ClientRegistry) -> None:
        self.logger = get_logger("instances.manager")
        self._storage = storage
        self._registry = registry

    async def register_instance(self, instance: Instance) -> Instance:
        """Store a new instance, then connect it.

        The stored record is kept when connecting fails; the instance is
        picked up again on the next startup.

        Returns:
            The stored instance with id and timestamps

        Raises:
            ValidationError: If the name is not a valid instance name
            InstanceAlreadyExistsError: If the name is already registered
            ClientCreationError: If no client can be built for the instance
            ConnectError: If the instance cannot be reached
        """
        if not ValidationUtils.validate_instance_name(instance.name):
            raise ValidationError(
                f"invalid instance name: {instance.name!r}",
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                context={"instance": instance.name},
            )

        try:
            await self._storage.get_instance_by_name(instance.name)
        except NotFoundError:
            pass
        else:
            raise InstanceAlreadyExistsError(
                f"instance {instance.name} already exists",
                code=ErrorCodes.INSTANCE_ALREADY_EXISTS,
                context={"instance": instance.name},
            )

        operation = self.logger.log_operation_start("register_instance", instance=instance.name)
        try:
            stored = await self._storage.create_instance(instance)
            await self._registry.add_instance_to_registry(stored)
        except PgMuxException as e:
            self.logger.log_operation_failure(operation, e)
            raise

        self.logger.log_operation_success(
            operation,
            id=stored.id,
            database=stored.database_name,
            creator=stored.creator_username,
        )
        return stored

    async def get_instance(self, name: str) -> Instance:
        """Raises ``NotFoundError`` for unknown names."""
        return await self._storage.get_instance_by_name(name)

    async def list_instances(self) -> List[Instance]:
        return await self._storage.list_instances()
