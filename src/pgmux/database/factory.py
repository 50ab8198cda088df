# src/pgmux/database/factory.py
"""Instance client factory."""

from ..core.exceptions import ClientCreationError, ConfigurationError, ErrorCodes
from ..core.protocols import ConfigResolver
from ..instances.models import Instance
from ..logging import get_logger
from .client import InstanceClient


class InstanceClientFactory:
    """Build unconnected ``InstanceClient`` objects for registered instances.

    Connection parameters come from the resolver; the returned client still
    has to be connected by the caller (normally the registry).

    Example:
        >>> factory = InstanceClientFactory(EnvConfigResolver())
        >>> client = factory.create_client(Instance(name="analytics"))
        >>> client.state
        'created'
    """

    def __init__(self, resolver: ConfigResolver) -> None:
        self.logger = get_logger("database.factory")
        self._resolver = resolver

    @property
    def resolver(self) -> ConfigResolver:
        return self._resolver

    def create_client(self, instance: Instance) -> InstanceClient:
        """Create a client for an instance.

        Args:
            instance: Instance to build the client for

        Returns:
            Client in the ``created`` state

        Raises:
            ConfigurationError: If the instance's connection parameters are
                missing (``ConfigNotFoundError``) or invalid
            ClientCreationError: If the client cannot be constructed
        """
        config = self._resolver.resolve(instance.name)

        try:
            client = InstanceClient(instance.name, config)
        except ConfigurationError:
            raise
        except Exception as e:
            raise ClientCreationError(
                f"failed to create client for instance {instance.name}: {e}",
                code=ErrorCodes.CLIENT_CREATION_FAILED,
                context={"instance": instance.name},
                cause=e,
            ) from e

        self.logger.debug(
            "Instance client created",
            instance=instance.name,
            host=config.host,
            port=config.port,
        )
        return client
