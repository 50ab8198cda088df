# src/pgmux/database/registry.py
"""Registry of live instance clients.

The registry maps instance names to connected clients. An entry exists only
for an instance whose connect sequence succeeded; a failed attempt leaves the
map untouched.

Keys are instance names upper-cased, the same normalization the config
resolver applies, so names differing only in case share one entry.

Inserts are serialized by an ``asyncio.Lock`` that is held for the swap
only, never while connecting, so a hanging server cannot block lookups or
other registrations. Lookups are plain dictionary reads and see the map
either before or after an insert.

Example:
    >>> registry = await InstanceRegistry.from_storage(storage, factory)
    >>> client = registry.get_instance_client("analytics")
    >>> if client is None:
    ...     ...  # instance not registered or unreachable at startup
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from ..core.exceptions import (
    ClientCreationError,
    ConnectError,
    ErrorCodes,
    PgMuxException,
)
from ..core.protocols import ClientFactory, DiagnosticsClient, InstanceStorage
from ..instances.models import Instance
from ..logging import get_logger

DEFAULT_REGISTRATION_TIMEOUT = 10.0


def registry_key(name: str) -> str:
    return name.upper()


@dataclass
class BuildSummary:
    """Outcome of a bulk registration.

    Attributes:
        registered: Names of instances that are now live
        skipped: Instance name to error message of failed registrations
    """
    registered: List[str] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.registered) + len(self.skipped)


class InstanceRegistry:
    """Owns one connected client per registered instance.

    Args:
        factory: Builds unconnected clients for instances
        registration_timeout: Seconds allowed for one client's connect sequence
    """

    def __init__(
        self,
        factory: ClientFactory,
        *,
        registration_timeout: float = DEFAULT_REGISTRATION_TIMEOUT,
    ) -> None:
        self.logger = get_logger("database.registry")
        self._factory = factory
        self._registration_timeout = registration_timeout
        self._clients: Dict[str, DiagnosticsClient] = {}
        self._lock = asyncio.Lock()

    @classmethod
    async def from_storage(
        cls,
        storage: InstanceStorage,
        factory: ClientFactory,
        *,
        registration_timeout: float = DEFAULT_REGISTRATION_TIMEOUT,
    ) -> "InstanceRegistry":
        """Create a registry holding every reachable active instance.

        Instances that fail to register are logged and skipped. A failure to
        list the instances propagates.
        """
        instances = await storage.list_instances()
        registry = cls(factory, registration_timeout=registration_timeout)
        await registry.build(instances)
        return registry

    async def build(self, instances: Iterable[Instance]) -> BuildSummary:
        """Register instances concurrently, skipping the ones that fail.

        Args:
            instances: Instances to register

        Returns:
            Which instances were registered and which were skipped
        """
        instances = list(instances)
        summary = BuildSummary()
        operation = self.logger.log_operation_start("registry_build", requested=len(instances))

        outcomes = await asyncio.gather(
            *(self._register_for_build(instance) for instance in instances)
        )
        for instance, error in zip(instances, outcomes):
            if error is None:
                summary.registered.append(instance.name)
            else:
                summary.skipped[instance.name] = error.message

        self.logger.log_operation_success(
            operation,
            registered=len(summary.registered),
            skipped=len(summary.skipped),
            instances=summary.registered,
        )
        return summary

    async def _register_for_build(self, instance: Instance) -> Optional[PgMuxException]:
        try:
            await self.add_instance_to_registry(instance)
        except PgMuxException as e:
            self.logger.warning(
                "Skipping instance registration",
                instance=instance.name,
                error=e.message,
                error_code=e.code,
            )
            return e
        return None

    async def add_instance_to_registry(self, instance: Instance) -> None:
        """Connect a client for the instance and publish it.

        A previous entry under the same name is replaced and then closed.

        Raises:
            ClientCreationError: If the client cannot be built
            ConnectError: If the client fails to connect within the
                registration timeout
        """
        name = instance.name

        try:
            client = self._factory.create_client(instance)
        except ClientCreationError:
            raise
        except Exception as e:
            detail = e.message if isinstance(e, PgMuxException) else str(e)
            raise ClientCreationError(
                f"failed to create client for instance {name}: {detail}",
                code=ErrorCodes.CLIENT_CREATION_FAILED,
                context={"instance": name, "cause_code": getattr(e, "code", None)},
                cause=e,
            ) from e

        try:
            await asyncio.wait_for(client.connect(), timeout=self._registration_timeout)
        except asyncio.TimeoutError as e:
            await client.close()
            raise ConnectError(
                f"failed to connect to instance {name}: "
                f"timed out after {self._registration_timeout:g}s",
                code=ErrorCodes.CONNECTION_TIMEOUT,
                context={"instance": name, "timeout": self._registration_timeout},
                cause=e,
            ) from e
        except Exception as e:
            await client.close()
            detail = e.message if isinstance(e, PgMuxException) else str(e)
            raise ConnectError(
                f"failed to connect to instance {name}: {detail}",
                code=ErrorCodes.CONNECT_FAILED,
                context={"instance": name},
                cause=e,
            ) from e

        key = registry_key(name)
        async with self._lock:
            previous = self._clients.get(key)
            self._clients[key] = client

        if previous is not None and previous is not client:
            self.logger.info("Registry entry replaced", instance=name)
            await previous.close()
        else:
            self.logger.info("Instance registered", instance=name)

    def get_instance_client(self, instance: Union[Instance, str]) -> Optional[DiagnosticsClient]:
        """Return the live client of an instance, or None if it has none."""
        name = instance if isinstance(instance, str) else instance.name
        return self._clients.get(registry_key(name))

    def names(self) -> List[str]:
        return sorted(client.instance_name for client in self._clients.values())

    async def close(self) -> None:
        """Close every client and empty the registry."""
        async with self._lock:
            clients, self._clients = self._clients, {}

        for client in clients.values():
            try:
                await client.close()
            except Exception as e:
                self.logger.error(
                    "Failed to close instance client",
                    instance=client.instance_name,
                    error=str(e),
                )

        self.logger.info("Registry closed", closed=len(clients))

    def get_health_status(self) -> Dict[str, Any]:
        return {
            "component": "InstanceRegistry",
            "instances": len(self._clients),
            "clients": {
                client.instance_name: client.is_ready for client in self._clients.values()
            },
        }

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and registry_key(name) in self._clients

    def __repr__(self) -> str:
        return f"InstanceRegistry(instances={self.names()!r})"
