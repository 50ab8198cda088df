"""Protocol definitions for pgmux components.

This module defines the typing protocols that establish contracts between
the parts of pgmux. The registry, router and manager depend on these
protocols rather than on concrete classes so that tests (and embedding
applications) can substitute their own collaborators.

Protocols:
    ConfigResolver: Turns an instance name into connection parameters
    InstanceStorage: Metadata store of registered instances
    DiagnosticsClient: Per-instance diagnostic query interface
    ClientFactory: Builds an (unconnected) client for an instance
    ClientRegistry: Name to live client mapping

Example:
    >>> def build_router(registry: ClientRegistry) -> QueryRouter:
    ...     return QueryRouter(registry)
"""

from typing import TYPE_CHECKING, List, Optional, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from ..config.models import ConnectionConfig
    from ..database.models import (
        ActiveQuery,
        CacheHitRate,
        CheckpointStats,
        ConnectionSummary,
        DatabaseOverview,
        DatabaseSize,
        IndexStats,
        LockInfo,
        SettingInfo,
        SlowQuery,
        TableInfo,
        WalActivity,
    )
    from ..database.version import ServerVersion
    from ..instances.models import Instance


@runtime_checkable
class ConfigResolver(Protocol):
    """Interface for connection parameter lookup.

    Implementations must raise ``ConfigNotFoundError`` when the required
    host parameter of the instance cannot be found.
    """

    def resolve(self, instance_name: str) -> "ConnectionConfig":
        """Resolve connection parameters for an instance."""
        ...


@runtime_checkable
class InstanceStorage(Protocol):
    """Interface for the instance metadata store."""

    async def list_instances(self) -> List["Instance"]:
        """List active instances ordered by name."""
        ...

    async def get_instance_by_name(self, name: str) -> "Instance":
        """Get an instance by name.

        Raises:
            NotFoundError: If no instance has that name
        """
        ...

    async def create_instance(self, instance: "Instance") -> "Instance":
        """Persist a new instance and return the stored record."""
        ...


@runtime_checkable
class DiagnosticsClient(Protocol):
    """Interface for the per-instance diagnostic operations.

    Every operation requires the client to be connected. Operations raise
    pgmux exceptions only; driver errors are wrapped in ``QueryError``.
    """

    @property
    def instance_name(self) -> str:
        """Name of the instance this client serves."""
        ...

    @property
    def is_ready(self) -> bool:
        """Whether the client completed its connect sequence."""
        ...

    async def connect(self) -> None:
        """Open the pool, ping the server and detect its version."""
        ...

    async def close(self) -> None:
        """Release the connection pool."""
        ...

    def version(self) -> "ServerVersion":
        """Return the cached server version."""
        ...

    async def get_database_overview(self, db_name: str) -> "DatabaseOverview":
        ...

    async def get_cache_hit_rate_global(self) -> "CacheHitRate":
        ...

    async def get_cache_hit_rate_db(self, db_name: str) -> "CacheHitRate":
        ...

    async def get_checkpoints_stats(self) -> "CheckpointStats":
        ...

    async def get_wal_activity(self) -> "WalActivity":
        ...

    async def get_tables_info(self, limit: int) -> List["TableInfo"]:
        ...

    async def get_locking_info(self, db_name: str) -> List["LockInfo"]:
        ...

    async def get_changed_settings(self) -> List["SettingInfo"]:
        ...

    async def get_index_stats(self, limit: int) -> List["IndexStats"]:
        ...

    async def get_active_queries(self, db_name: str, min_duration: int) -> List["ActiveQuery"]:
        ...

    async def get_connection_stats(self) -> "ConnectionSummary":
        ...

    async def get_slow_queries(self, limit: int) -> List["SlowQuery"]:
        ...

    async def get_database_sizes(self) -> List["DatabaseSize"]:
        ...


@runtime_checkable
class ClientFactory(Protocol):
    """Interface for building unconnected clients."""

    def create_client(self, instance: "Instance") -> DiagnosticsClient:
        """Build a client for an instance.

        Raises:
            ClientCreationError: If the client cannot be constructed
        """
        ...


@runtime_checkable
class ClientRegistry(Protocol):
    """Interface for the instance name to live client mapping."""

    async def add_instance_to_registry(self, instance: "Instance") -> None:
        """Connect a client for the instance and make it visible to lookups."""
        ...

    def get_instance_client(
        self, instance: Union["Instance", str]
    ) -> Optional[DiagnosticsClient]:
        """Return the live client for an instance, or None."""
        ...
