# src/pgmux/database/client.py
"""Per-instance diagnostics client.

An ``InstanceClient`` owns the asyncpg pool of one registered instance. It
connects once (open pool, ping, detect the server version) and then serves
the diagnostic operations, picking the SQL variant that matches the cached
version.

Example:
    >>> client = InstanceClient("analytics", resolver.resolve("analytics"))
    >>> await client.connect()
    >>> client.version().major
    14
    >>> rate = await client.get_cache_hit_rate_db("orders")
"""

import asyncio
from typing import Any, ClassVar, Dict, List, Optional

import asyncpg

from ..config.models import ConnectionConfig
from ..core.base import LifecycleComponent
from ..core.exceptions import (
    ConnectError,
    ErrorCodes,
    ExtensionMissingError,
    NotFoundError,
    PgMuxException,
    QueryError,
    UnsupportedOnVersionError,
    VersionNotDetectedError,
)
from ..logging import get_logger, get_performance_logger
from . import queries
from .errors import DRIVER_ERRORS, wrap_driver_error
from .models import (
    ActiveQuery,
    CacheHitRate,
    CheckpointStats,
    ConnectionSummary,
    DatabaseOverview,
    DatabaseSize,
    IndexStats,
    LegacyCheckpoints,
    LockInfo,
    ModernCheckpoints,
    SettingInfo,
    SlowQuery,
    TableInfo,
    WalActivity,
)
from .version import ServerVersion, detect_version

DEFAULT_TABLES_LIMIT = 200
DEFAULT_INDEX_LIMIT = 100
DEFAULT_SLOW_QUERIES_LIMIT = 20
DEFAULT_MIN_DURATION = 5


def _positive_or(value: int, default: int) -> int:
    return value if value > 0 else default


class InstanceClient(LifecycleComponent[ConnectionConfig]):
    """Diagnostics client bound to one PostgreSQL instance.

    States: ``created -> connecting -> ready`` on success,
    ``connecting -> failed`` when any connect step fails (the partially
    opened pool is closed) and ``ready -> closed`` after ``close()``.

    Attributes:
        instance_name: Name of the instance served by this client
    """

    component_name = "InstanceClient"

    STATE_STARTING: ClassVar[str] = "connecting"
    STATE_RUNNING: ClassVar[str] = "ready"
    STATE_STOPPED: ClassVar[str] = "closed"

    def __init__(self, instance_name: str, config: ConnectionConfig) -> None:
        super().__init__(config)
        self._instance_name = instance_name
        self.logger = get_logger(f"database.client.{instance_name}")
        self.perf_logger = get_performance_logger("database.client")

        self._pool: Optional[asyncpg.Pool] = None
        self._version: Optional[ServerVersion] = None

    @property
    def instance_name(self) -> str:
        return self._instance_name

    @property
    def is_ready(self) -> bool:
        return self._state == self.STATE_RUNNING

    @property
    def pool(self) -> Optional[asyncpg.Pool]:
        return self._pool

    # Lifecycle

    async def connect(self) -> None:
        """Open the pool, ping the server and cache its version.

        Raises:
            ConnectError: If any step fails; the originating error is ``cause``
            PgMuxException: If the client was already connected or closed
        """
        await self.initialize()

    async def close(self) -> None:
        """Close the connection pool."""
        await self.cleanup()

    async def _async_initialize(self) -> None:
        self.logger.info(
            "Connecting to instance",
            instance=self._instance_name,
            dsn=self.config.dsn,
        )

        step = "failed to open connection pool"
        try:
            self._pool = await asyncpg.create_pool(**self.config.pool_arguments())
            step = "failed to ping database"
            await self._pool.fetchval(queries.SELECT_PING)
            step = "failed to detect PostgreSQL version"
            version = await detect_version(self._pool)
        except asyncio.CancelledError:
            self._terminate_pool()
            raise
        except Exception as e:
            await self._close_pool()
            detail = e.message if isinstance(e, PgMuxException) else (str(e) or type(e).__name__)
            self.logger.error(
                "Instance client connect failed",
                instance=self._instance_name,
                host=self.config.host,
                error=detail,
                error_code=getattr(e, "code", None),
            )
            raise ConnectError(
                f"{step}: {detail}",
                code=ErrorCodes.CONNECT_FAILED,
                context={
                    "instance": self._instance_name,
                    "host": self.config.host,
                    "port": self.config.port,
                    "database": self.config.database,
                },
                cause=e,
            ) from e

        self._version = version
        self.logger.info(
            "Instance client ready",
            instance=self._instance_name,
            host=self.config.host,
            version=str(version),
        )

    async def _async_cleanup(self) -> None:
        await self._close_pool()
        self.logger.info("Instance client closed", instance=self._instance_name)

    async def _close_pool(self) -> None:
        pool, self._pool = self._pool, None
        if pool is not None:
            await pool.close()

    def _terminate_pool(self) -> None:
        pool, self._pool = self._pool, None
        if pool is not None:
            pool.terminate()

    # Query helpers

    def _require_ready(self) -> asyncpg.Pool:
        if self._state != self.STATE_RUNNING or self._pool is None:
            raise QueryError(
                f"client for instance {self._instance_name} is not ready (state: {self._state})",
                code=ErrorCodes.CLIENT_NOT_READY,
                context={"instance": self._instance_name, "state": self._state},
            )
        return self._pool

    async def _execute(self, operation: str, failure: str, method: str, query: str, *args: Any) -> Any:
        pool = self._require_ready()
        with self.perf_logger.measure(operation, instance=self._instance_name):
            try:
                return await getattr(pool, method)(query, *args)
            except DRIVER_ERRORS as e:
                raise wrap_driver_error(
                    e,
                    failure,
                    instance=self._instance_name,
                    operation=operation,
                ) from e

    async def _fetch(self, operation: str, failure: str, query: str, *args: Any) -> List[Any]:
        return await self._execute(operation, failure, "fetch", query, *args)

    async def _fetchrow(self, operation: str, failure: str, query: str, *args: Any) -> Optional[Any]:
        return await self._execute(operation, failure, "fetchrow", query, *args)

    async def _fetchval(self, operation: str, failure: str, query: str, *args: Any) -> Any:
        return await self._execute(operation, failure, "fetchval", query, *args)

    # Operations

    def version(self) -> ServerVersion:
        """Return the server version detected at connect time.

        Raises:
            VersionNotDetectedError: If the client never became ready
        """
        if self._version is None:
            raise VersionNotDetectedError(
                "version not detected, call connect() first",
                code=ErrorCodes.VERSION_NOT_DETECTED,
                context={"instance": self._instance_name},
            )
        return self._version

    async def get_database_overview(self, db_name: str) -> DatabaseOverview:
        """Activity totals of one database.

        Raises:
            NotFoundError: If the database does not exist
        """
        row = await self._fetchrow(
            "database_overview",
            "failed to get database overview",
            queries.SELECT_DATABASE_OVERVIEW,
            db_name,
        )
        if row is None:
            raise NotFoundError(
                f"database {db_name} not found",
                code=ErrorCodes.NOT_FOUND,
                context={"instance": self._instance_name, "database": db_name},
            )
        return DatabaseOverview.from_record(row)

    async def get_cache_hit_rate_global(self) -> CacheHitRate:
        """Cache hit ratio over all non-template databases."""
        hit_rate = await self._fetchval(
            "cache_hit_rate_global",
            "failed to get global cache hit rate",
            queries.SELECT_CACHE_HIT_RATE_GLOBAL,
        )
        return CacheHitRate(hit_rate=None if hit_rate is None else float(hit_rate))

    async def get_cache_hit_rate_db(self, db_name: str) -> CacheHitRate:
        """Cache hit ratio of one database.

        Raises:
            NotFoundError: If the database does not exist
        """
        row = await self._fetchrow(
            "cache_hit_rate_db",
            f"failed to get cache hit rate for database {db_name}",
            queries.SELECT_CACHE_HIT_RATE_DB,
            db_name,
        )
        if row is None:
            raise NotFoundError(
                f"database {db_name} not found",
                code=ErrorCodes.NOT_FOUND,
                context={"instance": self._instance_name, "database": db_name},
            )
        return CacheHitRate.from_record(row)

    async def get_checkpoints_stats(self) -> CheckpointStats:
        """Checkpoint counters; the result type depends on the server version.

        Returns:
            ``ModernCheckpoints`` on PostgreSQL 17+, ``LegacyCheckpoints`` below
        """
        if self.version().supports_checkpointer_view:
            row = await self._fetchrow(
                "checkpoints_stats",
                "failed to get checkpoints stats (v17)",
                queries.SELECT_CHECKPOINTS_MODERN,
            )
            return ModernCheckpoints.from_record(row)

        row = await self._fetchrow(
            "checkpoints_stats",
            "failed to get checkpoints stats (legacy)",
            queries.SELECT_CHECKPOINTS_LEGACY,
        )
        return LegacyCheckpoints.from_record(row)

    async def get_wal_activity(self) -> WalActivity:
        """WAL counters.

        Raises:
            UnsupportedOnVersionError: On servers older than 14
        """
        version = self.version()
        if not version.supports_wal_stats:
            raise UnsupportedOnVersionError(
                f"WAL statistics not supported in PostgreSQL {version.short} (requires >= 14)",
                code=ErrorCodes.UNSUPPORTED_ON_VERSION,
                context={"instance": self._instance_name, "version": str(version)},
            )

        row = await self._fetchrow(
            "wal_activity",
            "failed to get WAL activity",
            queries.SELECT_WAL_ACTIVITY,
        )
        return WalActivity.from_record(row)

    async def get_tables_info(self, limit: int = DEFAULT_TABLES_LIMIT) -> List[TableInfo]:
        """Largest user tables first; non-positive limits use the default."""
        rows = await self._fetch(
            "tables_info",
            "failed to query tables info",
            queries.SELECT_TABLES_INFO,
            _positive_or(limit, DEFAULT_TABLES_LIMIT),
        )
        return [TableInfo.from_record(row) for row in rows]

    async def get_locking_info(self, db_name: str) -> List[LockInfo]:
        """Waiting and blocked backends of one database, oldest query first."""
        if self.version().supports_blocking_pid_function:
            query = queries.SELECT_LOCKING_INFO
        else:
            query = queries.SELECT_LOCKING_INFO_LEGACY

        rows = await self._fetch("locking_info", "failed to query locking info", query, db_name)
        return [LockInfo.from_record(row) for row in rows]

    async def get_changed_settings(self) -> List[SettingInfo]:
        rows = await self._fetch(
            "changed_settings",
            "failed to query settings",
            queries.SELECT_CHANGED_SETTINGS,
        )
        return [SettingInfo.from_record(row) for row in rows]

    async def get_index_stats(self, limit: int = DEFAULT_INDEX_LIMIT) -> List[IndexStats]:
        rows = await self._fetch(
            "index_stats",
            "failed to query index stats",
            queries.SELECT_INDEX_STATS,
            _positive_or(limit, DEFAULT_INDEX_LIMIT),
        )
        return [IndexStats.from_record(row) for row in rows]

    async def get_active_queries(
        self, db_name: str, min_duration: int = DEFAULT_MIN_DURATION
    ) -> List[ActiveQuery]:
        """Non-idle backends of one database running longer than ``min_duration`` seconds."""
        rows = await self._fetch(
            "active_queries",
            "failed to query active queries",
            queries.SELECT_ACTIVE_QUERIES,
            db_name,
            _positive_or(min_duration, DEFAULT_MIN_DURATION),
        )
        return [ActiveQuery.from_record(row) for row in rows]

    async def get_connection_stats(self) -> ConnectionSummary:
        row = await self._fetchrow(
            "connection_stats",
            "failed to query connection stats",
            queries.SELECT_CONNECTION_STATS,
        )
        return ConnectionSummary.from_record(row)

    async def get_slow_queries(self, limit: int = DEFAULT_SLOW_QUERIES_LIMIT) -> List[SlowQuery]:
        """Top statements by total execution time from pg_stat_statements.

        Raises:
            ExtensionMissingError: If pg_stat_statements is not installed
        """
        version = self.version()
        installed = await self._fetchval(
            "slow_queries",
            "failed to check pg_stat_statements extension",
            queries.SELECT_EXTENSION_INSTALLED,
            queries.PG_STAT_STATEMENTS,
        )
        if not installed:
            raise ExtensionMissingError(
                f"{queries.PG_STAT_STATEMENTS} extension is not installed",
                code=ErrorCodes.EXTENSION_MISSING,
                context={"instance": self._instance_name, "extension": queries.PG_STAT_STATEMENTS},
            )

        if version.supports_exec_time_columns:
            query = queries.SELECT_SLOW_QUERIES
        else:
            query = queries.SELECT_SLOW_QUERIES_LEGACY

        rows = await self._fetch(
            "slow_queries",
            "failed to query slow queries",
            query,
            _positive_or(limit, DEFAULT_SLOW_QUERIES_LIMIT),
        )
        return [SlowQuery.from_record(row) for row in rows]

    async def get_database_sizes(self) -> List[DatabaseSize]:
        rows = await self._fetch(
            "database_sizes",
            "failed to query database sizes",
            queries.SELECT_DATABASE_SIZES,
        )
        return [DatabaseSize.from_record(row) for row in rows]

    def get_health_status(self) -> Dict[str, Any]:
        status = super().get_health_status()
        status.update({
            "instance": self._instance_name,
            "host": self.config.host,
            "server_version": str(self._version) if self._version else None,
        })
        return status

    def __repr__(self) -> str:
        return (
            f"InstanceClient("
            f"instance={self._instance_name!r}, "
            f"state={self._state!r}, "
            f"version={str(self._version) if self._version else None!r})"
        )
