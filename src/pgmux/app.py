"""Application wiring.

``create_application`` assembles the metadata store, client factory,
registry, router and manager from ``AppSettings``. Protocol adapters (HTTP,
tool calls) receive the resulting ``Application`` and forward requests to
``app.router``.

Example:
    >>> app = await create_application(AppSettings.from_file("pgmux.yaml"))
    >>> response = await app.router.route_query(QueryRequest("analytics", "version"))
    >>> await app.close()
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import asyncpg

from .config import AppSettings, EnvConfigResolver
from .core.exceptions import ConnectError, ErrorCodes
from .database import DRIVER_ERRORS, InstanceClientFactory, InstanceRegistry
from .instances import InstanceManager, PostgresInstanceStorage
from .logging import get_factory, get_logger
from .router import QueryRouter


@dataclass
class Application:
    """The assembled pgmux components.

    Attributes:
        settings: Settings the application was built from
        metadata_pool: Pool of the metadata database
        storage: Instance metadata store
        registry: Live instance clients
        router: Query router over the registry
        manager: Instance registration workflow
    """
    settings: AppSettings
    metadata_pool: Any
    storage: PostgresInstanceStorage
    registry: InstanceRegistry
    router: QueryRouter
    manager: InstanceManager

    async def close(self) -> None:
        """Close every instance client, then the metadata pool."""
        await self.registry.close()
        await self.metadata_pool.close()
        get_logger("app").info("Application closed")

    async def __aenter__(self) -> "Application":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def create_application(
    settings: Optional[AppSettings] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Application:
    """Build and start the application.

    Instances that cannot be registered at startup are logged and skipped.

    Args:
        settings: Application settings (defaults to ``AppSettings.from_env``)
        environ: Environment used for settings and per-instance lookups
            (defaults to ``os.environ``)

    Raises:
        ConnectError: If the metadata database is unreachable
        QueryError: If the instance table cannot be created or read
    """
    if settings is None:
        settings = AppSettings.from_env(environ)

    get_factory().configure_from_config(settings.logging)
    logger = get_logger("app")

    metadata = settings.metadata_database
    try:
        pool = await asyncpg.create_pool(**metadata.pool_arguments())
    except DRIVER_ERRORS as e:
        raise ConnectError(
            f"failed to connect to metadata database: {e}",
            code=ErrorCodes.CONNECT_FAILED,
            context={"dsn": metadata.dsn},
            cause=e,
        ) from e

    try:
        storage = PostgresInstanceStorage(pool)
        await storage.ensure_schema()

        factory = InstanceClientFactory(
            EnvConfigResolver(environ, prefix=settings.instance_env_prefix)
        )
        registry = await InstanceRegistry.from_storage(
            storage,
            factory,
            registration_timeout=settings.registration_timeout,
        )
    except BaseException:
        pool.terminate()
        raise

    app = Application(
        settings=settings,
        metadata_pool=pool,
        storage=storage,
        registry=registry,
        router=QueryRouter(registry),
        manager=InstanceManager(storage, registry),
    )

    logger.info(
        "Application started",
        metadata_database=metadata.dsn,
        instances=registry.names(),
    )
    return app
