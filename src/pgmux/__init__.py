"""pgmux - multi-instance PostgreSQL diagnostics registry and query router.

pgmux keeps one connection pool per registered PostgreSQL instance, detects
each server's version when it connects, and routes abstract diagnostic
requests (cache hit rate, locks, WAL activity, ...) to the SQL that the
server's version understands.

Modules:
    core: Base classes, exceptions, protocols and utilities
    config: Settings and per-instance connection parameter resolution
    logging: Structured logging framework
    database: Version detection, instance clients and the client registry
    instances: Instance metadata store and registration workflow
    router: Action routing and response envelope

Example:
    >>> from pgmux import AppSettings, QueryRequest, create_application
    >>>
    >>> app = await create_application(AppSettings.from_file("pgmux.yaml"))
    >>> response = await app.router.route_query(
    ...     QueryRequest("analytics", "cache_hit_rate", {"dbName": "orders"})
    ... )
    >>> response.to_dict()
    {'instance': 'analytics', 'action': 'cache_hit_rate', 'success': True, 'data': {'hit_rate': 0.993}}
"""

from . import config, core, database, instances, logging, router
from .app import Application, create_application
from .config import AppSettings
from .router import QueryRequest, QueryResponse, QueryRouter

__version__ = "0.1.0"
__title__ = "pgmux"
__description__ = "Multi-instance PostgreSQL diagnostics registry and version-aware query router"
__license__ = "MIT"

__all__ = [
    "config",
    "core",
    "database",
    "instances",
    "logging",
    "router",
    "Application",
    "AppSettings",
    "QueryRequest",
    "QueryResponse",
    "QueryRouter",
    "create_application",
    "__version__",
    "__title__",
    "__description__",
    "__license__",
]
