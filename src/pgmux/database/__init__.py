"""pgmux database layer.

This package holds everything that talks to the monitored PostgreSQL
instances: version detection, the diagnostic SQL, the per-instance client
and the registry of live clients.

Classes:
    ServerVersion: Detected server version with capability checks
    InstanceClient: Connected diagnostics client of one instance
    InstanceClientFactory: Builds clients from resolved connection parameters
    InstanceRegistry: Instance name to live client mapping

Example:
    >>> factory = InstanceClientFactory(EnvConfigResolver())
    >>> registry = await InstanceRegistry.from_storage(storage, factory)
    >>> client = registry.get_instance_client("analytics")
"""

from .errors import DRIVER_ERRORS, wrap_driver_error
from .version import ServerVersion, detect_version, parse_version
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
from .client import (
    DEFAULT_INDEX_LIMIT,
    DEFAULT_MIN_DURATION,
    DEFAULT_SLOW_QUERIES_LIMIT,
    DEFAULT_TABLES_LIMIT,
    InstanceClient,
)
from .factory import InstanceClientFactory
from .registry import BuildSummary, InstanceRegistry

__all__ = [
    # Errors
    "DRIVER_ERRORS",
    "wrap_driver_error",

    # Version detection
    "ServerVersion",
    "detect_version",
    "parse_version",

    # Result models
    "ActiveQuery",
    "CacheHitRate",
    "CheckpointStats",
    "ConnectionSummary",
    "DatabaseOverview",
    "DatabaseSize",
    "IndexStats",
    "LegacyCheckpoints",
    "LockInfo",
    "ModernCheckpoints",
    "SettingInfo",
    "SlowQuery",
    "TableInfo",
    "WalActivity",

    # Client and registry
    "DEFAULT_INDEX_LIMIT",
    "DEFAULT_MIN_DURATION",
    "DEFAULT_SLOW_QUERIES_LIMIT",
    "DEFAULT_TABLES_LIMIT",
    "InstanceClient",
    "InstanceClientFactory",
    "InstanceRegistry",
    "BuildSummary",
]
