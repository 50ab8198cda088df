"""Per-instance connection parameter resolution.

Connection parameters of a registered instance are never persisted with the
instance itself; they are looked up by naming convention in the process
environment:

    PSQL_INSTANCE_<NAME>_HOST            (required)
    PSQL_INSTANCE_<NAME>_PORT            (5432)
    PSQL_INSTANCE_<NAME>_USER            ("postgres")
    PSQL_INSTANCE_<NAME>_PASSWORD        ("")
    PSQL_INSTANCE_<NAME>_DATABASE        ("postgres")
    PSQL_INSTANCE_<NAME>_SSLMODE         ("disable")
    PSQL_INSTANCE_<NAME>_MAX_OPEN_CONNS  (10)
    PSQL_INSTANCE_<NAME>_MAX_IDLE_CONNS  (5)

``<NAME>`` is the instance name upper-cased, so lookups are insensitive to
the case the instance was registered with.

Example:
    >>> resolver = EnvConfigResolver({"PSQL_INSTANCE_ANALYTICS_HOST": "10.0.0.5"})
    >>> resolver.resolve("analytics").host
    '10.0.0.5'
"""

import os
from typing import Any, Dict, Mapping, Optional

import pydantic

from ..core.exceptions import ConfigNotFoundError, ConfigurationError, ErrorCodes
from ..core.utils import safe_cast
from ..logging import get_logger
from .models import ConnectionConfig, PoolConfig

DEFAULT_PREFIX = "PSQL_INSTANCE_"


class EnvConfigResolver:
    """Resolve instance connection parameters from environment variables.

    Args:
        environ: Mapping to read variables from (defaults to ``os.environ``,
            read at lookup time)
        prefix: Variable prefix preceding the instance name
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        *,
        prefix: str = DEFAULT_PREFIX,
    ) -> None:
        self._environ = environ
        self.prefix = prefix
        self.logger = get_logger("config.resolver")

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def key_prefix(self, instance_name: str) -> str:
        """Return the variable prefix for an instance, e.g. ``PSQL_INSTANCE_ANALYTICS_``."""
        return f"{self.prefix}{instance_name.upper()}_"

    def resolve(self, instance_name: str) -> ConnectionConfig:
        """Resolve connection parameters for an instance.

        Args:
            instance_name: Registered instance name

        Returns:
            Connection configuration with defaults applied

        Raises:
            ConfigNotFoundError: If the name is empty or the host variable is unset
            ConfigurationError: If a variable holds an invalid value
        """
        if not instance_name:
            raise ConfigNotFoundError(
                "instance name cannot be empty",
                code=ErrorCodes.CONFIG_NOT_FOUND,
            )

        env = self.environ
        prefix = self.key_prefix(instance_name)
        host_key = prefix + "HOST"

        host = env.get(host_key)
        if not host:
            raise ConfigNotFoundError(
                f"configuration for instance '{instance_name}' not found (missing {host_key})",
                code=ErrorCodes.CONFIG_NOT_FOUND,
                context={"instance": instance_name, "missing_key": host_key},
            )

        values: Dict[str, Any] = {"host": host}
        for field, suffix in (
            ("user", "USER"),
            ("password", "PASSWORD"),
            ("database", "DATABASE"),
            ("sslmode", "SSLMODE"),
        ):
            value = env.get(prefix + suffix)
            if value:
                values[field] = value

        port = safe_cast(env.get(prefix + "PORT"), int)
        if port is not None:
            values["port"] = port

        pool_values: Dict[str, Any] = {}
        max_open = safe_cast(env.get(prefix + "MAX_OPEN_CONNS"), int)
        if max_open is not None:
            pool_values["max_open"] = max_open
        max_idle = safe_cast(env.get(prefix + "MAX_IDLE_CONNS"), int)
        if max_idle is not None:
            pool_values["max_idle"] = max_idle

        try:
            if pool_values:
                values["pool"] = PoolConfig(**pool_values)
            config = ConnectionConfig(**values)
        except pydantic.ValidationError as e:
            raise ConfigurationError(
                f"invalid configuration for instance '{instance_name}': {e}",
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                context={"instance": instance_name},
                cause=e,
            ) from e

        self.logger.debug(
            "Resolved instance configuration",
            instance=instance_name,
            dsn=config.dsn,
        )
        return config
