"""pgmux configuration management.

This package provides type-safe configuration models and the resolver that
derives per-instance connection parameters from the environment.

Classes:
    BaseConfig: Base configuration class
    PoolConfig: Connection pool configuration
    ConnectionConfig: Connection parameters of one server
    LoggingConfig: Logging configuration
    AppSettings: Application-wide settings
    EnvConfigResolver: Per-instance connection parameter lookup

Example:
    >>> from pgmux.config import AppSettings, EnvConfigResolver
    >>> settings = AppSettings.from_file("pgmux.yaml")
    >>> config = EnvConfigResolver().resolve("analytics")
"""

from .models import (
    AppSettings,
    BaseConfig,
    ConnectionConfig,
    LoggingConfig,
    PoolConfig,
)
from .resolver import EnvConfigResolver

__all__ = [
    "AppSettings",
    "BaseConfig",
    "ConnectionConfig",
    "EnvConfigResolver",
    "LoggingConfig",
    "PoolConfig",
]
