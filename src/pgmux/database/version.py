"""PostgreSQL server version detection.

The version is detected once, right after a client's pool is opened, and
all version-gated behaviour reads the cached ``ServerVersion`` afterwards.

Example:
    >>> version = parse_version("PostgreSQL 14.5 (Debian 14.5-1.pgdg110+1) on x86_64-pc-linux-gnu")
    >>> (version.major, version.minor, version.patch)
    (14, 5, 0)
    >>> version.supports_wal_stats
    True
"""

import re
from dataclasses import asdict, dataclass
from typing import Any, Dict

from ..core.exceptions import (
    ErrorCodes,
    VersionQueryError,
    VersionUnparsableError,
)
from .errors import DRIVER_ERRORS, wrap_driver_error

VERSION_QUERY = "SELECT version()"

_VERSION_PATTERN = re.compile(r"PostgreSQL (\d+)\.(\d+)(?:\.(\d+))?")


@dataclass(frozen=True)
class ServerVersion:
    """Parsed server version.

    Attributes:
        major: Major version (e.g. 14, 17)
        minor: Minor version
        patch: Patch version, 0 when the server reports none
        full_string: Raw ``version()`` output
    """

    major: int
    minor: int
    patch: int = 0
    full_string: str = ""

    @property
    def supports_wal_stats(self) -> bool:
        """``pg_stat_wal`` exists from 14 on."""
        return self.major >= 14

    @property
    def supports_checkpointer_view(self) -> bool:
        """Checkpoint counters moved to ``pg_stat_checkpointer`` in 17."""
        return self.major >= 17

    @property
    def supports_blocking_pid_function(self) -> bool:
        """``pg_blocking_pids()`` exists from 9.6 on."""
        return self.major >= 10 or (self.major == 9 and self.minor >= 6)

    @property
    def supports_exec_time_columns(self) -> bool:
        """pg_stat_statements renamed ``total_time`` to ``total_exec_time`` in 13."""
        return self.major >= 13

    @property
    def short(self) -> str:
        return f"{self.major}.{self.minor}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_version(version_string: str) -> ServerVersion:
    """Parse the output of ``SELECT version()``.

    Args:
        version_string: Raw version string

    Returns:
        Parsed version with the raw string retained

    Raises:
        VersionUnparsableError: If no ``PostgreSQL <major>.<minor>`` token is found
    """
    match = _VERSION_PATTERN.search(version_string or "")
    if match is None:
        raise VersionUnparsableError(
            f"unable to parse version from: {version_string}",
            code=ErrorCodes.VERSION_UNPARSABLE,
            context={"version_string": version_string},
        )

    major, minor, patch = match.groups()
    return ServerVersion(
        major=int(major),
        minor=int(minor),
        patch=int(patch) if patch else 0,
        full_string=version_string,
    )


async def detect_version(executor: Any) -> ServerVersion:
    """Query and parse the server version.

    Args:
        executor: asyncpg pool or connection (anything with ``fetchval``)

    Returns:
        Detected server version

    Raises:
        VersionQueryError: If the version query fails
        VersionUnparsableError: If the result cannot be parsed
    """
    try:
        raw = await executor.fetchval(VERSION_QUERY)
    except DRIVER_ERRORS as e:
        raise wrap_driver_error(
            e,
            "failed to query PostgreSQL version",
            error_class=VersionQueryError,
            code=ErrorCodes.VERSION_QUERY_FAILED,
        ) from e

    if not isinstance(raw, str):
        raise VersionUnparsableError(
            f"unable to parse version from: {raw!r}",
            code=ErrorCodes.VERSION_UNPARSABLE,
            context={"version_string": raw},
        )

    return parse_version(raw)
