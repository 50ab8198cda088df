"""Router actions and their typed parameters.

Requests carry a free-form parameter bag. It is decoded once, at the router
boundary, into the frozen parameter dataclass of the requested action; the
dispatch code only ever sees typed values.

Recognized keys:
    dbName: Database name (string)
    limit: Row limit (integer or float, floats truncated toward zero)
    minDuration: Minimum query duration in seconds (integer or float)

Missing keys and values of the wrong type fall back to the action's default,
and a bag that is not a mapping is read as empty. Integer values are capped
at MAX_INT_PARAM, the largest PostgreSQL ``integer``.

Example:
    >>> decode_parameters(Action.TABLES_INFO, {"limit": 12.9})
    LimitParams(limit=12)
    >>> decode_parameters(Action.TABLES_INFO, {"limit": -5})
    LimitParams(limit=200)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from ..core.exceptions import ErrorCodes, UnsupportedActionError
from ..core.utils import safe_int
from ..database.client import (
    DEFAULT_INDEX_LIMIT,
    DEFAULT_MIN_DURATION,
    DEFAULT_SLOW_QUERIES_LIMIT,
    DEFAULT_TABLES_LIMIT,
)

DEFAULT_DATABASE = "postgres"

PARAM_DB_NAME = "dbName"
PARAM_LIMIT = "limit"
PARAM_MIN_DURATION = "minDuration"

MAX_INT_PARAM = 2_147_483_647


class Action(str, Enum):
    """Closed set of diagnostic actions."""

    DATABASES_OVERVIEW = "databases_overview"
    CACHE_HIT_RATE = "cache_hit_rate"
    CHECKPOINTS_STATS = "checkpoints_stats"
    WAL_ACTIVITY = "wal_activity"
    TABLES_INFO = "tables_info"
    LOCKING_INFO = "locking_info"
    CHANGED_SETTINGS = "changed_settings"
    VERSION = "version"
    INDEX_STATS = "index_stats"
    ACTIVE_QUERIES = "active_queries"
    CONNECTION_STATS = "connection_stats"
    SLOW_QUERIES = "slow_queries"
    DATABASE_SIZES = "database_sizes"

    @classmethod
    def parse(cls, value: Union["Action", str]) -> "Action":
        """Look up an action by identifier.

        Raises:
            UnsupportedActionError: For unknown identifiers
        """
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedActionError(
                f"unsupported action: {value}",
                code=ErrorCodes.UNSUPPORTED_ACTION,
                context={"action": str(value)},
            ) from None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class NoParams:
    """Actions that take no parameters."""


@dataclass(frozen=True)
class DatabaseParams:
    db_name: str = DEFAULT_DATABASE


@dataclass(frozen=True)
class CacheHitRateParams:
    """``db_name`` of None selects the global ratio."""
    db_name: Optional[str] = None


@dataclass(frozen=True)
class LimitParams:
    limit: int


@dataclass(frozen=True)
class ActiveQueriesParams:
    db_name: str = DEFAULT_DATABASE
    min_duration: int = DEFAULT_MIN_DURATION


ActionParams = Union[NoParams, DatabaseParams, CacheHitRateParams, LimitParams, ActiveQueriesParams]

_LIMIT_DEFAULTS = {
    Action.TABLES_INFO: DEFAULT_TABLES_LIMIT,
    Action.INDEX_STATS: DEFAULT_INDEX_LIMIT,
    Action.SLOW_QUERIES: DEFAULT_SLOW_QUERIES_LIMIT,
}

_DATABASE_ACTIONS = (Action.DATABASES_OVERVIEW, Action.LOCKING_INFO)


def get_string_param(params: Mapping[str, Any], key: str, default: str) -> str:
    """Return ``params[key]`` if it is a string, else ``default``."""
    value = params.get(key)
    return value if isinstance(value, str) else default


def get_positive_int_param(params: Mapping[str, Any], key: str, default: int) -> int:
    """Return ``params[key]`` as a positive int, else ``default``.

    Floats are truncated toward zero; booleans, strings and values that end
    up non-positive yield the default. Values above ``MAX_INT_PARAM`` are
    clamped to it.
    """
    value = params.get(key)
    if isinstance(value, str):
        return default
    number = safe_int(value)
    if number is None or number <= 0:
        return default
    return min(number, MAX_INT_PARAM)


def decode_parameters(action: Action, params: Optional[Mapping[str, Any]]) -> ActionParams:
    """Decode the parameter bag of a request for ``action``."""
    if not isinstance(params, Mapping):
        params = {}

    if action in _DATABASE_ACTIONS:
        return DatabaseParams(get_string_param(params, PARAM_DB_NAME, DEFAULT_DATABASE))

    if action is Action.CACHE_HIT_RATE:
        db_name = params.get(PARAM_DB_NAME)
        if isinstance(db_name, str) and db_name:
            return CacheHitRateParams(db_name)
        return CacheHitRateParams()

    if action in _LIMIT_DEFAULTS:
        default = _LIMIT_DEFAULTS[action]
        return LimitParams(get_positive_int_param(params, PARAM_LIMIT, default))

    if action is Action.ACTIVE_QUERIES:
        return ActiveQueriesParams(
            db_name=get_string_param(params, PARAM_DB_NAME, DEFAULT_DATABASE),
            min_duration=get_positive_int_param(params, PARAM_MIN_DURATION, DEFAULT_MIN_DURATION),
        )

    return NoParams()
