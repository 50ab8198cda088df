# src/pgmux/database/models.py
"""Result models of the diagnostic operations.

Every model is a plain dataclass built from an asyncpg ``Record`` with
``from_record`` and rendered for transport with ``to_dict`` (timestamps as
ISO-8601 strings, ``Decimal`` as float). Nullable server values stay ``None``.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Type, TypeVar, Union

R = TypeVar("R", bound="RecordModel")


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class RecordModel:
    """Mixin for dataclasses populated from query rows."""

    @classmethod
    def from_record(cls: Type[R], record: Mapping[str, Any]) -> R:
        """Build the model from a row, taking the columns named like its fields."""
        values = {}
        for f in fields(cls):  # type: ignore[arg-type]
            value = record[f.name]
            if isinstance(value, Decimal):
                value = float(value)
            values[f.name] = value
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}  # type: ignore[arg-type]


@dataclass(frozen=True)
class DatabaseOverview(RecordModel):
    """Activity totals of one database from ``pg_stat_database``."""
    xact_commit: int
    xact_rollback: int
    blks_read: int
    blks_hit: int
    tup_returned: int
    tup_fetched: int
    tup_inserted: int
    tup_updated: int
    tup_deleted: int
    conflicts: int
    temp_files: int
    temp_bytes: int
    deadlocks: int
    blk_read_time: float
    blk_write_time: float


@dataclass(frozen=True)
class CacheHitRate(RecordModel):
    """Buffer cache hit ratio in [0, 1]; ``None`` when nothing was read yet."""
    hit_rate: Optional[float]


@dataclass(frozen=True)
class ModernCheckpoints(RecordModel):
    """Checkpoint counters of PostgreSQL 17 and newer (``pg_stat_checkpointer``)."""
    checkpoints_timed: int
    checkpoints_req: int
    checkpoint_write_time: float
    checkpoint_sync_time: float

    kind: ClassVar[str] = "modern"


@dataclass(frozen=True)
class LegacyCheckpoints(RecordModel):
    """Checkpoint counters of PostgreSQL 16 and older (``pg_stat_bgwriter``).

    Carries the buffer counters that the background writer view reported
    alongside the checkpoint counters.
    """
    checkpoints_timed: int
    checkpoints_req: int
    checkpoint_write_time: float
    checkpoint_sync_time: float
    buffers_checkpoint: int
    buffers_backend: int
    buffers_backend_fsync: int
    buffers_alloc: int

    kind: ClassVar[str] = "legacy"


CheckpointStats = Union[ModernCheckpoints, LegacyCheckpoints]


@dataclass(frozen=True)
class WalActivity(RecordModel):
    """WAL generation counters from ``pg_stat_wal``."""
    wal_records: int
    wal_fpi: int
    wal_bytes: int
    wal_buffers_full: int
    stats_reset: Optional[datetime]


@dataclass(frozen=True)
class TableInfo(RecordModel):
    """Size, tuple and maintenance statistics of one user table."""
    schema_name: str
    table_name: str
    total_bytes: int
    table_bytes: int
    indexes_bytes: int
    n_live_tup: Optional[int]
    n_dead_tup: Optional[int]
    dead_ratio: Optional[float]
    seq_scan: Optional[int]
    idx_scan: Optional[int]
    last_vacuum: Optional[datetime]
    last_autovacuum: Optional[datetime]
    last_analyze: Optional[datetime]
    last_autoanalyze: Optional[datetime]
    vacuum_count: Optional[int]
    autovacuum_count: Optional[int]


@dataclass(frozen=True)
class LockInfo(RecordModel):
    """A waiting or blocked backend with the PIDs blocking it."""
    pid: int
    username: Optional[str]
    database: Optional[str]
    wait_event_type: Optional[str]
    wait_event: Optional[str]
    state: Optional[str]
    query_start: Optional[datetime]
    blocking_pids: List[int] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "LockInfo":
        return cls(
            pid=record["pid"],
            username=record["username"],
            database=record["database"],
            wait_event_type=record["wait_event_type"],
            wait_event=record["wait_event"],
            state=record["state"],
            query_start=record["query_start"],
            blocking_pids=list(record["blocking_pids"] or []),
        )


@dataclass(frozen=True)
class SettingInfo(RecordModel):
    """A configuration parameter whose source is not the built-in default."""
    name: str
    setting: str
    unit: Optional[str]
    source: str
    pending_restart: bool


@dataclass(frozen=True)
class IndexStats(RecordModel):
    schema_name: str
    table_name: str
    index_name: str
    idx_scan: Optional[int]
    idx_tup_read: Optional[int]
    idx_tup_fetch: Optional[int]
    size_bytes: int


@dataclass(frozen=True)
class ActiveQuery(RecordModel):
    pid: int
    username: Optional[str]
    database: Optional[str]
    state: Optional[str]
    duration_seconds: Optional[float]
    wait_event_type: Optional[str]
    wait_event: Optional[str]
    query: Optional[str]


@dataclass(frozen=True)
class ConnectionSummary(RecordModel):
    """Connection counts by state plus the server's ``max_connections``."""
    total_connections: int
    active: int
    idle: int
    idle_in_transaction: int
    waiting: int
    max_connections: int


@dataclass(frozen=True)
class SlowQuery(RecordModel):
    """A ``pg_stat_statements`` entry; times are in milliseconds."""
    query: str
    calls: int
    total_exec_time: float
    mean_exec_time: float
    stddev_exec_time: float
    rows: int
    cache_hit_percent: Optional[float]


@dataclass(frozen=True)
class DatabaseSize(RecordModel):
    database_name: str
    size_bytes: int
