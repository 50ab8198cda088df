"""SQL text of the diagnostic operations.

Version-specific variants are kept side by side; ``InstanceClient`` picks
one from the cached ``ServerVersion`` of its instance.
"""

SELECT_PING = "SELECT 1"

# Totals for one database; blk_*_time stay 0 while track_io_timing is off
SELECT_DATABASE_OVERVIEW = """
SELECT
  xact_commit,
  xact_rollback,
  blks_read,
  blks_hit,
  tup_returned,
  tup_fetched,
  tup_inserted,
  tup_updated,
  tup_deleted,
  conflicts,
  temp_files,
  temp_bytes,
  deadlocks,
  blk_read_time,
  blk_write_time
FROM pg_stat_database
WHERE datname = $1
"""

SELECT_CACHE_HIT_RATE_GLOBAL = """
SELECT
  CASE WHEN sum(blks_hit + blks_read) = 0 THEN NULL
       ELSE sum(blks_hit)::float / NULLIF(sum(blks_hit + blks_read), 0) END AS hit_rate
FROM pg_stat_database
WHERE datname NOT IN ('template0', 'template1')
"""

SELECT_CACHE_HIT_RATE_DB = """
SELECT
  CASE WHEN (blks_hit + blks_read) = 0 THEN NULL
       ELSE blks_hit::float / NULLIF(blks_hit + blks_read, 0) END AS hit_rate
FROM pg_stat_database
WHERE datname = $1
"""

# PostgreSQL 16 and older
SELECT_CHECKPOINTS_LEGACY = """
SELECT
  checkpoints_timed,
  checkpoints_req,
  checkpoint_write_time,
  checkpoint_sync_time,
  buffers_checkpoint,
  buffers_backend,
  buffers_backend_fsync,
  buffers_alloc
FROM pg_stat_bgwriter
"""

# PostgreSQL 17 renamed the counters when it split out pg_stat_checkpointer
SELECT_CHECKPOINTS_MODERN = """
SELECT
  num_timed AS checkpoints_timed,
  num_requested AS checkpoints_req,
  write_time AS checkpoint_write_time,
  sync_time AS checkpoint_sync_time
FROM pg_stat_checkpointer
"""

# PostgreSQL 14+
SELECT_WAL_ACTIVITY = """
SELECT
  wal_records,
  wal_fpi,
  wal_bytes,
  wal_buffers_full,
  stats_reset
FROM pg_stat_wal
"""

SELECT_TABLES_INFO = """
SELECT
  schemaname AS schema_name,
  relname AS table_name,
  pg_total_relation_size(relid) AS total_bytes,
  pg_relation_size(relid) AS table_bytes,
  pg_indexes_size(relid) AS indexes_bytes,
  n_live_tup,
  n_dead_tup,
  CASE WHEN (n_live_tup + n_dead_tup) = 0 THEN NULL
       ELSE n_dead_tup::float / (n_live_tup + n_dead_tup) END AS dead_ratio,
  seq_scan,
  idx_scan,
  last_vacuum,
  last_autovacuum,
  last_analyze,
  last_autoanalyze,
  vacuum_count,
  autovacuum_count
FROM pg_stat_user_tables
WHERE (n_live_tup + COALESCE(seq_scan, 0) + COALESCE(idx_scan, 0)) > 0
ORDER BY total_bytes DESC
LIMIT $1
"""

# PostgreSQL 9.6+
SELECT_LOCKING_INFO = """
SELECT
  a.pid,
  a.usename AS username,
  a.datname AS database,
  a.wait_event_type,
  a.wait_event,
  a.state,
  a.query_start,
  pg_blocking_pids(a.pid) AS blocking_pids
FROM pg_stat_activity a
WHERE a.datname = $1
  AND (a.wait_event IS NOT NULL OR cardinality(pg_blocking_pids(a.pid)) > 0)
ORDER BY a.query_start NULLS LAST
"""

# Before 9.6 the blockers are found by matching ungranted against granted locks
SELECT_LOCKING_INFO_LEGACY = """
SELECT
  a.pid,
  a.usename AS username,
  a.datname AS database,
  NULL::text AS wait_event_type,
  NULL::text AS wait_event,
  a.state,
  a.query_start,
  COALESCE(
    ARRAY(
      SELECT DISTINCT holder.pid
      FROM pg_locks waiter
      JOIN pg_locks holder
        ON holder.locktype = waiter.locktype
       AND holder.database IS NOT DISTINCT FROM waiter.database
       AND holder.relation IS NOT DISTINCT FROM waiter.relation
       AND holder.page IS NOT DISTINCT FROM waiter.page
       AND holder.tuple IS NOT DISTINCT FROM waiter.tuple
       AND holder.transactionid IS NOT DISTINCT FROM waiter.transactionid
       AND holder.pid <> waiter.pid
       AND holder.granted
      WHERE waiter.pid = a.pid
        AND NOT waiter.granted
    ),
    '{}'::int[]
  ) AS blocking_pids
FROM pg_stat_activity a
WHERE a.datname = $1
  AND (a.waiting OR EXISTS (
    SELECT 1 FROM pg_locks l WHERE l.pid = a.pid AND NOT l.granted
  ))
ORDER BY a.query_start NULLS LAST
"""

SELECT_CHANGED_SETTINGS = """
SELECT
  name,
  setting,
  unit,
  source,
  pending_restart
FROM pg_settings
WHERE source <> 'default'
ORDER BY name
"""

SELECT_INDEX_STATS = """
SELECT
  schemaname AS schema_name,
  relname AS table_name,
  indexrelname AS index_name,
  idx_scan,
  idx_tup_read,
  idx_tup_fetch,
  pg_relation_size(indexrelid) AS size_bytes
FROM pg_stat_user_indexes
ORDER BY size_bytes DESC
LIMIT $1
"""

# $2 is the minimum duration in seconds
SELECT_ACTIVE_QUERIES = """
SELECT
  pid,
  usename AS username,
  datname AS database,
  state,
  EXTRACT(EPOCH FROM (now() - query_start))::float AS duration_seconds,
  wait_event_type,
  wait_event,
  query
FROM pg_stat_activity
WHERE datname = $1
  AND state <> 'idle'
  AND pid <> pg_backend_pid()
  AND query_start IS NOT NULL
  AND now() - query_start > make_interval(secs => $2::int)
ORDER BY duration_seconds DESC
"""

SELECT_CONNECTION_STATS = """
SELECT
  count(*) AS total_connections,
  count(*) FILTER (WHERE state = 'active') AS active,
  count(*) FILTER (WHERE state = 'idle') AS idle,
  count(*) FILTER (WHERE state IN ('idle in transaction', 'idle in transaction (aborted)')) AS idle_in_transaction,
  count(*) FILTER (WHERE wait_event_type = 'Lock') AS waiting,
  current_setting('max_connections')::int AS max_connections
FROM pg_stat_activity
WHERE datname IS NOT NULL
"""

SELECT_EXTENSION_INSTALLED = """
SELECT EXISTS (SELECT 1 FROM pg_extension WHERE extname = $1)
"""

PG_STAT_STATEMENTS = "pg_stat_statements"

# pg_stat_statements 1.8 (PostgreSQL 13) renamed *_time to *_exec_time
SELECT_SLOW_QUERIES = """
SELECT
  query,
  calls,
  total_exec_time,
  mean_exec_time,
  stddev_exec_time,
  rows,
  CASE WHEN (shared_blks_hit + shared_blks_read) = 0 THEN NULL
       ELSE 100.0 * shared_blks_hit / (shared_blks_hit + shared_blks_read) END AS cache_hit_percent
FROM pg_stat_statements
ORDER BY total_exec_time DESC
LIMIT $1
"""

SELECT_SLOW_QUERIES_LEGACY = """
SELECT
  query,
  calls,
  total_time AS total_exec_time,
  mean_time AS mean_exec_time,
  stddev_time AS stddev_exec_time,
  rows,
  CASE WHEN (shared_blks_hit + shared_blks_read) = 0 THEN NULL
       ELSE 100.0 * shared_blks_hit / (shared_blks_hit + shared_blks_read) END AS cache_hit_percent
FROM pg_stat_statements
ORDER BY total_time DESC
LIMIT $1
"""

SELECT_DATABASE_SIZES = """
SELECT
  datname AS database_name,
  pg_database_size(datname) AS size_bytes
FROM pg_database
WHERE datallowconn AND NOT datistemplate
"""
