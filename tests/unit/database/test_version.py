"""Unit tests for server version detection."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pgmux.core.exceptions import VersionQueryError, VersionUnparsableError
from pgmux.database.version import ServerVersion, detect_version, parse_version


class TestParseVersion:
    """Test parsing of ``SELECT version()`` output."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("PostgreSQL 14.5 (Debian 14.5-1.pgdg110+1) on x86_64-pc-linux-gnu", (14, 5, 0)),
            ("PostgreSQL 17.0 on aarch64-unknown-linux-gnu, compiled by gcc", (17, 0, 0)),
            ("PostgreSQL 9.6.24 on x86_64-pc-linux-gnu", (9, 6, 24)),
            ("PostgreSQL 16.2 (Ubuntu 16.2-1.pgdg22.04+1)", (16, 2, 0)),
        ],
    )
    def test_parses_known_formats(self, raw, expected):
        version = parse_version(raw)

        assert (version.major, version.minor, version.patch) == expected
        assert version.full_string == raw

    @pytest.mark.parametrize("raw", ["", "MySQL 8.0.33", "PostgreSQL devel", "PostgreSQL 15"])
    def test_unparsable(self, raw):
        with pytest.raises(VersionUnparsableError) as exc_info:
            parse_version(raw)

        assert exc_info.value.code == "VERSION_UNPARSABLE"
        assert exc_info.value.message == f"unable to parse version from: {raw}"


class TestServerVersion:
    """Test capability flags."""

    def test_wal_stats_from_14(self):
        assert not ServerVersion(13, 9).supports_wal_stats
        assert ServerVersion(14, 0).supports_wal_stats

    def test_checkpointer_view_from_17(self):
        assert not ServerVersion(16, 4).supports_checkpointer_view
        assert ServerVersion(17, 0).supports_checkpointer_view

    def test_blocking_pid_function_from_9_6(self):
        assert not ServerVersion(9, 5).supports_blocking_pid_function
        assert ServerVersion(9, 6).supports_blocking_pid_function
        assert ServerVersion(10, 0).supports_blocking_pid_function

    def test_exec_time_columns_from_13(self):
        assert not ServerVersion(12, 1).supports_exec_time_columns
        assert ServerVersion(13, 0).supports_exec_time_columns

    def test_formatting(self):
        version = ServerVersion(14, 5, full_string="PostgreSQL 14.5")

        assert str(version) == "14.5.0"
        assert version.short == "14.5"
        assert version.to_dict() == {
            "major": 14,
            "minor": 5,
            "patch": 0,
            "full_string": "PostgreSQL 14.5",
        }


class TestDetectVersion:
    """Test version detection against an executor."""

    @pytest.mark.asyncio
    async def test_detects(self):
        executor = MagicMock()
        executor.fetchval = AsyncMock(return_value="PostgreSQL 15.3 on x86_64-pc-linux-gnu")

        version = await detect_version(executor)

        assert version.major == 15
        executor.fetchval.assert_awaited_once_with("SELECT version()")

    @pytest.mark.asyncio
    async def test_query_failure(self):
        executor = MagicMock()
        executor.fetchval = AsyncMock(side_effect=OSError("connection reset"))

        with pytest.raises(VersionQueryError) as exc_info:
            await detect_version(executor)

        assert exc_info.value.code == "VERSION_QUERY_FAILED"
        assert exc_info.value.message == "failed to query PostgreSQL version: connection reset"
        assert isinstance(exc_info.value.cause, OSError)

    @pytest.mark.asyncio
    async def test_non_string_result(self):
        executor = MagicMock()
        executor.fetchval = AsyncMock(return_value=None)

        with pytest.raises(VersionUnparsableError):
            await detect_version(executor)
