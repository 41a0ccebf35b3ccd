"""
Tests for the database adapters: URL normalization, backend selection and
engine configuration.
"""

import pytest
from sqlalchemy import text

from linkhub.db.adapters import (
    SQLITE_BUSY_TIMEOUT,
    PostgreSQLAdapter,
    SQLiteAdapter,
    get_database_adapter,
)


class TestNormalizeUrl:

    @pytest.mark.parametrize("database_url, expected", [
        ("sqlite:///./linkhub.db", "sqlite+aiosqlite:///./linkhub.db"),
        ("sqlite+aiosqlite:///./linkhub.db", "sqlite+aiosqlite:///./linkhub.db"),
        ("sqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
    ])
    def test_sqlite(self, database_url, expected):
        assert SQLiteAdapter().normalize_url(database_url) == expected

    @pytest.mark.parametrize("database_url, expected", [
        ("postgres://u:p@db/linkhub", "postgresql+asyncpg://u:p@db/linkhub"),
        ("postgresql://u:p@db:5432/linkhub", "postgresql+asyncpg://u:p@db:5432/linkhub"),
        ("postgresql+asyncpg://u:p@db/linkhub", "postgresql+asyncpg://u:p@db/linkhub"),
    ])
    def test_postgresql_keeps_credentials(self, database_url, expected):
        assert PostgreSQLAdapter().normalize_url(database_url) == expected


class TestGetDatabaseAdapter:

    @pytest.mark.parametrize("database_url, adapter_class", [
        ("sqlite+aiosqlite:///./linkhub.db", SQLiteAdapter),
        ("SQLite:///./linkhub.db", SQLiteAdapter),
        ("postgresql+asyncpg://u:p@db/linkhub", PostgreSQLAdapter),
        ("postgres://u:p@db/linkhub", PostgreSQLAdapter),
    ])
    def test_dialect_selects_adapter(self, database_url, adapter_class):
        assert isinstance(get_database_adapter(database_url), adapter_class)

    def test_unsupported_dialect(self):
        with pytest.raises(ValueError, match="mysql"):
            get_database_adapter("mysql+aiomysql://u:p@db/linkhub")


class TestSQLiteAdapter:

    def test_connect_args_wait_for_writers(self):
        connect_args = SQLiteAdapter().get_connect_args()
        assert connect_args["timeout"] == SQLITE_BUSY_TIMEOUT
        assert connect_args["check_same_thread"] is False

    @pytest.mark.asyncio
    async def test_engine_from_plain_sqlite_url(self, tmp_path):
        engine = SQLiteAdapter().create_engine(f"sqlite:///{tmp_path / 'plain.db'}")
        try:
            assert engine.url.drivername == "sqlite+aiosqlite"
            async with engine.connect() as conn:
                assert (await conn.execute(text("SELECT 1"))).scalar_one() == 1
        finally:
            await engine.dispose()
