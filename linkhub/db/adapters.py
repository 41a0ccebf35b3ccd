"""
Database Adapters

Implementations of the DatabaseAdapter interface for SQLite (default) and
PostgreSQL, plus the factory that picks one from the connection string.

SQLite is perfect for:
- Local development
- Testing
- Single-instance deployments

PostgreSQL is the production target: real connection pooling and
concurrent writers.
"""

from typing import Any, Optional
from sqlalchemy.pool import NullPool

from linkhub.db.interface import DatabaseAdapter

# Seconds a SQLite connection waits for another writer to release the lock
SQLITE_BUSY_TIMEOUT = 30


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation (aiosqlite driver).

    - NullPool: file-based, no pooling needed
    - check_same_thread=False: aiosqlite runs the connection in its own thread
    """

    async_driver = "aiosqlite"

    def get_pool_class(self) -> type[NullPool]:
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "check_same_thread": False,
            "timeout": SQLITE_BUSY_TIMEOUT,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }

    def get_dialect_name(self) -> str:
        return "sqlite"


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter implementation (asyncpg driver).

    Uses SQLAlchemy's default QueuePool with pre-ping so stale connections
    are recycled transparently.
    """

    async_driver = "asyncpg"

    def get_pool_class(self) -> Optional[type]:
        return None

    def get_connect_args(self) -> dict[str, Any]:
        return {}

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
        }

    def get_dialect_name(self) -> str:
        return "postgresql"


def get_database_adapter(database_url: str) -> DatabaseAdapter:
    """
    Factory function to get the database adapter for a connection string.

    Args:
        database_url: SQLAlchemy URL, e.g. sqlite+aiosqlite:///./linkhub.db

    Returns:
        DatabaseAdapter instance

    Raises:
        ValueError: If the dialect is not supported
    """
    dialect = database_url.split(":", 1)[0].split("+", 1)[0].lower()
    if dialect == "sqlite":
        return SQLiteAdapter()
    if dialect in ("postgresql", "postgres"):
        return PostgreSQLAdapter()
    raise ValueError(f"Unsupported database dialect: {dialect!r}")
