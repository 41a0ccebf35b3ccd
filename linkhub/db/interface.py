"""
Database Adapter Interface

Every backend LinkHub runs on (SQLite for development and tests, PostgreSQL
in production) is described by a DatabaseAdapter. The adapter turns
DATABASE_URL into a configured async engine; nothing outside linkhub.db
knows which backend is in use.

Adding a backend:
1. Subclass DatabaseAdapter, set async_driver and fill in the hooks
2. Register it in get_database_adapter() (linkhub.db.adapters)
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import Pool


class DatabaseAdapter(ABC):
    """
    Backend-specific engine configuration.

    create_engine() is shared; subclasses only describe their backend
    through the get_* hooks.
    """

    # Driver put into the URL when DATABASE_URL only names the database
    async_driver: str = ""

    def normalize_url(self, database_url: str) -> str:
        """
        Return database_url with this backend's async driver.

        Examples:
            "sqlite:///./linkhub.db" -> "sqlite+aiosqlite:///./linkhub.db"
            "postgres://u:p@db/linkhub" -> "postgresql+asyncpg://u:p@db/linkhub"
        """
        url = make_url(database_url)
        driver = url.get_driver_name() if "+" in url.drivername else self.async_driver
        url = url.set(drivername=f"{self.get_dialect_name()}+{driver}")
        return url.render_as_string(hide_password=False)

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create the async engine for this backend.

        Args:
            database_url: Connection string (the async driver may be omitted)
            **kwargs: Engine options overriding the adapter defaults

        Returns:
            Configured AsyncEngine
        """
        engine_kwargs = self.get_engine_kwargs()
        pool_class = self.get_pool_class()
        if pool_class is not None:
            engine_kwargs["poolclass"] = pool_class
        engine_kwargs.update(kwargs)

        return create_async_engine(
            self.normalize_url(database_url),
            connect_args=self.get_connect_args(),
            **engine_kwargs
        )

    @abstractmethod
    def get_pool_class(self) -> Optional[type[Pool]]:
        """Pool class for this backend, or None for SQLAlchemy's default."""

    @abstractmethod
    def get_connect_args(self) -> dict[str, Any]:
        """Arguments handed to the DBAPI connect() call."""

    @abstractmethod
    def get_engine_kwargs(self) -> dict[str, Any]:
        """Engine options (echo, pool sizing, ...)."""

    @abstractmethod
    def get_dialect_name(self) -> str:
        """SQLAlchemy dialect name, e.g. 'sqlite' or 'postgresql'."""
