"""Async database engine and session management."""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from cohort.core.config import DatabaseConfig
from cohort.db.base import Base


class DatabaseManager:
    """Owns the async SQLAlchemy engine and session factory.

    Usage::

        db = DatabaseManager("sqlite+aiosqlite:///cohort.db")
        await db.create_tables()
        async with db.session() as session:
            ...
        await db.close()
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: int = 5,
    ) -> None:
        kwargs: dict[str, Any] = {"echo": echo}
        if "sqlite" not in database_url:
            kwargs["pool_size"] = pool_size
            kwargs["pool_pre_ping"] = True
        self._engine: AsyncEngine = create_async_engine(database_url, **kwargs)
        self._session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine,
            expire_on_commit=False,
        )

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> DatabaseManager:
        if not config.database_url:
            raise ValueError("DatabaseConfig.database_url is not set")
        return cls(config.database_url, echo=config.echo, pool_size=config.pool_size)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def session(self) -> AsyncSession:
        """Create a new async session."""
        return self._session_factory()

    async def create_tables(self) -> None:
        # Importing the models registers every table on Base.metadata.
        import cohort.db.models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose of the engine connection pool."""
        await self._engine.dispose()
