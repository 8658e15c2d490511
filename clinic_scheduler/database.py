"""Database configuration and connection management."""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from clinic_scheduler.config import settings

logger = structlog.get_logger(__name__)


def async_database_url(url: str) -> str:
    """Convert a sync PostgreSQL URL to its asyncpg form."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def engine_options(url: str) -> dict[str, Any]:
    """Engine keyword arguments for the given backend."""
    options: dict[str, Any] = {"echo": settings.debug}

    if url.startswith("postgresql"):
        options.update(
            pool_pre_ping=True,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=3600,
            connect_args={
                "server_settings": {
                    "application_name": settings.app_name,
                },
            },
        )

    return options


class DatabaseManager:
    """Process-wide owner of the async engine and session factory."""

    def __init__(self) -> None:
        """Create an uninitialised manager."""
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    def init(self, url: str | None = None) -> AsyncEngine:
        """
        Create the engine and session factory.

        Args:
            url: Database URL, defaults to the configured one

        Returns:
            The created engine
        """
        database_url = async_database_url(url or settings.database_url)
        self._engine = create_async_engine(database_url, **engine_options(database_url))
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("database_engine_created", dialect=self._engine.dialect.name)
        return self._engine

    @property
    def engine(self) -> AsyncEngine:
        """Return the engine, failing loudly before startup."""
        if self._engine is None:
            raise RuntimeError("DatabaseManager.init() has not been called")
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Return the session factory."""
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager.init() has not been called")
        return self._session_factory

    async def dispose(self) -> None:
        """Close all pooled connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def check_connection(self) -> bool:
        """Check if database connection is healthy."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False


db_manager = DatabaseManager()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with db_manager.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run a block of statements as one atomic unit.

    Commits when the block exits normally and rolls back on any other exit,
    including cancellation, so no transaction is left open.
    """
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise


async def check_database_connection() -> bool:
    """Check if database connection is healthy."""
    return await db_manager.check_connection()
