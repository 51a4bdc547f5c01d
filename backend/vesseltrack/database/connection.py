"""Async database connection and session management using SQLAlchemy 2.0."""

import asyncio
import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncIterator, Iterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from vesseltrack.database.base import Base
from vesseltrack.errors import StorageUnavailableError

logger = logging.getLogger(__name__)


def get_async_database_url(url: str) -> str:
    """Convert standard database URL to async version."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://") and not url.startswith("sqlite+"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


class Database:
    """Owns the async engine and session factory for one process.

    Created by the application lifespan (or the Celery worker) and handed to
    repositories, so no engine lives at module import time.
    """

    def __init__(self, url: str, echo: bool = False, **engine_kwargs: Any):
        self.url = get_async_database_url(url)
        self.engine: AsyncEngine = create_async_engine(
            self.url, echo=echo, **self._engine_options(self.url, engine_kwargs)
        )
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )
        # SQLite allows a single writer; serialize sessions there
        self._sqlite_lock: Optional[asyncio.Lock] = (
            asyncio.Lock() if self.is_sqlite else None
        )

    @staticmethod
    def _engine_options(url: str, overrides: dict[str, Any]) -> dict[str, Any]:
        if url.startswith("sqlite"):
            options: dict[str, Any] = {}
            if ":memory:" in url or url.rstrip("/").endswith("aiosqlite:"):
                options["poolclass"] = StaticPool
                options["connect_args"] = {"check_same_thread": False}
        else:
            options = {
                "pool_pre_ping": True,
                "pool_size": 10,
                "max_overflow": 20,
                "pool_recycle": 300,  # Recycle connections after 5 minutes
            }
        options.update(overrides)
        return options

    @property
    def is_sqlite(self) -> bool:
        return self.engine.dialect.name == "sqlite"

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session that rolls back on error.

        Sessions must not be nested: on SQLite an inner session would wait on
        the outer one forever.

        Usage:
            async with database.session() as session:
                result = await session.execute(query)
                await session.commit()
        """
        if self._sqlite_lock is not None:
            async with self._sqlite_lock:
                async with self._open_session() as session:
                    yield session
        else:
            async with self._open_session() as session:
                yield session

    @asynccontextmanager
    async def _open_session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def check_connection(self) -> bool:
        """Check if database connection is healthy."""
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
                return True
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database connection check failed: {e}")
            return False

    async def init(self, create_all: bool = False) -> None:
        """Verify connectivity and optionally create tables (call on startup)."""
        logger.info("Initializing database engine...")
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                if create_all:
                    await conn.run_sync(_metadata().create_all)
                    logger.info("Database tables created")
            logger.info("Database engine initialized successfully")
        except SQLAlchemyError as e:
            logger.error(f"Failed to initialize database engine: {e}")
            raise

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(_metadata().create_all)

    async def dispose(self) -> None:
        """Close database engine (call on shutdown)."""
        logger.info("Closing database engine...")
        await self.engine.dispose()
        logger.info("Database engine closed")


def _metadata():
    """Metadata with every model table registered."""
    import vesseltrack.models  # noqa: F401

    return Base.metadata


@contextmanager
def storage_guard(operation: str) -> Iterator[None]:
    """Translate SQLAlchemy failures into StorageUnavailableError.

    Usage:
        with storage_guard("load vessel"):
            async with database.session() as session:
                ...
    """
    try:
        yield
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Storage error during {operation}: {e}")
        raise StorageUnavailableError(
            f"Storage unavailable during {operation}: {e.__class__.__name__}"
        ) from e
