"""
Store connection pool and ORM base
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from config import Settings
from errors import StoreError

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


class StorePool:
    """
    Bounded connection pool shared by all requests.

    Callers never hold the engine directly: each statement runs inside
    ``acquire()`` or ``transaction()``, which return the connection to the
    pool on every exit path. When all connections are busy, callers wait up
    to ``pool_timeout`` seconds.
    """

    def __init__(self, url: str, pool_size: int = 10, pool_timeout: float = 30.0):
        self.url = url
        self.pool_size = pool_size
        self.pool_timeout = pool_timeout
        self._engine: Optional[AsyncEngine] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorePool":
        return cls(
            settings.store_url,
            pool_size=settings.db_pool_size,
            pool_timeout=settings.db_pool_timeout,
        )

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            if self.url.startswith("sqlite"):
                # SQLite files are opened per statement
                self._engine = create_async_engine(self.url, poolclass=NullPool)
            else:
                self._engine = create_async_engine(
                    self.url,
                    pool_size=self.pool_size,
                    max_overflow=0,
                    pool_timeout=self.pool_timeout,
                    pool_pre_ping=True,
                )
        return self._engine

    async def connect(self) -> None:
        """Open the pool and check the store answers"""
        try:
            async with self.acquire() as connection:
                await connection.execute(text("SELECT 1"))
            logger.info("✅ Store connected successfully")
        except SQLAlchemyError as e:
            logger.error(f"❌ Store connection error: {e}")
            raise StoreError(str(e)) from e

    async def create_tables(self) -> None:
        """Create the reports/issues tables when missing"""
        from models import Issue, Report  # noqa: F401  (registers the tables)

        async with self.transaction() as connection:
            await connection.run_sync(Base.metadata.create_all)
        logger.info("Database tables created/verified")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[AsyncConnection]:
        """Borrow one connection in autocommit-per-statement mode"""
        async with self.engine.connect() as connection:
            yield connection
            await connection.commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncConnection]:
        """Borrow one connection inside BEGIN ... COMMIT, rolled back on error"""
        async with self.engine.begin() as connection:
            yield connection

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Store pool closed")
