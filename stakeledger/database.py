"""
Database engine and session management.

Wraps the async engine and session factory behind the two scopes the
ledger needs: a transactional scope for mutations and a plain scope for
reads.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from stakeledger.config.settings import is_in_memory_url, settings
from stakeledger.models import Base


class Database:
    """
    Ledger store backend.

    The default URL is an in-memory SQLite database held on a single shared
    connection. Concurrent transactions cannot share one connection, so on
    that backend every session scope is serialized. Any other URL uses the
    normal connection pool.
    """

    def __init__(
        self, database_url: str | None = None, echo: bool | None = None
    ) -> None:
        """
        Initialize engine and session factory.

        Args:
            database_url: SQLAlchemy async URL (defaults to settings)
            echo: Log SQL statements (defaults to settings)
        """
        self.database_url = database_url or settings.database_url
        self.single_connection = is_in_memory_url(self.database_url)

        engine_kwargs: dict[str, object] = {
            "echo": settings.database_echo if echo is None else echo,
        }
        if self.single_connection:
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}

        self.engine: AsyncEngine = create_async_engine(
            self.database_url, **engine_kwargs
        )
        self.session_maker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._connection_lock = asyncio.Lock()

    async def create_all(self) -> None:
        """Create all ledger tables (checkfirst)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
        logger.info("Ledger tables ready", extra={"url": self._safe_url})

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()

    @asynccontextmanager
    async def _scope(self) -> AsyncIterator[None]:
        if self.single_connection:
            async with self._connection_lock:
                yield
        else:
            yield

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Read scope.

        Yields:
            Session without an explicit transaction block
        """
        async with self._scope():
            async with self.session_maker() as session:
                yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Write scope: commits on success, rolls back every write on error.

        Yields:
            Session inside ``session.begin()``
        """
        async with self._scope():
            async with self.session_maker() as session:
                async with session.begin():
                    yield session

    @property
    def _safe_url(self) -> str:
        return self.engine.url.render_as_string(hide_password=True)
