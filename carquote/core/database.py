"""
Database configuration and session management.

``Database`` owns the async SQLAlchemy engine and session factory. One
instance lives on ``app.state.database`` for the lifetime of the
application; the engine is created lazily on first use and disposed at
shutdown.
"""

import asyncio
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from carquote.core.logging_config import get_logger
from carquote.models.base import Base


logger = get_logger(__name__)


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def ensure_sqlite_directory(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    if not _is_sqlite(url):
        return
    database = make_url(url).database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


def create_engine_for_url(url: str, echo: bool = False) -> AsyncEngine:
    """
    Create and configure the async SQLAlchemy engine.

    For SQLite:
    - Uses StaticPool so in-memory databases survive across sessions
    - Enables check_same_thread=False for async compatibility
    - Turns on foreign keys, and WAL for file databases

    Returns:
        Configured AsyncEngine instance
    """
    is_sqlite = _is_sqlite(url)

    engine_kwargs = {
        "echo": echo,
        "connect_args": {"check_same_thread": False} if is_sqlite else {},
    }
    if is_sqlite:
        engine_kwargs["poolclass"] = StaticPool

    engine = create_async_engine(url, **engine_kwargs)

    if is_sqlite:
        in_memory = ":memory:" in url

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ANN001
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            if not in_memory:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return engine


class Database:
    """
    Lazily-initialized connection resource.

    Attributes:
        url: SQLAlchemy async connection URL
        echo: Log every SQL statement (debug only)
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_engine_for_url(self.url, echo=self.echo)
            self._session_maker = async_sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
            logger.info(
                "Database engine created",
                extra={"dialect": self._engine.dialect.name},
            )
        return self._engine

    @property
    def session_maker(self) -> async_sessionmaker[AsyncSession]:
        if self._session_maker is None:
            self.engine  # noqa: B018 - initializes the session factory
        return self._session_maker

    def session(self) -> AsyncSession:
        """
        Open a new session.

        Example:
            async with database.session() as session:
                admin = await session.get(Admin, admin_id)
        """
        return self.session_maker()

    async def create_all(self) -> None:
        """Create any missing tables for the registered models."""
        ensure_sqlite_directory(self.url)

        # Import models to ensure metadata is populated before create_all()
        from carquote import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        from carquote import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self, timeout_seconds: float = 2.0) -> bool:
        """
        Check database connectivity with ``SELECT 1``.

        Returns:
            True if the database answered within the timeout, False otherwise
        """
        try:
            async with asyncio.timeout(timeout_seconds):
                async with self.session() as session:
                    result = await session.execute(text("SELECT 1"))
                    result.scalar()
                    return True
        except (asyncio.TimeoutError, SQLAlchemyError, OSError):
            logger.warning("Database ping failed", exc_info=True)
            return False

    async def dispose(self) -> None:
        """Release pooled connections. Safe to call if never initialized."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_maker = None


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function to get a database session.

    Commits when the handler returns normally and rolls back when it raises.

    Example:
        @router.get("/quotes")
        async def list_quotes(db: AsyncSession = Depends(get_db)):
            ...
    """
    database = get_database(request)
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
