# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Process-wide connection pool for the relational store.

init_database() builds one AsyncEngine and its sessionmaker from
Settings; every ProgressionEngine opened afterwards draws sessions from
them. PostgreSQL (asyncpg) gets a sized, pre-pinged pool. SQLite
(aiosqlite) keeps SQLAlchemy's defaults, since its pool options differ.

Example:
    from schoolcore.infrastructure.database.connection import (
        init_database,
        get_session,
    )

    await init_database(settings)

    async with get_session() as session:
        classrooms = (await session.execute(select(Classroom))).scalars().all()
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from schoolcore.core.config.settings import Settings

# Seconds before a pooled PostgreSQL connection is replaced
POOL_RECYCLE_SECONDS = 1800


class DatabaseError(Exception):
    """Raised when the pool is missing or a session scope fails.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy error, if any.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error is None:
            return self.message
        return f"{self.message}: {self.original_error}"


@dataclass
class _Pool:
    engine: AsyncEngine
    sessionmaker: async_sessionmaker[AsyncSession]


_pool: Optional[_Pool] = None


def _engine_options(settings: "Settings") -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.debug}
    if settings.db.is_sqlite:
        return options
    options.update(
        pool_size=settings.db.pool_size,
        max_overflow=settings.db.max_overflow,
        pool_pre_ping=True,
        pool_recycle=POOL_RECYCLE_SECONDS,
    )
    return options


def _require_pool() -> _Pool:
    if _pool is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _pool


async def init_database(settings: "Settings") -> None:
    """Create the shared engine and sessionmaker.

    Call once at startup. Calling again replaces the pool without
    disposing the old one, so pair it with close_database().

    Args:
        settings: Application settings with the db section.

    Raises:
        DatabaseError: If the engine cannot be created from the URL.
    """
    global _pool

    try:
        engine = create_async_engine(settings.db.url, **_engine_options(settings))
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to initialize database connection", e) from e

    _pool = _Pool(
        engine=engine,
        sessionmaker=async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        ),
    )


async def close_database() -> None:
    """Dispose the shared engine. A no-op when nothing is open."""
    global _pool

    if _pool is None:
        return
    pool, _pool = _pool, None
    await pool.engine.dispose()


def get_engine() -> AsyncEngine:
    """Return the shared engine.

    Raises:
        DatabaseError: If init_database() has not run.
    """
    return _require_pool().engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the shared sessionmaker.

    Raises:
        DatabaseError: If init_database() has not run.
    """
    return _require_pool().sessionmaker


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Open a session from the shared pool.

    Engine operations commit and roll back through run_atomic. On exit
    this scope commits whatever is still pending, and on any exception it
    rolls back. Storage errors surface as DatabaseError.

    Yields:
        AsyncSession bound to the shared engine.

    Raises:
        DatabaseError: If the pool is missing or the session fails.
    """
    async with get_sessionmaker()() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise DatabaseError("Database operation failed", e) from e
        except BaseException:
            await session.rollback()
            raise


async def check_database_connection() -> bool:
    """Return True when the shared engine can run a trivial query."""
    if _pool is None:
        return False

    try:
        async with _pool.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return False
    return True
