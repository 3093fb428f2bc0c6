"""Database connection and session management.

Provides the async SQLAlchemy engine and session factory for PostgreSQL,
and raw asyncpg connections for LISTEN/NOTIFY.
"""

import asyncpg
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from fines.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """Create async database engine.

    Args:
        settings: Application settings with database URL

    Returns:
        Configured async engine
    """
    return create_async_engine(
        settings.database.url,
        echo=settings.debug,  # Log SQL queries in debug mode
        pool_pre_ping=True,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create async session factory.

    Args:
        engine: Database engine

    Returns:
        Session factory for creating database sessions
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def connect_listener(settings: Settings) -> asyncpg.Connection:
    """Open a dedicated asyncpg connection for LISTEN.

    Listening connections cannot come from the SQLAlchemy pool: they stay
    open for the lifetime of a subscription.

    Args:
        settings: Application settings with database URL

    Returns:
        Open connection
    """
    return await asyncpg.connect(settings.database.dsn)
