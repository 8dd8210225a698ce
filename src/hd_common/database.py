"""Async engine and session plumbing for the HODL ledger tables.

Ingestion runs at the default READ COMMITTED level and relies on row
locks; queries read several tables and must see one committed state, so
they switch their transaction to REPEATABLE READ before the first SELECT.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings

SNAPSHOT_ISOLATION = "REPEATABLE READ"

engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, closed (and rolled back if open) afterwards."""
    async with async_session_factory() as session:
        yield session


async def begin_snapshot(session: AsyncSession) -> None:
    """Start the session's transaction at snapshot isolation.

    Must be called before anything else runs on the session: PostgreSQL
    fixes the isolation level at the first statement.
    """
    await session.connection(execution_options={"isolation_level": SNAPSHOT_ISOLATION})
