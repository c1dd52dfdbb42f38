"""
Engine, session factory and transaction scope for the chunk store.

Workers, services and the stuck-job monitor never share a session: each
unit of work opens its own through session_scope() so that conditional
status transitions commit independently.

Dependencies: sqlalchemy, docsearch.configs
System role: Database connection lifecycle
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

from docsearch.configs import get_settings
from docsearch.configs.database import DatabaseSettings


def get_async_engine(db_config: DatabaseSettings | None = None) -> AsyncEngine:
    """
    Pooled async engine.

    Pool size is sized for max_concurrent_jobs workers plus the monitor and
    services; pre-ping drops connections the server closed while idle.
    """
    db_config = db_config or get_settings().database
    return create_async_engine(
        db_config.async_database_url,
        echo=db_config.echo_sql,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )


def get_async_session_factory(engine: AsyncEngine | None = None) -> async_sessionmaker:
    """
    Session factory bound to engine (a new engine when omitted).

    expire_on_commit=False keeps rows returned from a committed scope
    readable by the caller.
    """
    return async_sessionmaker(
        bind=engine or get_async_engine(),
        autoflush=False,
        expire_on_commit=False,
    )


@asynccontextmanager
async def session_scope(session_factory: async_sessionmaker) -> AsyncIterator[AsyncSession]:
    """
    One transaction: commit on normal exit, roll back on any exception.

    Cancellation also rolls back, so a worker cancelled mid-write leaves
    no partial chunk set behind.

    Usage:
        async with session_scope(factory) as session:
            await document_crud.mark_processing(session, doc_id)
    """
    session: AsyncSession = session_factory()
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise
    finally:
        await session.close()
