"""
Database table creation.

Creates all tables defined in ORM models using SQLAlchemy metadata.

Dependencies: sqlalchemy
System role: Database schema initialization for development and tests

Usage:
    python -m docsearch.boundary.db.create_tables
"""

import asyncio

from sqlalchemy.ext.asyncio import AsyncEngine

from docsearch.boundary.db.base import Base
from docsearch.boundary.db.connection import get_async_engine

# Import all models to register them with Base.metadata
from docsearch.boundary.db.models.document_model import DocumentModel  # noqa: F401
from docsearch.boundary.db.models.chunk_model import ChunkModel  # noqa: F401
from docsearch.boundary.db.models.processing_job_model import ProcessingJobModel  # noqa: F401
from docsearch.boundary.db.models.search_query_model import SearchQueryModel  # noqa: F401


async def create_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Create all database tables from registered ORM models.

    Idempotent: existing tables remain unchanged.

    Args:
        engine: Target engine (defaults to the configured one)
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


if __name__ == "__main__":
    asyncio.run(create_all_tables())
