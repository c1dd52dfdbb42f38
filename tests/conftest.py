"""
Shared test fixtures and configuration for entire test suite.

Provides: In-memory SQLite engine and session factory, document/chunk
factories, settings fixtures
Dependencies: pytest, pytest_asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from docsearch.boundary.db.base import Base
from docsearch.boundary.db.connection import session_scope
from docsearch.boundary.db.create_tables import create_all_tables
from docsearch.boundary.db.models import ChunkModel, DocumentModel, DocumentStatus
from docsearch.boundary.db.schema_probe import SchemaCapabilities
from docsearch.configs.ingestion import IngestionSettings
from docsearch.configs.model_service import ModelServiceSettings
from docsearch.configs.queue import QueueSettings
from docsearch.configs.retrieval import RetrievalSettings


@pytest_asyncio.fixture
async def db_engine():
    """
    Create in-memory SQLite async engine with every table.

    Yields:
        AsyncEngine: Engine shared by all sessions of one test
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all_tables(engine)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker:
    """Session factory bound to the in-memory engine."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def sqlite_capabilities() -> SchemaCapabilities:
    """Capabilities of the test schema (no full-text search on SQLite)."""
    return SchemaCapabilities(full_text_search=False)


@pytest.fixture
def make_document(
    session_factory: async_sessionmaker,
) -> Callable[..., Awaitable[DocumentModel]]:
    """
    Factory inserting a document row.

    Usage:
        doc = await make_document(status=DocumentStatus.PROCESSING, minutes_ago=20)
    """

    async def _make(
        status: DocumentStatus = DocumentStatus.PENDING,
        original_filename: str = "manual.pdf",
        file_path: str = "/data/uploads/manual.pdf",
        mime_type: str = "application/pdf",
        minutes_ago: float = 0,
        **fields: Any,
    ) -> DocumentModel:
        timestamp = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
        async with session_scope(session_factory) as session:
            document = DocumentModel(
                id=uuid.uuid4(),
                filename=f"{uuid.uuid4().hex}.bin",
                original_filename=original_filename,
                file_path=file_path,
                mime_type=mime_type,
                status=status,
                uploaded_at=timestamp,
                last_updated=timestamp,
                **fields,
            )
            session.add(document)
        return document

    return _make


@pytest.fixture
def make_chunk(
    session_factory: async_sessionmaker,
) -> Callable[..., Awaitable[ChunkModel]]:
    """Factory inserting a chunk row for an existing document."""

    async def _make(
        document_id: uuid.UUID,
        chunk_index: int,
        content: str,
        embedding: list[float] | None = None,
        section_title: str | None = None,
    ) -> ChunkModel:
        async with session_scope(session_factory) as session:
            chunk = ChunkModel(
                id=uuid.uuid4(),
                document_id=document_id,
                chunk_index=chunk_index,
                content=content,
                content_length=len(content),
                embedding=embedding,
                section_title=section_title,
                chunk_metadata={},
            )
            session.add(chunk)
        return chunk

    return _make


@pytest.fixture
def ingestion_settings() -> IngestionSettings:
    """Ingestion settings with instant requeue backoff."""
    return IngestionSettings(
        chunk_size=1000,
        chunk_overlap=200,
        min_chunk_length=50,
        max_retries=3,
        retry_backoff_base=0.0,
        retry_backoff_max=0.0,
        stuck_threshold_minutes=15,
        monitor_interval_minutes=15,
        monitor_batch_size=10,
    )


@pytest.fixture
def retrieval_settings() -> RetrievalSettings:
    """Retrieval settings with library defaults."""
    return RetrievalSettings(
        default_limit=10,
        max_limit=100,
        semantic_threshold=0.7,
        hybrid_threshold=0.5,
        subsearch_timeout=5.0,
        fallback_to_text=True,
        context_threshold=0.6,
        context_top_k=5,
        context_max_chars=8000,
    )


@pytest.fixture
def model_service_settings() -> ModelServiceSettings:
    """Model service settings with zero retry delay."""
    return ModelServiceSettings(
        base_url="http://model.test",
        api_key=None,
        max_retries=3,
        retry_delay=0.0,
        retry_delay_max=0.0,
        max_text_length=2000,
        batch_concurrency=2,
    )


@pytest.fixture
def queue_settings() -> QueueSettings:
    """Queue settings for a small, fast pool."""
    return QueueSettings(
        queue_name="document_processing",
        poll_timeout=1,
        max_concurrent_jobs=2,
        error_backoff_seconds=0.01,
    )
