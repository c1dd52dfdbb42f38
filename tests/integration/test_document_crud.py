"""
Test suite for DocumentCRUD against in-memory SQLite.

Tests conditional status transitions, status counts and the stale
document query used by stuck-job recovery.

System role: Verification of document persistence layer
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text

from docsearch.boundary.db.connection import session_scope
from docsearch.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from docsearch.boundary.db.models import DocumentModel, DocumentStatus
from docsearch.boundary.db.schema_probe import SchemaCapabilities


class TestDocumentCRUDInit:
    """Test suite for DocumentCRUD initialization."""

    def test_init_should_set_model_to_document_model(self) -> None:
        assert DocumentCRUD().model == DocumentModel


class TestStatusTransitions:
    """Test suite for guarded status transitions."""

    @pytest.mark.asyncio
    async def test_mark_processing_should_claim_pending_document_once(
        self,
        session_factory,
        make_document,
    ) -> None:
        # Arrange
        document = await make_document(status=DocumentStatus.PENDING)

        # Act
        async with session_scope(session_factory) as session:
            first = await document_crud.mark_processing(session, document.id)
        async with session_scope(session_factory) as session:
            second = await document_crud.mark_processing(session, document.id)

        # Assert
        assert first is not None
        assert first.status == DocumentStatus.PROCESSING
        assert second is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [DocumentStatus.COMPLETED, DocumentStatus.FAILED])
    async def test_mark_processing_should_skip_finished_documents(
        self,
        session_factory,
        make_document,
        status: DocumentStatus,
    ) -> None:
        document = await make_document(status=status)

        async with session_scope(session_factory) as session:
            assert await document_crud.mark_processing(session, document.id) is None

    @pytest.mark.asyncio
    async def test_mark_completed_should_store_chunk_count(
        self,
        session_factory,
        make_document,
    ) -> None:
        # Arrange
        document = await make_document(status=DocumentStatus.PROCESSING)

        # Act
        async with session_scope(session_factory) as session:
            await document_crud.mark_completed(session, document.id, chunk_count=7)

        # Assert
        async with session_scope(session_factory) as session:
            stored = await document_crud.get_by_id(session, document.id)
        assert stored.status == DocumentStatus.COMPLETED
        assert stored.chunk_count == 7
        assert stored.error_message is None

    @pytest.mark.asyncio
    async def test_mark_failed_should_not_touch_completed_document(
        self,
        session_factory,
        make_document,
    ) -> None:
        document = await make_document(status=DocumentStatus.COMPLETED)

        async with session_scope(session_factory) as session:
            result = await document_crud.mark_failed(session, document.id, "boom")

        assert result is None

    @pytest.mark.asyncio
    async def test_mark_failed_should_truncate_error_message(
        self,
        session_factory,
        make_document,
    ) -> None:
        document = await make_document(status=DocumentStatus.PROCESSING)

        async with session_scope(session_factory) as session:
            result = await document_crud.mark_failed(session, document.id, "x" * 5000)

        assert result.status == DocumentStatus.FAILED
        assert len(result.error_message) == 2000

    @pytest.mark.asyncio
    async def test_reset_should_respect_updated_before_guard(
        self,
        session_factory,
        make_document,
    ) -> None:
        # Arrange
        recent = await make_document(status=DocumentStatus.PROCESSING, minutes_ago=1)
        stale = await make_document(status=DocumentStatus.PROCESSING, minutes_ago=20)
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=15)

        # Act
        async with session_scope(session_factory) as session:
            recent_result = await document_crud.reset_to_pending(
                session, recent.id, updated_before=cutoff
            )
            stale_result = await document_crud.reset_to_pending(
                session, stale.id, updated_before=cutoff
            )

        # Assert
        assert recent_result is None
        assert stale_result.status == DocumentStatus.PENDING

    @pytest.mark.asyncio
    async def test_transition_should_refresh_last_updated(
        self,
        session_factory,
        make_document,
    ) -> None:
        document = await make_document(status=DocumentStatus.PENDING, minutes_ago=30)

        async with session_scope(session_factory) as session:
            claimed = await document_crud.mark_processing(session, document.id)

        last_updated = claimed.last_updated
        if last_updated.tzinfo is None:
            last_updated = last_updated.replace(tzinfo=timezone.utc)
        assert datetime.now(timezone.utc) - last_updated < timedelta(minutes=1)


class TestProbedColumns:
    """Test suite for transitions on schemas that differ from the ORM model."""

    @pytest.mark.asyncio
    async def test_transition_should_guard_and_refresh_probed_timestamp(
        self,
        db_engine,
        session_factory,
        make_document,
    ) -> None:
        # Arrange
        recent = await make_document(status=DocumentStatus.PROCESSING, minutes_ago=1)
        stale = await make_document(status=DocumentStatus.PROCESSING, minutes_ago=20)
        async with db_engine.begin() as conn:
            await conn.execute(
                text("ALTER TABLE documents RENAME COLUMN last_updated TO updated_at")
            )
        capabilities = SchemaCapabilities(timestamp_column="updated_at")
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=15)

        # Act
        async with session_scope(session_factory) as session:
            recent_result = await document_crud.reset_to_pending(
                session, recent.id, updated_before=cutoff, capabilities=capabilities
            )
            stale_result = await document_crud.reset_to_pending(
                session, stale.id, updated_before=cutoff, capabilities=capabilities
            )

        # Assert
        assert recent_result is None
        assert stale_result.status == DocumentStatus.PENDING
        refreshed = stale_result.updated_at
        if refreshed.tzinfo is None:
            refreshed = refreshed.replace(tzinfo=timezone.utc)
        assert refreshed > cutoff

    @pytest.mark.asyncio
    async def test_mark_failed_without_error_message_column(
        self,
        db_engine,
        session_factory,
        make_document,
    ) -> None:
        # Arrange
        document = await make_document(status=DocumentStatus.PROCESSING)
        async with db_engine.begin() as conn:
            await conn.execute(text("ALTER TABLE documents DROP COLUMN error_message"))

        # Act
        async with session_scope(session_factory) as session:
            result = await document_crud.mark_failed(
                session,
                document.id,
                "boom",
                capabilities=SchemaCapabilities(has_error_message=False),
            )

        # Assert
        assert result.status == DocumentStatus.FAILED
        assert "error_message" not in result._mapping


class TestQueries:
    """Test suite for counts and stale lookups."""

    @pytest.mark.asyncio
    async def test_count_by_status_should_include_every_status(
        self,
        session_factory,
        make_document,
    ) -> None:
        # Arrange
        await make_document(status=DocumentStatus.PENDING)
        await make_document(status=DocumentStatus.PENDING)
        await make_document(status=DocumentStatus.COMPLETED)

        # Act
        async with session_scope(session_factory) as session:
            counts = await document_crud.count_by_status(session)

        # Assert
        assert counts == {"pending": 2, "processing": 0, "completed": 1, "failed": 0}

    @pytest.mark.asyncio
    async def test_get_by_status_should_filter_and_limit(
        self,
        session_factory,
        make_document,
    ) -> None:
        for _ in range(3):
            await make_document(status=DocumentStatus.FAILED)
        await make_document(status=DocumentStatus.PENDING)

        async with session_scope(session_factory) as session:
            failed = await document_crud.get_by_status(session, DocumentStatus.FAILED, limit=2)

        assert len(failed) == 2
        assert all(d.status == DocumentStatus.FAILED for d in failed)

    @pytest.mark.asyncio
    async def test_find_stale_should_return_old_pending_and_processing_oldest_first(
        self,
        session_factory,
        make_document,
        sqlite_capabilities: SchemaCapabilities,
    ) -> None:
        # Arrange
        pending_old = await make_document(status=DocumentStatus.PENDING, minutes_ago=20)
        processing_older = await make_document(status=DocumentStatus.PROCESSING, minutes_ago=30)
        await make_document(status=DocumentStatus.PROCESSING, minutes_ago=1)
        await make_document(status=DocumentStatus.COMPLETED, minutes_ago=60)
        await make_document(status=DocumentStatus.FAILED, minutes_ago=60)
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=15)

        # Act
        async with session_scope(session_factory) as session:
            rows = await document_crud.find_stale(session, sqlite_capabilities, cutoff, limit=10)

        # Assert
        assert [row.id for row in rows] == [processing_older.id, pending_old.id]
        assert rows[0].status == "processing"
        assert rows[0].file_path == processing_older.file_path
        assert rows[0].mime_type == processing_older.mime_type

    @pytest.mark.asyncio
    async def test_find_stale_should_honour_limit(
        self,
        session_factory,
        make_document,
        sqlite_capabilities: SchemaCapabilities,
    ) -> None:
        for minutes in (40, 30, 20):
            await make_document(status=DocumentStatus.PENDING, minutes_ago=minutes)
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=15)

        async with session_scope(session_factory) as session:
            rows = await document_crud.find_stale(session, sqlite_capabilities, cutoff, limit=2)

        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_find_stale_should_only_select_probed_columns(
        self,
        session_factory,
        make_document,
    ) -> None:
        # Arrange
        await make_document(status=DocumentStatus.PENDING, minutes_ago=20)
        capabilities = SchemaCapabilities(
            timestamp_column="uploaded_at", has_file_path=False, has_mime_type=False
        )
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=15)

        # Act
        async with session_scope(session_factory) as session:
            rows = await document_crud.find_stale(session, capabilities, cutoff, limit=10)

        # Assert
        assert len(rows) == 1
        assert set(rows[0]._mapping.keys()) == {"id", "status", "uploaded_at"}

    @pytest.mark.asyncio
    async def test_find_stale_without_timestamp_column_should_return_nothing(
        self,
        session_factory,
        make_document,
    ) -> None:
        await make_document(status=DocumentStatus.PENDING, minutes_ago=60)
        cutoff = datetime.now(timezone.utc)

        async with session_scope(session_factory) as session:
            rows = await document_crud.find_stale(
                session, SchemaCapabilities(timestamp_column=None), cutoff, limit=10
            )

        assert rows == []
