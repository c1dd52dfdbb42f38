"""
Test suite for IngestionService.

System role: Verification of enqueueing, requeueing, operator retries,
failed-job cleanup and embedding reprocessing
"""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from docsearch.application.services.ingestion_service import IngestionService
from docsearch.boundary.db.connection import session_scope
from docsearch.boundary.db.CRUD.document_crud import document_crud
from docsearch.boundary.db.CRUD.processing_job_crud import processing_job_crud
from docsearch.boundary.db.models import DocumentStatus, JobStatus, JobType
from docsearch.boundary.queue.job_queue import JobQueue
from docsearch.core.document_processing.entrypoint import DocumentPipeline
from docsearch.core.document_processing.models import IngestionJob, PipelineResult
from docsearch.core.exceptions import (
    DocumentProcessingError,
    QueueConnectionError,
    ValidationError,
)


@pytest.fixture
def mock_queue() -> AsyncMock:
    """Provide mock JobQueue."""
    return AsyncMock(spec=JobQueue)


@pytest.fixture
def mock_pipeline() -> AsyncMock:
    """Provide mock DocumentPipeline."""
    return AsyncMock(spec=DocumentPipeline)


@pytest.fixture
def service(session_factory, mock_queue, mock_pipeline) -> IngestionService:
    """Provide IngestionService over the test store."""
    return IngestionService(session_factory, mock_queue, mock_pipeline)


def _job_for(document, retry_count: int = 1) -> IngestionJob:
    return IngestionJob(
        document_id=document.id,
        file_path=document.file_path,
        mime_type=document.mime_type,
        retry_count=retry_count,
    )


class TestEnqueueDocument:
    """Test suite for enqueue_document()."""

    @pytest.mark.asyncio
    async def test_should_create_job_and_push(
        self,
        service: IngestionService,
        mock_queue: AsyncMock,
        session_factory,
        make_document,
    ) -> None:
        # Arrange
        document = await make_document(status=DocumentStatus.PENDING)

        # Act
        job = await service.enqueue_document(document.id)

        # Assert
        async with session_scope(session_factory) as session:
            row = await processing_job_crud.get_latest_for_document(session, document.id)
        assert job.job_id == row.id
        assert job.retry_count == 0
        assert row.status == JobStatus.PENDING
        mock_queue.push.assert_awaited_once_with(job)

    @pytest.mark.asyncio
    async def test_missing_document_should_raise(self, service: IngestionService) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await service.enqueue_document(uuid.uuid4())

        assert exc_info.value.details["field"] == "document_id"

    @pytest.mark.asyncio
    async def test_non_pending_document_should_raise(
        self,
        service: IngestionService,
        mock_queue: AsyncMock,
        make_document,
    ) -> None:
        document = await make_document(status=DocumentStatus.COMPLETED)

        with pytest.raises(ValidationError):
            await service.enqueue_document(document.id)

        mock_queue.push.assert_not_called()

    @pytest.mark.asyncio
    async def test_broker_failure_should_propagate(
        self,
        service: IngestionService,
        mock_queue: AsyncMock,
        make_document,
    ) -> None:
        document = await make_document(status=DocumentStatus.PENDING)
        mock_queue.push.side_effect = QueueConnectionError("connection refused")

        with pytest.raises(QueueConnectionError):
            await service.enqueue_document(document.id)


class TestRequeueDocument:
    """Test suite for requeue_document()."""

    @pytest.mark.asyncio
    async def test_failed_document_should_return_to_pending(
        self,
        service: IngestionService,
        mock_queue: AsyncMock,
        session_factory,
        make_document,
    ) -> None:
        # Arrange
        document = await make_document(status=DocumentStatus.FAILED)

        # Act
        requeued = await service.requeue_document(_job_for(document, retry_count=2))

        # Assert
        async with session_scope(session_factory) as session:
            stored = await document_crud.get_by_id(session, document.id)
            row = await processing_job_crud.get_latest_for_document(session, document.id)
        assert requeued is True
        assert stored.status == DocumentStatus.PENDING
        assert row.retry_count == 2
        pushed = mock_queue.push.await_args.args[0]
        assert pushed.job_id == row.id
        assert pushed.retry_count == 2

    @pytest.mark.asyncio
    async def test_existing_job_row_should_be_reused(
        self,
        service: IngestionService,
        session_factory,
        make_document,
    ) -> None:
        # Arrange
        document = await make_document(status=DocumentStatus.FAILED)
        async with session_scope(session_factory) as session:
            row = await processing_job_crud.create_for_document(session, document.id)
            await processing_job_crud.mark_failed(session, row.id, "boom", 1)
        job = _job_for(document).model_copy(update={"job_id": row.id})

        # Act
        await service.requeue_document(job)

        # Assert
        async with session_scope(session_factory) as session:
            stored = await processing_job_crud.get_by_id(session, row.id)
        assert stored.status == JobStatus.PENDING
        assert stored.retry_count == 1

    @pytest.mark.asyncio
    async def test_completed_document_should_not_be_requeued(
        self,
        service: IngestionService,
        mock_queue: AsyncMock,
        make_document,
    ) -> None:
        document = await make_document(status=DocumentStatus.COMPLETED)

        requeued = await service.requeue_document(_job_for(document))

        assert requeued is False
        mock_queue.push.assert_not_called()

    @pytest.mark.asyncio
    async def test_recently_updated_document_should_not_be_requeued(
        self,
        service: IngestionService,
        mock_queue: AsyncMock,
        make_document,
    ) -> None:
        # Arrange
        document = await make_document(status=DocumentStatus.PROCESSING, minutes_ago=1)
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=15)

        # Act
        requeued = await service.requeue_document(
            _job_for(document),
            allowed_from=(DocumentStatus.PROCESSING,),
            stale_before=cutoff,
        )

        # Assert
        assert requeued is False
        mock_queue.push.assert_not_called()


class TestRetryFailed:
    """Test suite for retry_failed()."""

    @pytest.mark.asyncio
    async def test_exhausted_document_should_restart_with_fresh_budget(
        self,
        service: IngestionService,
        mock_queue: AsyncMock,
        session_factory,
        make_document,
    ) -> None:
        # Arrange
        document = await make_document(status=DocumentStatus.FAILED, error_message="gave up")
        async with session_scope(session_factory) as session:
            row = await processing_job_crud.create_for_document(session, document.id)
            await processing_job_crud.mark_failed(session, row.id, "gave up", 4)

        # Act
        requeued = await service.retry_failed()

        # Assert
        async with session_scope(session_factory) as session:
            stored_doc = await document_crud.get_by_id(session, document.id)
            stored_job = await processing_job_crud.get_by_id(session, row.id)
        assert requeued == [document.id]
        assert stored_doc.status == DocumentStatus.PENDING
        assert stored_job.status == JobStatus.PENDING
        assert stored_job.retry_count == 0
        pushed = mock_queue.push.await_args.args[0]
        assert pushed.job_id == row.id
        assert pushed.retry_count == 0

    @pytest.mark.asyncio
    async def test_should_only_touch_failed_documents_up_to_limit(
        self,
        service: IngestionService,
        mock_queue: AsyncMock,
        make_document,
    ) -> None:
        # Arrange
        first = await make_document(status=DocumentStatus.FAILED, minutes_ago=30)
        await make_document(status=DocumentStatus.FAILED, minutes_ago=10)
        await make_document(status=DocumentStatus.COMPLETED)
        await make_document(status=DocumentStatus.PENDING)

        # Act
        requeued = await service.retry_failed(limit=1)

        # Assert
        assert requeued == [first.id]
        assert mock_queue.push.await_count == 1

    @pytest.mark.asyncio
    async def test_no_failed_documents_should_push_nothing(
        self,
        service: IngestionService,
        mock_queue: AsyncMock,
        make_document,
    ) -> None:
        await make_document(status=DocumentStatus.COMPLETED)

        assert await service.retry_failed() == []
        mock_queue.push.assert_not_called()


class TestClearFailedJobs:
    """Test suite for clear_failed_jobs()."""

    @pytest.mark.asyncio
    async def test_should_delete_failed_jobs_older_than_a_day(
        self,
        service: IngestionService,
        session_factory,
        make_document,
    ) -> None:
        # Arrange
        document = await make_document(status=DocumentStatus.FAILED)
        now = datetime.now(timezone.utc)
        async with session_scope(session_factory) as session:
            old = await processing_job_crud.create_for_document(session, document.id)
            recent = await processing_job_crud.create_for_document(session, document.id)
            await processing_job_crud.mark_failed(session, old.id, "boom", 4)
            await processing_job_crud.mark_failed(session, recent.id, "boom", 1)
            await processing_job_crud.update_by_id(
                session, old.id, created_at=now - timedelta(hours=30)
            )

        # Act
        deleted = await service.clear_failed_jobs(now=now)

        # Assert
        async with session_scope(session_factory) as session:
            assert await processing_job_crud.get_by_id(session, old.id) is None
            assert await processing_job_crud.get_by_id(session, recent.id) is not None
            stored_doc = await document_crud.get_by_id(session, document.id)
        assert deleted == 1
        assert stored_doc.status == DocumentStatus.FAILED


class TestReprocessMissingEmbeddings:
    """Test suite for reprocess_missing_embeddings()."""

    @pytest.mark.asyncio
    async def test_should_embed_and_record_job(
        self,
        service: IngestionService,
        mock_pipeline: AsyncMock,
        session_factory,
        make_document,
    ) -> None:
        # Arrange
        document = await make_document(status=DocumentStatus.COMPLETED, chunk_count=3)
        mock_pipeline.embed_missing.return_value = PipelineResult(
            document_id=document.id, chunk_count=3, embedded_count=2, processing_time_ms=4.0
        )

        # Act
        result = await service.reprocess_missing_embeddings(document.id)

        # Assert
        async with session_scope(session_factory) as session:
            row = await processing_job_crud.get_latest_for_document(
                session, document.id, job_type=JobType.EMBEDDING_REPROCESS
            )
        assert result.embedded_count == 2
        assert row.status == JobStatus.COMPLETED
        mock_pipeline.embed_missing.assert_awaited_once_with(document.id)

    @pytest.mark.asyncio
    async def test_incomplete_document_should_raise(
        self,
        service: IngestionService,
        mock_pipeline: AsyncMock,
        make_document,
    ) -> None:
        document = await make_document(status=DocumentStatus.PROCESSING)

        with pytest.raises(ValidationError):
            await service.reprocess_missing_embeddings(document.id)

        mock_pipeline.embed_missing.assert_not_called()

    @pytest.mark.asyncio
    async def test_without_pipeline_should_raise(
        self,
        session_factory,
        mock_queue: AsyncMock,
    ) -> None:
        service = IngestionService(session_factory, mock_queue)

        with pytest.raises(DocumentProcessingError):
            await service.reprocess_missing_embeddings(uuid.uuid4())
