"""
Document ingestion task.

Runs one queued job: claim -> extract -> chunk -> store -> embed -> update
status, with bounded requeueing on failure.

Dependencies: docsearch.application, docsearch.boundary, docsearch.core
System role: Per-job document processing for the worker pool
"""

import asyncio
import enum
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docsearch.application.services.ingestion_service import IngestionService
from docsearch.boundary.db.connection import session_scope
from docsearch.boundary.db.CRUD.document_crud import document_crud
from docsearch.boundary.db.CRUD.processing_job_crud import processing_job_crud
from docsearch.boundary.db.models.document_model import DocumentStatus
from docsearch.boundary.db.models.processing_job_model import ProcessingJobModel
from docsearch.boundary.db.schema_probe import SchemaCapabilities
from docsearch.core.document_processing.entrypoint import DocumentPipeline
from docsearch.core.document_processing.models import IngestionJob
from docsearch.core.exceptions import JobExhaustedError
from docsearch.observability.correlation import clear_correlation_id, set_correlation_id
from docsearch.observability.log_utils import log_exception_with_context
from docsearch.workers.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)


class TaskOutcome(str, enum.Enum):
    """How a job ended."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    REQUEUED = "requeued"
    EXHAUSTED = "exhausted"


class DocumentIngestionTask:
    """
    Process a single IngestionJob.

    Usage:
        task = DocumentIngestionTask(session_factory, pipeline, ingestion_service, policy)
        outcome = await task.run(job)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        pipeline: DocumentPipeline,
        ingestion_service: IngestionService,
        retry_policy: RetryPolicy,
        capabilities: SchemaCapabilities | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._pipeline = pipeline
        self._ingestion_service = ingestion_service
        self._retry_policy = retry_policy
        self._capabilities = capabilities or SchemaCapabilities()

    async def run(self, job: IngestionJob) -> TaskOutcome:
        """
        Run a job to completion, requeue or exhaustion.

        Steps:
        1. Move the document pending -> processing and claim its job row
           (documents in any other state are duplicate deliveries: skipped)
        2. Extract, chunk, store and embed through the pipeline
        3. Mark document and job completed
        On failure: retry_count = previous + 1 and the job row is failed.
        While the retry policy allows it the document returns to pending
        at once and is pushed again after the backoff; otherwise the
        document is failed.
        On cancellation: document and job are reset to pending.

        Args:
            job: Queue payload

        Returns:
            TaskOutcome: How the job ended

        Raises:
            QueueConnectionError: Requeue could not reach the broker
        """
        set_correlation_id(f"doc-{job.document_id.hex[:8]}-r{job.retry_count}")
        job_id: UUID | None = None
        try:
            async with session_scope(self._session_factory) as session:
                document = await document_crud.mark_processing(
                    session, job.document_id, capabilities=self._capabilities
                )
                if document is None:
                    await self._log_skip(session, job)
                    return TaskOutcome.SKIPPED
                job_row = await self._resolve_job_row(session, job)
                await processing_job_crud.claim(session, job_row.id)
                job_id = job_row.id

            logger.info(
                f"{__name__}:run - Processing document",
                extra={"document_id": str(job.document_id), "mime_type": job.mime_type},
            )
            result = await self._pipeline.process(
                job.document_id, job.file_path, job.mime_type, job_id=job_id
            )

            async with session_scope(self._session_factory) as session:
                await document_crud.mark_completed(
                    session, job.document_id, result.chunk_count, capabilities=self._capabilities
                )
                await processing_job_crud.mark_completed(session, job_id)

            logger.info(
                f"{__name__}:run - Document completed",
                extra={
                    "document_id": str(job.document_id),
                    "chunk_count": result.chunk_count,
                    "embedded": result.embedded_count,
                },
            )
            return TaskOutcome.COMPLETED

        except asyncio.CancelledError:
            await asyncio.shield(self._reset_after_cancel(job.document_id, job_id))
            raise
        except Exception as e:
            return await self._handle_failure(job, job_id, e)
        finally:
            clear_correlation_id()

    async def _resolve_job_row(
        self,
        session: AsyncSession,
        job: IngestionJob,
    ) -> ProcessingJobModel:
        if job.job_id is not None:
            row = await processing_job_crud.get_by_id(session, job.job_id)
            if row is not None and row.document_id == job.document_id:
                return row
        row = await processing_job_crud.get_latest_for_document(session, job.document_id)
        if row is not None:
            return row
        return await processing_job_crud.create_for_document(
            session, job.document_id, retry_count=job.retry_count
        )

    async def _log_skip(self, session: AsyncSession, job: IngestionJob) -> None:
        document = await document_crud.get_by_id(session, job.document_id)
        status = document.status.value if document is not None else "missing"
        logger.info(
            f"{__name__}:run - Skipping job, document is {status}",
            extra={"document_id": str(job.document_id), "status": status},
        )

    async def _handle_failure(
        self,
        job: IngestionJob,
        job_id: UUID | None,
        error: Exception,
    ) -> TaskOutcome:
        retry_count = job.retry_count + 1
        message = str(error) or type(error).__name__
        log_exception_with_context(
            logger,
            f"{__name__}:run - Document processing failed",
            error,
            document_id=job.document_id,
            retry_count=retry_count,
        )

        if not self._retry_policy.should_retry(retry_count):
            async with session_scope(self._session_factory) as session:
                await document_crud.mark_failed(
                    session, job.document_id, message, capabilities=self._capabilities
                )
                if job_id is not None:
                    await processing_job_crud.mark_failed(session, job_id, message, retry_count)
            exhausted = JobExhaustedError(str(job.document_id), retry_count)
            logger.error(f"{__name__}:run - {exhausted.message}", extra=exhausted.details)
            return TaskOutcome.EXHAUSTED

        # Retry due: the document goes straight back to pending and the job
        # row already holds the new retry count, before any backoff.
        async with session_scope(self._session_factory) as session:
            await document_crud.reset_to_pending(
                session,
                job.document_id,
                allowed_from=(DocumentStatus.PROCESSING,),
                capabilities=self._capabilities,
                error_message=message,
            )
            if job_id is not None:
                await processing_job_crud.mark_failed(session, job_id, message, retry_count)

        delay = self._retry_policy.delay_for(retry_count)
        try:
            if delay > 0:
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            logger.warning(
                f"{__name__}:run - Cancelled during retry backoff, document left pending",
                extra={"document_id": str(job.document_id), "retry_count": retry_count},
            )
            raise

        requeued = await self._ingestion_service.requeue_document(
            job.with_retry(retry_count).model_copy(update={"job_id": job_id}),
            allowed_from=(DocumentStatus.PENDING,),
        )
        return TaskOutcome.REQUEUED if requeued else TaskOutcome.SKIPPED

    async def _reset_after_cancel(self, document_id: UUID, job_id: UUID | None) -> None:
        try:
            async with session_scope(self._session_factory) as session:
                await document_crud.reset_to_pending(
                    session,
                    document_id,
                    allowed_from=(DocumentStatus.PROCESSING,),
                    capabilities=self._capabilities,
                )
                if job_id is not None:
                    await processing_job_crud.reset_to_pending(session, job_id)
        except Exception as e:
            logger.error(
                f"{__name__}:run - Failed to reset cancelled job: {e}",
                extra={"document_id": str(document_id)},
            )
        else:
            logger.warning(
                f"{__name__}:run - Job cancelled, document reset to pending",
                extra={"document_id": str(document_id)},
            )
