"""
Ingestion service.

Enqueues documents for processing and owns the single requeue path used
by both worker retries and stuck-job recovery.

Dependencies: docsearch.boundary.db, docsearch.boundary.queue,
    docsearch.core.document_processing
System role: Ingestion orchestration
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from docsearch.boundary.db.connection import session_scope
from docsearch.boundary.db.CRUD.document_crud import document_crud
from docsearch.boundary.db.CRUD.processing_job_crud import processing_job_crud
from docsearch.boundary.db.models.document_model import DocumentStatus
from docsearch.boundary.db.models.processing_job_model import JobType
from docsearch.boundary.db.schema_probe import SchemaCapabilities
from docsearch.boundary.queue.job_queue import JobQueue
from docsearch.core.document_processing.entrypoint import DocumentPipeline
from docsearch.core.document_processing.models import IngestionJob, PipelineResult
from docsearch.core.exceptions import DocumentProcessingError, ValidationError

logger = logging.getLogger(__name__)

FAILED_JOB_RETENTION = timedelta(hours=24)


class IngestionService:
    """
    Ingestion orchestration.

    Handles enqueueing, bounded requeueing, operator retries of failed
    documents and embedding reprocessing.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        queue: JobQueue,
        pipeline: DocumentPipeline | None = None,
        capabilities: SchemaCapabilities | None = None,
    ) -> None:
        """
        Initialize ingestion service.

        Args:
            session_factory: Async session factory
            queue: Job queue to push to
            pipeline: Pipeline used for embedding reprocessing
            capabilities: Probed schema capabilities for document writes
        """
        self._session_factory = session_factory
        self._queue = queue
        self._pipeline = pipeline
        self._capabilities = capabilities or SchemaCapabilities()

    async def enqueue_document(self, document_id: UUID) -> IngestionJob:
        """
        Create a processing job for an uploaded document and queue it.

        Steps:
        1. Load the document (must exist and be pending)
        2. Create a pending ProcessingJob
        3. Push the job payload onto the queue

        Args:
            document_id: Uploaded document

        Returns:
            IngestionJob: Queued payload

        Raises:
            ValidationError: Document missing or not pending
            QueueConnectionError: Broker unreachable
        """
        async with session_scope(self._session_factory) as session:
            document = await document_crud.get_by_id(session, document_id)
            if document is None:
                raise ValidationError(
                    f"Document {document_id} does not exist",
                    field="document_id",
                )
            if document.status != DocumentStatus.PENDING:
                raise ValidationError(
                    f"Document {document_id} is {document.status.value}, expected pending",
                    field="document_id",
                    details={"status": document.status.value},
                )
            job_row = await processing_job_crud.create_for_document(session, document_id)
            job = IngestionJob(
                document_id=document_id,
                file_path=document.file_path,
                mime_type=document.mime_type,
                job_id=job_row.id,
            )

        await self._queue.push(job)
        logger.info(
            f"{__name__}:enqueue_document - Document queued",
            extra={"document_id": str(document_id), "job_id": str(job.job_id)},
        )
        return job

    async def requeue_document(
        self,
        job: IngestionJob,
        allowed_from: Iterable[DocumentStatus] = (DocumentStatus.FAILED,),
        stale_before: datetime | None = None,
    ) -> bool:
        """
        Return a document to pending and push it again.

        The payload's retry_count is written to the job row and carried on
        the queue message. The document update is conditional, so documents
        that completed or changed in the meantime are left alone.

        Args:
            job: Payload to push, already carrying the new retry count
            allowed_from: Document states that may be reset
            stale_before: Only reset if the document timestamp is older than this

        Returns:
            bool: True if the document was reset and the job pushed

        Raises:
            QueueConnectionError: Broker unreachable (the document stays
                pending and is picked up by stuck-job recovery)
        """
        async with session_scope(self._session_factory) as session:
            document = await document_crud.reset_to_pending(
                session,
                job.document_id,
                allowed_from=allowed_from,
                updated_before=stale_before,
                capabilities=self._capabilities,
            )
            if document is None:
                logger.info(
                    f"{__name__}:requeue_document - Document not eligible for requeue",
                    extra={"document_id": str(job.document_id)},
                )
                return False

            job_row = None
            if job.job_id is not None:
                job_row = await processing_job_crud.reset_to_pending(
                    session, job.job_id, retry_count=job.retry_count
                )
            if job_row is None:
                job_row = await processing_job_crud.create_for_document(
                    session, job.document_id, retry_count=job.retry_count
                )
            job = job.model_copy(update={"job_id": job_row.id})

        await self._queue.push(job)
        logger.info(
            f"{__name__}:requeue_document - Requeued document",
            extra={"document_id": str(job.document_id), "retry_count": job.retry_count},
        )
        return True

    async def retry_failed(self, limit: int | None = None) -> list[UUID]:
        """
        Requeue failed documents on operator request.

        This is the only way back for documents whose retries are
        exhausted. Each one starts over with a fresh retry budget and goes
        through requeue_document, so a document that left failed in the
        meantime is skipped.

        Args:
            limit: Maximum documents to requeue, oldest upload first

        Returns:
            list[UUID]: Requeued document ids

        Raises:
            QueueConnectionError: Broker unreachable (documents already
                reset stay pending for stuck-job recovery)
        """
        async with session_scope(self._session_factory) as session:
            documents = await document_crud.get_by_status(
                session, DocumentStatus.FAILED, limit=limit
            )
            jobs = []
            for document in documents:
                latest = await processing_job_crud.get_latest_for_document(session, document.id)
                jobs.append(
                    IngestionJob(
                        document_id=document.id,
                        file_path=document.file_path,
                        mime_type=document.mime_type,
                        job_id=latest.id if latest is not None else None,
                    )
                )

        requeued = []
        for job in jobs:
            if await self.requeue_document(job, allowed_from=(DocumentStatus.FAILED,)):
                requeued.append(job.document_id)

        logger.info(
            f"{__name__}:retry_failed - Retrying failed documents",
            extra={"found": len(jobs), "requeued": len(requeued)},
        )
        return requeued

    async def clear_failed_jobs(
        self,
        older_than: timedelta = FAILED_JOB_RETENTION,
        now: datetime | None = None,
    ) -> int:
        """
        Delete failed job rows created more than older_than ago.

        Documents are not touched; only their job history is pruned.

        Returns:
            int: Number of deleted job rows
        """
        cutoff = (now or datetime.now(timezone.utc)) - older_than
        async with session_scope(self._session_factory) as session:
            deleted = await processing_job_crud.delete_failed_before(session, cutoff)

        logger.info(
            f"{__name__}:clear_failed_jobs - Cleared {deleted} failed jobs",
            extra={"cutoff": cutoff.isoformat()},
        )
        return deleted

    async def reprocess_missing_embeddings(self, document_id: UUID) -> PipelineResult:
        """
        Embed chunks of a completed document that have no embedding.

        Raises:
            ValidationError: Document missing or not completed
            DocumentProcessingError: Service built without a pipeline
        """
        if self._pipeline is None:
            raise DocumentProcessingError(
                "Embedding reprocessing requires a pipeline",
                document_id=str(document_id),
            )

        async with session_scope(self._session_factory) as session:
            document = await document_crud.get_by_id(session, document_id)
            if document is None or document.status != DocumentStatus.COMPLETED:
                raise ValidationError(
                    f"Document {document_id} is not completed",
                    field="document_id",
                )
            job_row = await processing_job_crud.create_for_document(
                session, document_id, job_type=JobType.EMBEDDING_REPROCESS
            )
            await processing_job_crud.claim(session, job_row.id)

        result = await self._pipeline.embed_missing(document_id)

        async with session_scope(self._session_factory) as session:
            await processing_job_crud.mark_completed(session, job_row.id)

        logger.info(
            f"{__name__}:reprocess_missing_embeddings - Reprocessed embeddings",
            extra={
                "document_id": str(document_id),
                "embedded": result.embedded_count,
                "failed": result.failed_embedding_count,
            },
        )
        return result
