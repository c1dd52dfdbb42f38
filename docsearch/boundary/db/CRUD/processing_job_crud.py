"""
Processing job CRUD operations.

Provides job lifecycle updates (claim, progress, completion, failure)
and retry-count bookkeeping for the ingestion worker pool.

Dependencies: sqlalchemy, docsearch.boundary.db.models.processing_job_model
System role: Job persistence operations for ingestion tracking
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docsearch.boundary.db.base import utcnow
from docsearch.boundary.db.CRUD.base_crud import BaseCRUD
from docsearch.boundary.db.models.processing_job_model import (
    JobStatus,
    JobType,
    ProcessingJobModel,
)


class ProcessingJobCRUD(BaseCRUD[ProcessingJobModel]):
    """
    CRUD operations for ProcessingJobModel.

    Extends BaseCRUD with claim/complete/fail transitions, the
    latest-job lookup used when requeueing a document and the admin
    queries over recent and failed jobs.
    """

    def __init__(self) -> None:
        """Initialize ProcessingJobCRUD with ProcessingJobModel."""
        super().__init__(ProcessingJobModel)

    async def create_for_document(
        self,
        session: AsyncSession,
        document_id: UUID,
        job_type: JobType = JobType.DOCUMENT_PROCESSING,
        retry_count: int = 0,
    ) -> ProcessingJobModel:
        """
        Create a pending job for a document.

        Args:
            session: Async database session
            document_id: Document to process
            job_type: Job classification
            retry_count: Initial retry count (non-zero when requeueing)

        Returns:
            Created ProcessingJobModel
        """
        return await self.create(
            session,
            document_id=document_id,
            job_type=job_type,
            status=JobStatus.PENDING,
            retry_count=retry_count,
            progress=0,
        )

    async def get_latest_for_document(
        self,
        session: AsyncSession,
        document_id: UUID,
        job_type: JobType = JobType.DOCUMENT_PROCESSING,
    ) -> ProcessingJobModel | None:
        """Most recently created job of a document and type, if any."""
        stmt = (
            select(ProcessingJobModel)
            .where(ProcessingJobModel.document_id == document_id)
            .where(ProcessingJobModel.job_type == job_type)
            .order_by(ProcessingJobModel.created_at.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def claim(self, session: AsyncSession, id: UUID) -> ProcessingJobModel | None:
        """Mark a job processing and stamp started_at."""
        return await self.update_by_id(
            session,
            id,
            status=JobStatus.PROCESSING,
            started_at=utcnow(),
            progress=0,
            error_message=None,
        )

    async def update_progress(
        self,
        session: AsyncSession,
        id: UUID,
        progress: int,
    ) -> ProcessingJobModel | None:
        """
        Update job progress percentage.

        Args:
            session: Async database session
            id: Job UUID
            progress: Progress percentage (clamped to 0-100)

        Returns:
            Updated ProcessingJobModel if found, None otherwise
        """
        return await self.update_by_id(session, id, progress=max(0, min(100, progress)))

    async def mark_completed(self, session: AsyncSession, id: UUID) -> ProcessingJobModel | None:
        """Mark job completed at 100% progress."""
        return await self.update_by_id(
            session,
            id,
            status=JobStatus.COMPLETED,
            progress=100,
            completed_at=utcnow(),
            error_message=None,
        )

    async def mark_failed(
        self,
        session: AsyncSession,
        id: UUID,
        error_message: str,
        retry_count: int,
    ) -> ProcessingJobModel | None:
        """
        Mark job failed and record its retry count.

        Args:
            session: Async database session
            id: Job UUID
            error_message: Failure description
            retry_count: Retry count after this failure

        Returns:
            Updated ProcessingJobModel if found, None otherwise
        """
        return await self.update_by_id(
            session,
            id,
            status=JobStatus.FAILED,
            error_message=error_message[:2000],
            retry_count=retry_count,
        )

    async def reset_to_pending(
        self,
        session: AsyncSession,
        id: UUID,
        retry_count: int | None = None,
    ) -> ProcessingJobModel | None:
        """Return a job to pending, optionally updating its retry count."""
        fields: dict = {"status": JobStatus.PENDING, "progress": 0, "started_at": None}
        if retry_count is not None:
            fields["retry_count"] = retry_count
        return await self.update_by_id(session, id, **fields)

    async def count_failed(self, session: AsyncSession, min_retry_count: int = 0) -> int:
        """
        Count failed jobs.

        Args:
            session: Async database session
            min_retry_count: Only count jobs at or above this retry count

        Returns:
            int: Number of matching jobs
        """
        stmt = (
            select(func.count(ProcessingJobModel.id))
            .where(ProcessingJobModel.status == JobStatus.FAILED)
            .where(ProcessingJobModel.retry_count >= min_retry_count)
        )
        return int((await session.execute(stmt)).scalar_one())

    async def get_recent(
        self,
        session: AsyncSession,
        limit: int = 20,
    ) -> Sequence[ProcessingJobModel]:
        """Most recently created jobs, newest first."""
        stmt = (
            select(ProcessingJobModel)
            .order_by(ProcessingJobModel.created_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def delete_failed_before(self, session: AsyncSession, cutoff: datetime) -> int:
        """
        Delete failed jobs created before cutoff.

        Returns:
            int: Number of deleted rows
        """
        stmt = (
            delete(ProcessingJobModel)
            .where(ProcessingJobModel.status == JobStatus.FAILED)
            .where(ProcessingJobModel.created_at < cutoff)
            .returning(ProcessingJobModel.id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return len(result.all())


processing_job_crud = ProcessingJobCRUD()
