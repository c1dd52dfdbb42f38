"""
Operational statistics service.

Aggregates document, chunk, job and query statistics plus live worker
pool counters, and lists recent processing jobs for the queue view.

Dependencies: docsearch.boundary.db, docsearch.boundary.queue
System role: Admin statistics
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy.ext.asyncio import async_sessionmaker

from docsearch.boundary.db.connection import session_scope
from docsearch.boundary.db.CRUD.chunk_crud import chunk_crud
from docsearch.boundary.db.CRUD.document_crud import document_crud
from docsearch.boundary.db.CRUD.processing_job_crud import processing_job_crud
from docsearch.boundary.db.CRUD.search_query_crud import search_query_crud
from docsearch.boundary.db.schema_probe import SchemaCapabilities
from docsearch.boundary.queue.job_queue import JobQueue
from docsearch.core.exceptions import QueueConnectionError
from docsearch.models.stats import (
    ChunkStats,
    DocumentStats,
    JobStats,
    JobSummary,
    QueryStats,
    QueueStatus,
    SystemStats,
    WorkerStats,
)

logger = logging.getLogger(__name__)

QUERY_STATS_WINDOW = timedelta(days=7)
RECENT_JOBS_LIMIT = 20


class StatsService:
    """Build SystemStats snapshots."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        capabilities: SchemaCapabilities,
        max_retries: int,
        queue: JobQueue | None = None,
        worker_snapshot: Callable[[], WorkerStats] | None = None,
    ) -> None:
        """
        Initialize stats service.

        Args:
            session_factory: Async session factory
            capabilities: Probed schema capabilities
            max_retries: Jobs failed beyond this retry count count as exhausted
            queue: Job queue, for the waiting-job count
            worker_snapshot: Callable returning live worker counters
        """
        self._session_factory = session_factory
        self._capabilities = capabilities
        self._max_retries = max_retries
        self._queue = queue
        self._worker_snapshot = worker_snapshot

    async def get_stats(self, now: datetime | None = None) -> SystemStats:
        """
        Collect statistics.

        Query statistics cover the last seven days. embedded_chunks is None
        when the chunk store has no embedding column.
        """
        since = (now or datetime.now(timezone.utc)) - QUERY_STATS_WINDOW

        async with session_scope(self._session_factory) as session:
            status_counts = await document_crud.count_by_status(session)
            chunk_stats = await chunk_crud.get_stats(
                session, include_embedded=self._capabilities.has_embedding
            )
            failed_jobs = await processing_job_crud.count_failed(session)
            exhausted_jobs = await processing_job_crud.count_failed(
                session, min_retry_count=self._max_retries + 1
            )
            query_stats = await search_query_crud.stats_since(session, since)

        queue_length = await self._queue_length()

        return SystemStats(
            documents=DocumentStats(total=sum(status_counts.values()), **status_counts),
            chunks=ChunkStats(**chunk_stats),
            jobs=JobStats(failed_jobs=failed_jobs, exhausted_jobs=exhausted_jobs),
            queries=QueryStats(**query_stats),
            workers=self._worker_snapshot() if self._worker_snapshot else None,
            queue_length=queue_length,
        )

    async def get_queue_status(self, limit: int = RECENT_JOBS_LIMIT) -> QueueStatus:
        """Queue backlog plus the newest processing jobs with progress and errors."""
        async with session_scope(self._session_factory) as session:
            jobs = await processing_job_crud.get_recent(session, limit=limit)
            recent = [
                JobSummary(
                    id=job.id,
                    document_id=job.document_id,
                    job_type=job.job_type.value,
                    status=job.status.value,
                    progress=job.progress,
                    retry_count=job.retry_count,
                    error_message=job.error_message,
                    created_at=job.created_at,
                    started_at=job.started_at,
                    completed_at=job.completed_at,
                )
                for job in jobs
            ]

        return QueueStatus(queue_length=await self._queue_length(), recent_jobs=recent)

    async def _queue_length(self) -> int | None:
        if self._queue is None:
            return None
        try:
            return await self._queue.length()
        except QueueConnectionError as e:
            logger.warning(f"{__name__}:_queue_length - Queue length unavailable: {e.message}")
            return None
