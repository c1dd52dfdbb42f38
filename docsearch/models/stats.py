"""
Operational statistics and health schemas.

Dependencies: pydantic
System role: Admin API contracts
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from docsearch.models.common import CamelModel


class DocumentStats(CamelModel):
    """Document counts by status."""

    total: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0


class ChunkStats(CamelModel):
    """Chunk totals."""

    total_chunks: int = 0
    embedded_chunks: int | None = Field(default=None, description="None without an embedding column")
    avg_chunk_length: float = 0.0


class JobStats(CamelModel):
    """Failed job counts."""

    failed_jobs: int = 0
    exhausted_jobs: int = 0


class QueryStats(CamelModel):
    """Search activity over the last seven days."""

    total_queries: int = 0
    avg_execution_time_ms: float = 0.0
    avg_results_count: float = 0.0


class WorkerStats(CamelModel):
    """In-process worker pool counters."""

    running: bool = False
    active_jobs: int = 0
    processed: int = 0
    failed: int = 0
    requeued: int = 0
    exhausted: int = 0
    invalid_payloads: int = 0


class SystemStats(CamelModel):
    """Aggregate operational statistics."""

    documents: DocumentStats
    chunks: ChunkStats
    jobs: JobStats
    queries: QueryStats
    workers: WorkerStats | None = None
    queue_length: int | None = None


class JobSummary(CamelModel):
    """One processing job as listed in the queue view."""

    id: UUID
    document_id: UUID
    job_type: str
    status: str
    progress: int = 0
    retry_count: int = 0
    error_message: str | None = None
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


class QueueStatus(CamelModel):
    """Queue backlog and the most recent processing jobs."""

    queue_length: int | None = None
    recent_jobs: list[JobSummary] = Field(default_factory=list)


class HealthStatus(CamelModel):
    """Dependency health."""

    status: Literal["healthy", "degraded"]
    checks: dict[str, bool] = Field(default_factory=dict)
