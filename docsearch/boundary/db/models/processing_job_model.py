"""
Processing job ORM model.

Tracks one ingestion attempt chain per document: status, progress and
how many times the document has been requeued.

Dependencies: sqlalchemy, docsearch.boundary.db.base
System role: Job tracking for the ingestion worker pool
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from docsearch.boundary.db.base import Base, TimestampMixin, UUIDMixin, enum_values


class JobType(str, enum.Enum):
    """Job type enum."""

    DOCUMENT_PROCESSING = "document_processing"
    EMBEDDING_REPROCESS = "embedding_reprocess"


class JobStatus(str, enum.Enum):
    """Job status enum."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ProcessingJobModel(Base, UUIDMixin, TimestampMixin):
    """
    Processing job ORM model.

    Attributes:
        id: UUID primary key
        document_id: Document being processed (cascade delete)
        job_type: Job classification
        status: Job execution status
        retry_count: Number of requeues so far
        progress: Progress percentage (0-100)
        error_message: Last failure description
        started_at: When a worker claimed the job
        completed_at: When the job finished successfully
        created_at: Timestamp of job creation
        updated_at: Timestamp of last status update
    """

    __tablename__ = "processing_jobs"

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    job_type: Mapped[JobType] = mapped_column(
        Enum(JobType, native_enum=False, length=32, values_callable=enum_values),
        nullable=False,
        default=JobType.DOCUMENT_PROCESSING,
    )

    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, native_enum=False, values_callable=enum_values),
        nullable=False,
        default=JobStatus.PENDING,
    )

    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    progress: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Progress percentage (0-100)",
    )

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
