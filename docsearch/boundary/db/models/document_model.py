"""
Document ORM model.

Represents uploaded documents with processing status and metadata.
Tracks the ingestion lifecycle from upload to searchable chunks.

Dependencies: sqlalchemy, docsearch.boundary.db.base
System role: Document persistence for ingestion tracking
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docsearch.boundary.db.base import Base, UUIDMixin, enum_values, utcnow


class DocumentStatus(str, enum.Enum):
    """
    Document processing lifecycle states.

    PENDING: Uploaded or requeued, awaiting a worker
    PROCESSING: A worker is extracting, chunking and embedding
    COMPLETED: Chunks stored and searchable (embeddings may be partial)
    FAILED: Processing error; error_message contains details
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class DocumentModel(Base, UUIDMixin):
    """
    Document ORM model tracking ingestion pipeline state.

    Lifecycle: upload (PENDING) → worker (PROCESSING) → COMPLETED or FAILED.
    FAILED returns to PENDING only through the bounded requeue path;
    PROCESSING returns to PENDING when a stuck or cancelled job is reset.

    Attributes:
        id: UUID primary key
        filename: Stored filename
        original_filename: Name supplied by the uploader, used in citations
        file_path: Location of the raw file on shared storage
        mime_type: Content type used to pick a parser
        status: Current processing state
        chunk_count: Number of stored chunks after completion
        error_message: Null on success; failure description otherwise
        uploaded_at: Upload timestamp (UTC)
        last_updated: Last status change timestamp (UTC)
    """

    __tablename__ = "documents"

    filename: Mapped[str] = mapped_column(String(255), nullable=False)

    original_filename: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Uploader-supplied filename",
    )

    file_path: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        doc="Path of the raw document",
    )

    mime_type: Mapped[str] = mapped_column(String(128), nullable=False)

    status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus, native_enum=False, values_callable=enum_values),
        nullable=False,
        default=DocumentStatus.PENDING,
        index=True,
    )

    chunk_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        doc="Error details if processing failed",
    )

    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    # Relationships
    chunks = relationship(
        "ChunkModel",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
