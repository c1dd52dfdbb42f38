"""
Chunk ORM model.

A searchable fragment of a document's extracted text with an optional
embedding vector stored as a JSON float array.

Dependencies: sqlalchemy, docsearch.boundary.db.base
System role: Chunk persistence for lexical and semantic retrieval
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docsearch.boundary.db.base import Base, UUIDMixin, utcnow

# JSONB on PostgreSQL, plain JSON elsewhere; Python None is stored as SQL NULL
JSONVariant = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")


class ChunkModel(Base, UUIDMixin):
    """
    Chunk ORM model.

    (document_id, chunk_index) is unique; indices are 0-based and contiguous
    per document. A missing embedding is tolerated and simply excluded from
    semantic search.

    Attributes:
        id: UUID primary key
        document_id: Owning document (cascade delete)
        chunk_index: Position within the document
        content: Fragment text (non-empty)
        content_length: len(content)
        embedding: Float vector or None
        page_number: Page hint parsed from the text
        section_title: Heading guessed from the first lines
        chunk_metadata: Extra hints (word_count, has_images, has_tables)
        created_at: Insert timestamp (UTC)
    """

    __tablename__ = "document_chunks"
    __table_args__ = (
        UniqueConstraint("document_id", "chunk_index", name="uq_document_chunk_index"),
    )

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    content_length: Mapped[int] = mapped_column(Integer, nullable=False)

    embedding: Mapped[list[float] | None] = mapped_column(
        JSONVariant,
        nullable=True,
        doc="Embedding vector as a JSON array",
    )

    page_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    section_title: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # "metadata" is reserved on declarative classes
    chunk_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSONVariant,
        nullable=False,
        default=dict,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # Relationships
    document = relationship("DocumentModel", back_populates="chunks")
