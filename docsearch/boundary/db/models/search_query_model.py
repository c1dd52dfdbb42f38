"""
Search query ORM model.

Append-only analytics record written after each search.

Dependencies: sqlalchemy, docsearch.boundary.db.base
System role: Search analytics persistence
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from docsearch.boundary.db.base import Base, UUIDMixin, utcnow


class SearchQueryModel(Base, UUIDMixin):
    """
    Search query ORM model.

    Attributes:
        query_text: Raw query string
        search_type: text, semantic or hybrid
        document_filter: Document ids the search was restricted to, if any
        results_count: Number of results returned
        execution_time_ms: Wall-clock search time
        created_at: When the search ran (UTC)
    """

    __tablename__ = "search_queries"

    query_text: Mapped[str] = mapped_column(Text, nullable=False)

    search_type: Mapped[str] = mapped_column(String(32), nullable=False)

    document_filter: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    results_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    execution_time_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )
