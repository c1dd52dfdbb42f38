"""
Search schemas.

Request/response contracts for lexical, semantic and hybrid search.

Dependencies: pydantic
System role: Search API contracts
"""

from uuid import UUID

from pydantic import Field

from docsearch.core.retrieval.models import SearchResult, SearchType
from docsearch.models.common import CamelModel


class SearchRequest(CamelModel):
    """Request schema for every search strategy."""

    query: str = Field(min_length=1, description="Free-text query")
    limit: int = Field(default=10, ge=1, le=100, description="Maximum results")
    document_ids: list[UUID] | None = Field(default=None, description="Restrict to these documents")
    threshold: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Similarity floor for semantic/hybrid search",
    )


class SearchResultItem(CamelModel):
    """One ranked chunk on the wire."""

    chunk_id: UUID
    document_id: UUID
    chunk_index: int
    content: str
    page_number: int | None = None
    section_title: str | None = None
    filename: str
    score: float
    search_type: SearchType

    @classmethod
    def from_result(cls, result: SearchResult) -> "SearchResultItem":
        return cls(**result.model_dump())


class SearchResponse(CamelModel):
    """Response schema for every search strategy."""

    results: list[SearchResultItem] = Field(default_factory=list)
    total_results: int = 0
    execution_time: int = Field(default=0, description="Milliseconds")
    search_type: SearchType
    message: str | None = Field(default=None, description="Why results are empty or degraded")
    search_types: dict[str, bool] | None = Field(
        default=None,
        description="Hybrid only: which sub-searches succeeded",
    )
    fallback_used: bool = False
