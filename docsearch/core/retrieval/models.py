"""
Retrieval domain models.

Dependencies: pydantic
System role: Result types shared by the retrieval engine and services
"""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

SearchType = Literal["text", "semantic", "hybrid"]


class SearchResult(BaseModel):
    """One ranked chunk."""

    chunk_id: UUID
    document_id: UUID
    chunk_index: int
    content: str
    page_number: int | None = None
    section_title: str | None = None
    filename: str
    score: float = Field(description="ts_rank for text, cosine similarity for semantic")
    search_type: SearchType


class HybridSearchOutcome(BaseModel):
    """Merged hybrid results and which sub-searches succeeded."""

    results: list[SearchResult] = Field(default_factory=list)
    text_ok: bool = True
    semantic_ok: bool = True
    errors: dict[str, str] = Field(default_factory=dict, description="Sub-search name -> error")


class AssembledContext(BaseModel):
    """Context block handed to the generation prompt."""

    text: str = ""
    used_chunk_ids: list[UUID] = Field(default_factory=list)
    context_used: bool = False
    sources: list[SearchResult] = Field(default_factory=list)
