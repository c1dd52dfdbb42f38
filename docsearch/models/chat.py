"""
Chat schemas.

Request/response contracts for context retrieval and grounded answers.

Dependencies: pydantic
System role: Chat API contracts
"""

from typing import Literal
from uuid import UUID

from pydantic import Field

from docsearch.models.common import CamelModel
from docsearch.models.search import SearchResultItem


class ChatContextRequest(CamelModel):
    """Request schema for context retrieval."""

    message: str = Field(min_length=1, description="User message")
    document_ids: list[UUID] | None = None


class ChatContextResponse(CamelModel):
    """Response schema for context retrieval."""

    context_text: str = ""
    used_chunk_ids: list[UUID] = Field(default_factory=list)
    context_used: bool = False


class ChatMessage(CamelModel):
    """Single chat message in history."""

    role: Literal["user", "assistant"] = Field(description="Message role")
    content: str


class ChatRequest(CamelModel):
    """Request schema for a grounded chat answer."""

    message: str = Field(min_length=1)
    document_ids: list[UUID] | None = None
    history: list[ChatMessage] = Field(default_factory=list)


class ChatResponse(CamelModel):
    """Response schema for a grounded chat answer."""

    answer: str
    sources: list[SearchResultItem] = Field(default_factory=list)
    context_used: bool = False
    generated: bool = Field(default=True, description="False when generation failed")
