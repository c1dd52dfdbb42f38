"""
Fragment domain model for the document processing pipeline.

A chunker output item: a contiguous, size-bounded piece of extracted text
with best-effort metadata hints, before it is stored as a chunk.

Dependencies: pydantic
System role: Data structure passed from chunking to the chunk store
"""

from pydantic import BaseModel, Field


class Fragment(BaseModel):
    """Chunker output with its position and metadata hints."""

    index: int = Field(ge=0, description="0-based position among surviving fragments")
    content: str = Field(min_length=1, description="Trimmed fragment text")
    page_number: int | None = Field(default=None, description="First 'page N' / 'p. N' hint")
    section_title: str | None = Field(default=None, description="Heading guessed from the first lines")
    metadata: dict = Field(
        default_factory=dict,
        description="word_count, has_images, has_tables hints",
    )
