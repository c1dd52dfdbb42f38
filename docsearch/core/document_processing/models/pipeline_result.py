"""
Pipeline result model for document processing.

Dependencies: pydantic
System role: Return type for DocumentPipeline.process()
"""

from uuid import UUID

from pydantic import BaseModel, Field


class PipelineResult(BaseModel):
    """Result of document processing pipeline execution."""

    document_id: UUID = Field(description="Processed document")
    chunk_count: int = Field(description="Number of chunks stored")
    embedded_count: int = Field(default=0, description="Chunks that received an embedding")
    failed_embedding_count: int = Field(default=0, description="Chunks left without an embedding")
    processing_time_ms: float = Field(description="Total processing time in milliseconds")
