"""
Database models package.

Exports:
  - DocumentModel, DocumentStatus: Uploaded document and lifecycle enum
  - ChunkModel: Searchable text fragment with optional embedding
  - ProcessingJobModel, JobStatus, JobType: Ingestion job tracking
  - SearchQueryModel: Append-only search analytics

Dependencies: sqlalchemy, docsearch.boundary.db.base
System role: Database model definitions for domain entities
"""

from docsearch.boundary.db.models.document_model import DocumentModel, DocumentStatus
from docsearch.boundary.db.models.chunk_model import ChunkModel
from docsearch.boundary.db.models.processing_job_model import (
    JobStatus,
    JobType,
    ProcessingJobModel,
)
from docsearch.boundary.db.models.search_query_model import SearchQueryModel

__all__ = [
    "DocumentModel",
    "DocumentStatus",
    "ChunkModel",
    "ProcessingJobModel",
    "JobStatus",
    "JobType",
    "SearchQueryModel",
]
