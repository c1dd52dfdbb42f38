"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), session_scope(): Connection management
  - SchemaCapabilities, probe_schema_capabilities(): Startup schema probe
  - DocumentModel, ChunkModel, ProcessingJobModel, SearchQueryModel: Domain entities
  - DocumentStatus, JobStatus, JobType: Enum types for state tracking
  - document_crud, chunk_crud, processing_job_crud, search_query_crud: CRUD singletons

Dependencies: sqlalchemy, docsearch.configs
System role: Relational store adapter for documents, chunks, jobs and analytics
"""

from docsearch.boundary.db.base import Base, TimestampMixin, UUIDMixin
from docsearch.boundary.db.connection import (
    get_async_engine,
    get_async_session_factory,
    session_scope,
)
from docsearch.boundary.db.schema_probe import SchemaCapabilities, probe_schema_capabilities
from docsearch.boundary.db.models import (
    ChunkModel,
    DocumentModel,
    DocumentStatus,
    JobStatus,
    JobType,
    ProcessingJobModel,
    SearchQueryModel,
)
from docsearch.boundary.db.CRUD import (
    chunk_crud,
    document_crud,
    processing_job_crud,
    search_query_crud,
)

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Connection
    "get_async_engine",
    "get_async_session_factory",
    "session_scope",
    # Schema
    "SchemaCapabilities",
    "probe_schema_capabilities",
    # Models
    "DocumentModel",
    "DocumentStatus",
    "ChunkModel",
    "ProcessingJobModel",
    "JobStatus",
    "JobType",
    "SearchQueryModel",
    # CRUD singletons
    "document_crud",
    "chunk_crud",
    "processing_job_crud",
    "search_query_crud",
]
