"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from docsearch.boundary.db.CRUD import document_crud, chunk_crud

    document = await document_crud.get_by_id(db, document_id)
"""

from docsearch.boundary.db.CRUD.base_crud import BaseCRUD
from docsearch.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from docsearch.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud
from docsearch.boundary.db.CRUD.processing_job_crud import (
    ProcessingJobCRUD,
    processing_job_crud,
)
from docsearch.boundary.db.CRUD.search_query_crud import SearchQueryCRUD, search_query_crud

__all__ = [
    "BaseCRUD",
    "DocumentCRUD",
    "document_crud",
    "ChunkCRUD",
    "chunk_crud",
    "ProcessingJobCRUD",
    "processing_job_crud",
    "SearchQueryCRUD",
    "search_query_crud",
]
