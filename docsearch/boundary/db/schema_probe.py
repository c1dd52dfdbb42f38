"""
Schema capability probe.

Inspects the live database once at startup and records which optional
columns and features exist, so that recovery and retrieval code can adapt
to older schemas without re-querying information_schema on every call.

Dependencies: sqlalchemy
System role: One-shot schema introspection for adaptive queries
"""

import logging
from dataclasses import dataclass

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

# Preference order for the column that tells when a document last changed
TIMESTAMP_COLUMN_PREFERENCE = ("last_updated", "updated_at", "created_at", "uploaded_at")


@dataclass(frozen=True)
class SchemaCapabilities:
    """
    Immutable snapshot of optional schema features.

    Attributes:
        timestamp_column: Document column used for staleness checks, or None
        has_file_path: documents.file_path exists
        has_mime_type: documents.mime_type exists
        has_error_message: documents.error_message exists
        has_embedding: document_chunks.embedding exists
        full_text_search: Dialect supports to_tsvector/ts_rank
    """

    timestamp_column: str | None = "last_updated"
    has_file_path: bool = True
    has_mime_type: bool = True
    has_error_message: bool = True
    has_embedding: bool = True
    full_text_search: bool = False


def capabilities_from_columns(
    document_columns: set[str],
    chunk_columns: set[str],
    dialect_name: str,
) -> SchemaCapabilities:
    """
    Derive capabilities from column name sets.

    Args:
        document_columns: Column names of the documents table
        chunk_columns: Column names of the document_chunks table
        dialect_name: SQLAlchemy dialect name (postgresql, sqlite, ...)

    Returns:
        SchemaCapabilities: Derived snapshot
    """
    timestamp_column = next(
        (name for name in TIMESTAMP_COLUMN_PREFERENCE if name in document_columns),
        None,
    )
    return SchemaCapabilities(
        timestamp_column=timestamp_column,
        has_file_path="file_path" in document_columns,
        has_mime_type="mime_type" in document_columns,
        has_error_message="error_message" in document_columns,
        has_embedding="embedding" in chunk_columns,
        full_text_search=dialect_name == "postgresql",
    )


async def probe_schema_capabilities(engine: AsyncEngine) -> SchemaCapabilities:
    """
    Inspect the database and return its capabilities.

    Args:
        engine: Async engine to inspect

    Returns:
        SchemaCapabilities: Snapshot consulted for the rest of the process lifetime
    """

    def _columns(sync_conn) -> tuple[set[str], set[str]]:
        inspector = inspect(sync_conn)
        doc_cols: set[str] = set()
        chunk_cols: set[str] = set()
        if inspector.has_table("documents"):
            doc_cols = {c["name"] for c in inspector.get_columns("documents")}
        if inspector.has_table("document_chunks"):
            chunk_cols = {c["name"] for c in inspector.get_columns("document_chunks")}
        return doc_cols, chunk_cols

    async with engine.connect() as conn:
        document_columns, chunk_columns = await conn.run_sync(_columns)

    capabilities = capabilities_from_columns(
        document_columns, chunk_columns, engine.dialect.name
    )

    logger.info(
        f"{__name__}:probe_schema_capabilities - Schema probed",
        extra={
            "timestamp_column": capabilities.timestamp_column,
            "has_embedding": capabilities.has_embedding,
            "full_text_search": capabilities.full_text_search,
        },
    )
    if capabilities.timestamp_column is None:
        logger.warning(
            f"{__name__}:probe_schema_capabilities - No timestamp column on documents; "
            "stuck-job recovery disabled"
        )
    return capabilities
