"""
Document CRUD operations.

Provides status transitions for documents guarded by the current status,
plus the stale-document query used by stuck-job recovery. Both are built
on lightweight table()/column() constructs so that they only name columns
the schema probe reported.

Dependencies: sqlalchemy, docsearch.boundary.db.models.document_model
System role: Document persistence operations for ingestion tracking
"""

from datetime import datetime
from typing import Iterable, Sequence
from uuid import UUID

from sqlalchemy import (
    DateTime,
    Integer,
    String,
    TableClause,
    Text,
    Uuid,
    column,
    func,
    select,
    table,
    update,
)
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from docsearch.boundary.db.base import utcnow
from docsearch.boundary.db.CRUD.base_crud import BaseCRUD
from docsearch.boundary.db.models.document_model import DocumentModel, DocumentStatus
from docsearch.boundary.db.schema_probe import SchemaCapabilities

FULL_SCHEMA = SchemaCapabilities()


def _documents_table(capabilities: SchemaCapabilities, *extra: str) -> TableClause:
    columns = [column("id", Uuid(as_uuid=True)), column("status", String)]
    if capabilities.timestamp_column is not None:
        columns.append(column(capabilities.timestamp_column, DateTime(timezone=True)))
    column_types = {
        "chunk_count": Integer,
        "error_message": Text,
        "file_path": String,
        "mime_type": String,
    }
    columns.extend(column(name, column_types[name]) for name in extra)
    return table("documents", *columns)


class DocumentCRUD(BaseCRUD[DocumentModel]):
    """
    CRUD operations for DocumentModel.

    Every status change is a conditional UPDATE: it only applies when the
    document is currently in one of the allowed source states, which makes
    duplicate queue deliveries and racing workers harmless.
    """

    def __init__(self) -> None:
        """Initialize DocumentCRUD with DocumentModel."""
        super().__init__(DocumentModel)

    async def transition_status(
        self,
        session: AsyncSession,
        id: UUID,
        to_status: DocumentStatus,
        allowed_from: Iterable[DocumentStatus],
        updated_before: datetime | None = None,
        capabilities: SchemaCapabilities = FULL_SCHEMA,
        **fields,
    ) -> Row | None:
        """
        Move a document to a new status if it is in an allowed state.

        The probed timestamp column is refreshed and used for the
        updated_before guard. error_message is dropped from fields when
        the schema has no such column.

        Args:
            session: Async database session
            id: Document UUID
            to_status: Target status
            allowed_from: States the document may currently be in
            updated_before: Only apply if the timestamp is older than this
            capabilities: Probed schema capabilities
            **fields: Additional columns to set (chunk_count, error_message)

        Returns:
            Row with id, status, the timestamp and the columns set, or None
            if the document is missing, in a state outside allowed_from, or
            updated too recently
        """
        if not capabilities.has_error_message:
            fields.pop("error_message", None)
        ts_name = capabilities.timestamp_column
        documents = _documents_table(capabilities, *fields)

        stmt = (
            update(documents)
            .where(documents.c.id == id)
            .where(documents.c.status.in_([status.value for status in allowed_from]))
        )
        values = {"status": to_status.value, **fields}
        if ts_name is not None:
            values[ts_name] = utcnow()
            if updated_before is not None:
                stmt = stmt.where(documents.c[ts_name] < updated_before)
        stmt = stmt.values(**values).returning(*documents.c)
        result = await session.execute(stmt)
        return result.first()

    async def mark_processing(
        self,
        session: AsyncSession,
        id: UUID,
        capabilities: SchemaCapabilities = FULL_SCHEMA,
    ) -> Row | None:
        """
        Claim a pending document for processing.

        Returns:
            Updated row, or None if the document is not pending
        """
        return await self.transition_status(
            session,
            id,
            DocumentStatus.PROCESSING,
            allowed_from=(DocumentStatus.PENDING,),
            capabilities=capabilities,
            error_message=None,
        )

    async def mark_completed(
        self,
        session: AsyncSession,
        id: UUID,
        chunk_count: int,
        capabilities: SchemaCapabilities = FULL_SCHEMA,
    ) -> Row | None:
        """Mark a processing document completed with its chunk count."""
        return await self.transition_status(
            session,
            id,
            DocumentStatus.COMPLETED,
            allowed_from=(DocumentStatus.PROCESSING,),
            capabilities=capabilities,
            chunk_count=chunk_count,
            error_message=None,
        )

    async def mark_failed(
        self,
        session: AsyncSession,
        id: UUID,
        error_message: str,
        capabilities: SchemaCapabilities = FULL_SCHEMA,
    ) -> Row | None:
        """Mark a pending or processing document failed."""
        return await self.transition_status(
            session,
            id,
            DocumentStatus.FAILED,
            allowed_from=(DocumentStatus.PENDING, DocumentStatus.PROCESSING),
            capabilities=capabilities,
            error_message=error_message[:2000],
        )

    async def reset_to_pending(
        self,
        session: AsyncSession,
        id: UUID,
        allowed_from: Iterable[DocumentStatus] = (
            DocumentStatus.PENDING,
            DocumentStatus.PROCESSING,
            DocumentStatus.FAILED,
        ),
        updated_before: datetime | None = None,
        capabilities: SchemaCapabilities = FULL_SCHEMA,
        error_message: str | None = None,
    ) -> Row | None:
        """
        Return a document to pending for another attempt.

        Refreshes the timestamp so the stuck-job monitor does not pick the
        document up again immediately. error_message, when given, records
        why the previous attempt failed.
        """
        fields = {}
        if error_message is not None:
            fields["error_message"] = error_message[:2000]
        return await self.transition_status(
            session,
            id,
            DocumentStatus.PENDING,
            allowed_from=allowed_from,
            updated_before=updated_before,
            capabilities=capabilities,
            **fields,
        )

    async def get_by_status(
        self,
        session: AsyncSession,
        status: DocumentStatus,
        limit: int | None = None,
    ) -> Sequence[DocumentModel]:
        """
        Retrieve documents by processing status.

        Args:
            session: Async database session
            status: Status to filter by
            limit: Maximum number of documents to return

        Returns:
            Sequence of DocumentModels ordered by upload time
        """
        stmt = (
            select(DocumentModel)
            .where(DocumentModel.status == status)
            .order_by(DocumentModel.uploaded_at)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_by_status(self, session: AsyncSession) -> dict[str, int]:
        """
        Count documents grouped by status.

        Returns:
            dict: status value -> count, with every status present
        """
        stmt = select(DocumentModel.status, func.count()).group_by(DocumentModel.status)
        result = await session.execute(stmt)
        counts = {status.value: 0 for status in DocumentStatus}
        for status, count in result.all():
            key = status.value if isinstance(status, DocumentStatus) else str(status)
            counts[key] = count
        return counts

    async def find_stale(
        self,
        session: AsyncSession,
        capabilities: SchemaCapabilities,
        cutoff: datetime,
        limit: int,
    ) -> Sequence[Row]:
        """
        Find pending/processing documents not touched since cutoff.

        Built with lightweight table()/column() constructs so that only
        columns reported by the schema probe are referenced.

        Args:
            session: Async database session
            capabilities: Probed schema capabilities
            cutoff: Documents with an older timestamp are stale
            limit: Maximum rows, oldest first

        Returns:
            Rows with id, status, timestamp and, when present, file_path
            and mime_type. Empty when no timestamp column exists.
        """
        ts_name = capabilities.timestamp_column
        if ts_name is None:
            return []

        extra = [
            name
            for name, present in (
                ("file_path", capabilities.has_file_path),
                ("mime_type", capabilities.has_mime_type),
            )
            if present
        ]
        documents = _documents_table(capabilities, *extra)
        ts_col = documents.c[ts_name]
        stmt = (
            select(*documents.c)
            .where(
                documents.c.status.in_(
                    [DocumentStatus.PENDING.value, DocumentStatus.PROCESSING.value]
                )
            )
            .where(ts_col < cutoff)
            .order_by(ts_col.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.all()


document_crud = DocumentCRUD()
