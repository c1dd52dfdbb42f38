"""
Chunk CRUD operations.

Persists document fragments and their embeddings and exposes the read
paths used by lexical and semantic retrieval.

Dependencies: sqlalchemy, docsearch.boundary.db.models
System role: Chunk store for ingestion and retrieval
"""

from typing import TYPE_CHECKING, Iterable, Sequence
from uuid import UUID

from sqlalchemy import delete, func, literal, or_, select, update
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from docsearch.boundary.db.CRUD.base_crud import BaseCRUD
from docsearch.boundary.db.models.chunk_model import ChunkModel
from docsearch.boundary.db.models.document_model import DocumentModel, DocumentStatus

if TYPE_CHECKING:
    from docsearch.core.document_processing.models.fragment import Fragment


class ChunkCRUD(BaseCRUD[ChunkModel]):
    """
    CRUD operations for ChunkModel.

    Retrieval queries only ever return chunks of completed documents and
    break score ties by chunk_index.
    """

    def __init__(self) -> None:
        """Initialize ChunkCRUD with ChunkModel."""
        super().__init__(ChunkModel)

    def _result_columns(self):
        return (
            ChunkModel.id.label("chunk_id"),
            ChunkModel.document_id,
            ChunkModel.chunk_index,
            ChunkModel.content,
            ChunkModel.page_number,
            ChunkModel.section_title,
            DocumentModel.original_filename.label("filename"),
        )

    def _completed_scope(self, stmt, document_ids: Sequence[UUID] | None):
        stmt = stmt.join(DocumentModel, ChunkModel.document_id == DocumentModel.id).where(
            DocumentModel.status == DocumentStatus.COMPLETED
        )
        if document_ids:
            stmt = stmt.where(ChunkModel.document_id.in_(list(document_ids)))
        return stmt

    async def replace_for_document(
        self,
        session: AsyncSession,
        document_id: UUID,
        fragments: Sequence["Fragment"],
    ) -> list[ChunkModel]:
        """
        Replace the full chunk set of a document.

        The delete and the inserts share the caller's transaction, so a
        failure leaves the previous chunk set intact.

        Args:
            session: Async database session
            document_id: Owning document UUID
            fragments: Chunker output with contiguous indices

        Returns:
            list[ChunkModel]: Newly stored chunks in index order

        Raises:
            StorageConstraintError: If (document_id, chunk_index) collides
        """
        await session.execute(delete(ChunkModel).where(ChunkModel.document_id == document_id))

        chunks = [
            ChunkModel(
                document_id=document_id,
                chunk_index=fragment.index,
                content=fragment.content,
                content_length=len(fragment.content),
                page_number=fragment.page_number,
                section_title=fragment.section_title,
                chunk_metadata=dict(fragment.metadata),
            )
            for fragment in fragments
        ]
        session.add_all(chunks)
        await self._flush(session)
        return chunks

    async def get_by_document(
        self,
        session: AsyncSession,
        document_id: UUID,
    ) -> Sequence[ChunkModel]:
        """Retrieve all chunks of a document in index order."""
        stmt = (
            select(ChunkModel)
            .where(ChunkModel.document_id == document_id)
            .order_by(ChunkModel.chunk_index)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_missing_embeddings(
        self,
        session: AsyncSession,
        document_id: UUID,
    ) -> Sequence[ChunkModel]:
        """Retrieve chunks of a document that have no embedding yet."""
        stmt = (
            select(ChunkModel)
            .where(ChunkModel.document_id == document_id)
            .where(ChunkModel.embedding.is_(None))
            .order_by(ChunkModel.chunk_index)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def update_embedding(
        self,
        session: AsyncSession,
        chunk_id: UUID,
        embedding: list[float],
    ) -> bool:
        """
        Store the embedding of one chunk.

        Returns:
            True if the chunk exists, False otherwise
        """
        stmt = (
            update(ChunkModel)
            .where(ChunkModel.id == chunk_id)
            .values(embedding=embedding)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def search_full_text(
        self,
        session: AsyncSession,
        query: str,
        limit: int,
        document_ids: Sequence[UUID] | None = None,
        config: str = "english",
    ) -> Sequence[Row]:
        """
        PostgreSQL full-text search ranked by ts_rank.

        Args:
            session: Async database session (PostgreSQL only)
            query: Free-text query passed to plainto_tsquery
            limit: Maximum rows
            document_ids: Optional document filter
            config: Text search configuration

        Returns:
            Rows of result columns plus "score"
        """
        vector = func.to_tsvector(config, ChunkModel.content)
        tsquery = func.plainto_tsquery(config, query)
        rank = func.ts_rank(vector, tsquery).label("score")

        stmt = select(*self._result_columns(), rank).where(vector.op("@@")(tsquery))
        stmt = self._completed_scope(stmt, document_ids)
        stmt = stmt.order_by(rank.desc(), ChunkModel.chunk_index.asc()).limit(limit)

        result = await session.execute(stmt)
        return result.all()

    async def get_text_candidates(
        self,
        session: AsyncSession,
        terms: Iterable[str],
        document_ids: Sequence[UUID] | None = None,
        max_candidates: int = 1000,
    ) -> Sequence[Row]:
        """
        Chunks containing any of the terms (case-insensitive LIKE).

        Portable fallback for stores without full-text search; ranking is
        done in Python by the caller.

        Returns:
            Rows of result columns
        """
        patterns = [func.lower(ChunkModel.content).like(f"%{term}%") for term in terms]
        if not patterns:
            return []
        stmt = select(*self._result_columns()).where(or_(*patterns))
        stmt = self._completed_scope(stmt, document_ids)
        stmt = stmt.order_by(ChunkModel.chunk_index.asc()).limit(max_candidates)

        result = await session.execute(stmt)
        return result.all()

    async def get_embedded_chunks(
        self,
        session: AsyncSession,
        document_ids: Sequence[UUID] | None = None,
    ) -> Sequence[Row]:
        """
        All chunks with a non-null embedding.

        Returns:
            Rows of result columns plus "embedding"
        """
        stmt = select(*self._result_columns(), ChunkModel.embedding).where(
            ChunkModel.embedding.is_not(None)
        )
        stmt = self._completed_scope(stmt, document_ids)
        result = await session.execute(stmt)
        return [row for row in result.all() if row.embedding is not None]

    async def get_stats(self, session: AsyncSession, include_embedded: bool = True) -> dict:
        """
        Chunk totals for operational statistics.

        Args:
            session: Async database session
            include_embedded: Count chunks with an embedding

        Returns:
            dict with total_chunks, avg_chunk_length and, when requested,
            embedded_chunks
        """
        stmt = select(
            func.count(ChunkModel.id),
            func.coalesce(func.avg(ChunkModel.content_length), literal(0)),
        )
        total, avg_length = (await session.execute(stmt)).one()
        stats = {"total_chunks": int(total or 0), "avg_chunk_length": float(avg_length or 0)}

        if include_embedded:
            embedded_stmt = select(func.count(ChunkModel.id)).where(
                ChunkModel.embedding.is_not(None)
            )
            stats["embedded_chunks"] = int((await session.execute(embedded_stmt)).scalar_one())
        return stats


chunk_crud = ChunkCRUD()
