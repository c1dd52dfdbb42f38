"""
Chunk embedding task.

Embeds every chunk of a document that lacks an embedding and persists
the successes. Failed items keep a null embedding and stay searchable
lexically.

Dependencies: docsearch.boundary.model_service, docsearch.boundary.db
System role: Third stage of document ingestion pipeline
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from docsearch.boundary.db.connection import session_scope
from docsearch.boundary.db.CRUD.chunk_crud import chunk_crud
from docsearch.boundary.model_service.embedding_client import EmbeddingClient

logger = logging.getLogger(__name__)


@dataclass
class EmbeddingOutcome:
    """Counts of an embedding pass."""

    attempted: int = 0
    embedded: int = 0
    failed: int = 0


class EmbeddingTask:
    """Best-effort embedding of stored chunks."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        embedding_client: EmbeddingClient,
    ) -> None:
        self._session_factory = session_factory
        self._embedding_client = embedding_client

    async def embed_missing(self, document_id: UUID) -> EmbeddingOutcome:
        """
        Embed all chunks of a document whose embedding is null.

        Args:
            document_id: Document whose chunks to embed

        Returns:
            EmbeddingOutcome: attempted/embedded/failed counts
        """
        async with session_scope(self._session_factory) as session:
            chunks = await chunk_crud.get_missing_embeddings(session, document_id)
            pending = [(chunk.id, chunk.content) for chunk in chunks]

        if not pending:
            return EmbeddingOutcome()

        vectors, errors = await self._embedding_client.embed_batch(
            [content for _, content in pending]
        )

        outcome = EmbeddingOutcome(attempted=len(pending))
        async with session_scope(self._session_factory) as session:
            for (chunk_id, _), vector in zip(pending, vectors):
                if vector is None:
                    continue
                await chunk_crud.update_embedding(session, chunk_id, vector)
                outcome.embedded += 1
        outcome.failed = sum(1 for e in errors if e is not None)

        if outcome.failed:
            first_error = next(e for e in errors if e is not None)
            logger.warning(
                f"{__name__}:embed_missing - {outcome.failed}/{outcome.attempted} chunks "
                f"left without embedding",
                extra={"document_id": str(document_id), "first_error": str(first_error)},
            )
        return outcome
