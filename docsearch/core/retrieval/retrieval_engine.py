"""
Retrieval engine.

Lexical, semantic and hybrid search over stored chunks. Hybrid runs both
strategies concurrently, each in its own session and under its own
timeout, and degrades to whichever side succeeded.

Dependencies: sqlalchemy, numpy (via docsearch.core.similarity),
    docsearch.boundary.db, docsearch.boundary.model_service
System role: Query-time retrieval business logic
"""

import asyncio
import logging
import math
from typing import Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from docsearch.boundary.db.connection import session_scope
from docsearch.boundary.db.CRUD.chunk_crud import chunk_crud
from docsearch.boundary.db.schema_probe import SchemaCapabilities
from docsearch.boundary.model_service.embedding_client import EmbeddingClient
from docsearch.configs.retrieval import RetrievalSettings
from docsearch.core.exceptions import (
    EmbeddingError,
    RetrievalError,
    SemanticUnavailableError,
    ValidationError,
)
from docsearch.core.retrieval.fusion import merge_hybrid_results, sort_results
from docsearch.core.retrieval.models import HybridSearchOutcome, SearchResult, SearchType
from docsearch.core.retrieval.text_rank import query_terms, rank_text
from docsearch.core.similarity import cosine_similarity_many

logger = logging.getLogger(__name__)


def _to_result(row, score: float, search_type: SearchType) -> SearchResult:
    return SearchResult(
        chunk_id=row.chunk_id,
        document_id=row.document_id,
        chunk_index=row.chunk_index,
        content=row.content,
        page_number=row.page_number,
        section_title=row.section_title,
        filename=row.filename,
        score=float(score),
        search_type=search_type,
    )


class RetrievalEngine:
    """
    Search over chunks of completed documents.

    Usage:
        engine = RetrievalEngine(session_factory, embedding_client, settings.retrieval, capabilities)
        results = await engine.lexical_search("installation steps", limit=5)
        outcome = await engine.hybrid_search("installation steps")
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        embedding_client: EmbeddingClient,
        settings: RetrievalSettings,
        capabilities: SchemaCapabilities,
    ) -> None:
        self._session_factory = session_factory
        self._embedding_client = embedding_client
        self._settings = settings
        self._capabilities = capabilities

    def validate(self, query: str, limit: int | None) -> tuple[str, int]:
        """
        Normalize and check query parameters.

        Raises:
            ValidationError: Empty query or limit outside 1..max_limit
        """
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Query must be a non-empty string", field="query")
        if limit is None:
            limit = self._settings.default_limit
        if not 1 <= limit <= self._settings.max_limit:
            raise ValidationError(
                f"limit must be between 1 and {self._settings.max_limit}",
                field="limit",
                details={"limit": limit},
            )
        return query.strip(), limit

    async def lexical_search(
        self,
        query: str,
        limit: int | None = None,
        document_ids: Sequence[UUID] | None = None,
    ) -> list[SearchResult]:
        """
        Full-text search ranked by ts_rank (or the portable ranker).

        Raises:
            ValidationError: Invalid query or limit
            RetrievalError: Store query failed
        """
        query, limit = self.validate(query, limit)
        try:
            if self._capabilities.full_text_search:
                async with session_scope(self._session_factory) as session:
                    rows = await chunk_crud.search_full_text(
                        session,
                        query,
                        limit,
                        document_ids=document_ids,
                        config=self._settings.text_search_config,
                    )
                return [_to_result(row, row.score, "text") for row in rows]
            return await self._portable_lexical(query, limit, document_ids)
        except SQLAlchemyError as e:
            raise RetrievalError(
                f"Lexical search failed: {e}",
                search_type="text",
            ) from e

    async def _portable_lexical(
        self,
        query: str,
        limit: int,
        document_ids: Sequence[UUID] | None,
    ) -> list[SearchResult]:
        terms = query_terms(query)
        if not terms:
            return []
        async with session_scope(self._session_factory) as session:
            rows = await chunk_crud.get_text_candidates(session, terms, document_ids=document_ids)

        scored = []
        for row in rows:
            score = rank_text(row.content, terms)
            if score > 0:
                scored.append(_to_result(row, score, "text"))
        return sort_results(scored)[:limit]

    async def semantic_search(
        self,
        query: str,
        limit: int | None = None,
        document_ids: Sequence[UUID] | None = None,
        threshold: float | None = None,
    ) -> list[SearchResult]:
        """
        Cosine-similarity search over stored embeddings.

        Chunks without an embedding are skipped.

        Args:
            query: Query text
            limit: Maximum results
            document_ids: Optional document filter
            threshold: Minimum similarity (exclusive); semantic_threshold by default

        Raises:
            ValidationError: Invalid query or limit
            SemanticUnavailableError: Query embedding could not be produced
            RetrievalError: Store query failed
        """
        query, limit = self.validate(query, limit)
        threshold = self._settings.semantic_threshold if threshold is None else threshold

        if not self._capabilities.has_embedding:
            raise SemanticUnavailableError("Chunk store has no embedding column")

        try:
            query_vector = await self._embedding_client.embed(query)
        except EmbeddingError as e:
            raise SemanticUnavailableError(
                f"Query embedding failed: {e.message}",
                details={"error_type": type(e).__name__},
            ) from e

        try:
            async with session_scope(self._session_factory) as session:
                rows = await chunk_crud.get_embedded_chunks(session, document_ids=document_ids)
        except SQLAlchemyError as e:
            raise RetrievalError(f"Semantic search failed: {e}", search_type="semantic") from e

        scores = cosine_similarity_many(query_vector, [row.embedding for row in rows])
        results = [
            _to_result(row, score, "semantic")
            for row, score in zip(rows, scores)
            if score is not None and score > threshold
        ]
        return sort_results(results)[:limit]

    async def hybrid_search(
        self,
        query: str,
        limit: int | None = None,
        document_ids: Sequence[UUID] | None = None,
        threshold: float | None = None,
    ) -> HybridSearchOutcome:
        """
        Run lexical and semantic search concurrently and fuse the results.

        Each side requests ceil(limit / 2) results. A failing or timed-out
        side never aborts the other; with both failed the outcome is empty.

        Raises:
            ValidationError: Invalid query or limit
        """
        query, limit = self.validate(query, limit)
        threshold = self._settings.hybrid_threshold if threshold is None else threshold
        sub_limit = math.ceil(limit / 2)
        timeout = self._settings.subsearch_timeout

        text_res, semantic_res = await asyncio.gather(
            asyncio.wait_for(self.lexical_search(query, sub_limit, document_ids), timeout),
            asyncio.wait_for(
                self.semantic_search(query, sub_limit, document_ids, threshold), timeout
            ),
            return_exceptions=True,
        )

        outcome = HybridSearchOutcome()
        text_results: list[SearchResult] = []
        semantic_results: list[SearchResult] = []

        for name, res in (("text", text_res), ("semantic", semantic_res)):
            if isinstance(res, Exception):
                error = "timed out" if isinstance(res, asyncio.TimeoutError) else str(res)
                outcome.errors[name] = error
                logger.warning(
                    f"{__name__}:hybrid_search - {name} search failed: {error}",
                    extra={"error_type": type(res).__name__},
                )
            elif isinstance(res, BaseException):
                raise res
            elif name == "text":
                text_results = res
            else:
                semantic_results = res

        outcome.text_ok = "text" not in outcome.errors
        outcome.semantic_ok = "semantic" not in outcome.errors
        outcome.results = merge_hybrid_results(text_results, semantic_results, limit)
        return outcome
