"""
Search service.

Wraps the retrieval engine with validation, timing, best-effort query
analytics and the semantic-to-lexical fallback.

Dependencies: docsearch.core.retrieval, docsearch.boundary.db
System role: Search orchestration layer
"""

import logging
import time
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from docsearch.boundary.db.connection import session_scope
from docsearch.boundary.db.CRUD.search_query_crud import search_query_crud
from docsearch.configs.retrieval import RetrievalSettings
from docsearch.core.exceptions import RetrievalError, SemanticUnavailableError
from docsearch.core.retrieval.models import SearchResult, SearchType
from docsearch.core.retrieval.retrieval_engine import RetrievalEngine
from docsearch.models.search import SearchRequest, SearchResponse, SearchResultItem
from docsearch.observability.correlation import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

SEMANTIC_UNAVAILABLE_MESSAGE = (
    "Semantic search unavailable: failed to generate query embedding. Try text search instead."
)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class SearchService:
    """
    Search orchestration.

    Every strategy returns a SearchResponse; only validation errors are
    raised to the caller.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        engine: RetrievalEngine,
        settings: RetrievalSettings,
    ) -> None:
        """
        Initialize search service.

        Args:
            session_factory: Async session factory used for analytics rows
            engine: Retrieval engine
            settings: Retrieval settings (fallback behaviour)
        """
        self._session_factory = session_factory
        self._engine = engine
        self._settings = settings

    async def text_search(self, request: SearchRequest) -> SearchResponse:
        """Lexical search."""
        set_correlation_id()
        start = time.perf_counter()
        try:
            try:
                results = await self._engine.lexical_search(
                    request.query, request.limit, request.document_ids
                )
            except RetrievalError as e:
                logger.error(f"{__name__}:text_search - {e.message}")
                return await self._respond(request, [], "text", start, message="Text search failed")
            return await self._respond(request, results, "text", start)
        finally:
            clear_correlation_id()

    async def semantic_search(self, request: SearchRequest) -> SearchResponse:
        """
        Semantic search.

        When the query cannot be embedded, falls back to lexical search if
        fallback_to_text is enabled, otherwise returns an empty response
        explaining why.
        """
        set_correlation_id()
        start = time.perf_counter()
        try:
            try:
                results = await self._engine.semantic_search(
                    request.query, request.limit, request.document_ids, request.threshold
                )
            except SemanticUnavailableError as e:
                logger.warning(f"{__name__}:semantic_search - {e.message}")
                if not self._settings.fallback_to_text:
                    return await self._respond(
                        request, [], "semantic", start, message=SEMANTIC_UNAVAILABLE_MESSAGE
                    )
                return await self._fallback_to_text(request, start)
            except RetrievalError as e:
                logger.error(f"{__name__}:semantic_search - {e.message}")
                return await self._respond(
                    request, [], "semantic", start, message="Semantic search failed"
                )
            return await self._respond(request, results, "semantic", start)
        finally:
            clear_correlation_id()

    async def hybrid_search(self, request: SearchRequest) -> SearchResponse:
        """Concurrent lexical + semantic search with fused results."""
        set_correlation_id()
        start = time.perf_counter()
        try:
            outcome = await self._engine.hybrid_search(
                request.query, request.limit, request.document_ids, request.threshold
            )
            message = None
            if not outcome.text_ok and not outcome.semantic_ok:
                message = "Both text and semantic search failed"
            elif not outcome.semantic_ok:
                message = "Semantic search unavailable; showing text results only"
            elif not outcome.text_ok:
                message = "Text search failed; showing semantic results only"
            return await self._respond(
                request,
                outcome.results,
                "hybrid",
                start,
                message=message,
                search_types={"text": outcome.text_ok, "semantic": outcome.semantic_ok},
            )
        finally:
            clear_correlation_id()

    async def _fallback_to_text(self, request: SearchRequest, start: float) -> SearchResponse:
        try:
            results = await self._engine.lexical_search(
                request.query, request.limit, request.document_ids
            )
        except RetrievalError as e:
            logger.error(f"{__name__}:semantic_search - Fallback text search failed: {e.message}")
            return await self._respond(
                request, [], "semantic", start, message=SEMANTIC_UNAVAILABLE_MESSAGE
            )
        return await self._respond(
            request,
            results,
            "text",
            start,
            message="Semantic search unavailable; showing text search results",
            fallback_used=True,
        )

    async def _respond(
        self,
        request: SearchRequest,
        results: list[SearchResult],
        search_type: SearchType,
        start: float,
        message: str | None = None,
        search_types: dict[str, bool] | None = None,
        fallback_used: bool = False,
    ) -> SearchResponse:
        elapsed = _elapsed_ms(start)
        await self._record_query(request.query, search_type, len(results), elapsed, request.document_ids)
        if not results and message is None:
            message = "No matching chunks found"
        logger.info(
            f"{__name__}:search - Search finished",
            extra={"search_type": search_type, "results": len(results), "execution_time_ms": elapsed},
        )
        return SearchResponse(
            results=[SearchResultItem.from_result(r) for r in results],
            total_results=len(results),
            execution_time=elapsed,
            search_type=search_type,
            message=message,
            search_types=search_types,
            fallback_used=fallback_used,
        )

    async def _record_query(
        self,
        query: str,
        search_type: str,
        results_count: int,
        execution_time_ms: int,
        document_ids: Sequence[UUID] | None,
    ) -> None:
        try:
            async with session_scope(self._session_factory) as session:
                await search_query_crud.record(
                    session,
                    query_text=query,
                    search_type=search_type,
                    results_count=results_count,
                    execution_time_ms=execution_time_ms,
                    document_filter=list(document_ids) if document_ids else None,
                )
        except Exception as e:
            logger.warning(f"{__name__}:_record_query - Failed to log search query: {e}")
