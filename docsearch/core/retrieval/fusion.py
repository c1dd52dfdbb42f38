"""
Hybrid result fusion.

Dependencies: docsearch.core.retrieval.models
System role: Merges lexical and semantic result lists
"""

from typing import Iterable
from uuid import UUID

from docsearch.core.retrieval.models import SearchResult


def sort_results(results: Iterable[SearchResult]) -> list[SearchResult]:
    """Score descending, then chunk_index ascending."""
    return sorted(results, key=lambda r: (-r.score, r.chunk_index, str(r.document_id)))


def merge_hybrid_results(
    text_results: list[SearchResult],
    semantic_results: list[SearchResult],
    limit: int,
) -> list[SearchResult]:
    """
    Merge two result lists by chunk id.

    A chunk found by one strategy keeps its score and label. A chunk found
    by both is labelled "hybrid" and scored with the larger of the two.

    Args:
        text_results: Lexical results
        semantic_results: Semantic results
        limit: Maximum results returned

    Returns:
        list[SearchResult]: Sorted, truncated merge
    """
    merged: dict[UUID, SearchResult] = {r.chunk_id: r for r in text_results}
    for result in semantic_results:
        existing = merged.get(result.chunk_id)
        if existing is None:
            merged[result.chunk_id] = result
        else:
            merged[result.chunk_id] = existing.model_copy(
                update={"score": max(existing.score, result.score), "search_type": "hybrid"}
            )
    return sort_results(merged.values())[:limit]
