"""
Chat context assembly.

Builds a bounded, cited context block from the chunks most similar to
the user's message.

Dependencies: docsearch.core.retrieval.retrieval_engine
System role: Grounding context for retrieval-augmented chat
"""

import logging
from typing import Sequence
from uuid import UUID

from docsearch.configs.retrieval import RetrievalSettings
from docsearch.core.exceptions import RetrievalError
from docsearch.core.retrieval.models import AssembledContext, SearchResult
from docsearch.core.retrieval.retrieval_engine import RetrievalEngine

logger = logging.getLogger(__name__)

BLOCK_SEPARATOR = "\n\n"


def render_block(result: SearchResult) -> str:
    """Render one chunk as "[filename - section]\\ncontent"."""
    label = result.section_title or f"Chunk {result.chunk_index}"
    return f"[{result.filename} - {label}]\n{result.content}"


class ContextAssembler:
    """Select and format chunks for a chat prompt."""

    def __init__(self, engine: RetrievalEngine, settings: RetrievalSettings) -> None:
        self._engine = engine
        self._settings = settings

    async def build_context(
        self,
        query: str,
        document_ids: Sequence[UUID] | None = None,
    ) -> AssembledContext:
        """
        Build the context block for a message.

        Returns an empty context when no chunk clears context_threshold or
        semantic search is unavailable.

        Raises:
            ValidationError: Empty query
        """
        try:
            results = await self._engine.semantic_search(
                query,
                limit=self._settings.context_top_k,
                document_ids=document_ids,
                threshold=self._settings.context_threshold,
            )
        except RetrievalError as e:
            logger.warning(f"{__name__}:build_context - No context available: {e.message}")
            return AssembledContext()

        blocks: list[str] = []
        used: list[SearchResult] = []
        length = 0
        for result in results:
            block = render_block(result)
            added = len(block) + (len(BLOCK_SEPARATOR) if blocks else 0)
            if length + added > self._settings.context_max_chars:
                break
            blocks.append(block)
            used.append(result)
            length += added

        return AssembledContext(
            text=BLOCK_SEPARATOR.join(blocks),
            used_chunk_ids=[r.chunk_id for r in used],
            context_used=bool(used),
            sources=used,
        )
