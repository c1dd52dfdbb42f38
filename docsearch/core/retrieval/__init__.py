"""
Retrieval: lexical, semantic and hybrid search plus chat context assembly.
"""

from docsearch.core.retrieval.context_assembler import ContextAssembler
from docsearch.core.retrieval.models import AssembledContext, HybridSearchOutcome, SearchResult
from docsearch.core.retrieval.retrieval_engine import RetrievalEngine

__all__ = [
    "RetrievalEngine",
    "ContextAssembler",
    "SearchResult",
    "HybridSearchOutcome",
    "AssembledContext",
]
