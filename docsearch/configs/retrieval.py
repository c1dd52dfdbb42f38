"""
Retrieval configuration settings.

Search limits, similarity thresholds and context assembly bounds.

Dependencies: pydantic, pydantic_settings
System role: Retrieval engine configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrievalSettings(BaseSettings):
    """Retrieval engine and context assembler configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RETRIEVAL_",
        case_sensitive=False,
        extra="ignore",
    )

    default_limit: int = Field(default=10, description="Result cap when none is given")
    max_limit: int = Field(default=100, description="Largest accepted result cap")

    semantic_threshold: float = Field(
        default=0.7,
        description="Minimum cosine similarity for semantic search (0.0-1.0)",
    )
    hybrid_threshold: float = Field(
        default=0.5,
        description="Minimum cosine similarity for the semantic half of hybrid search",
    )
    subsearch_timeout: float = Field(
        default=90.0,
        description="Seconds a hybrid sub-search may run before it is abandoned",
    )
    text_search_config: str = Field(
        default="english",
        description="PostgreSQL text search configuration",
    )
    fallback_to_text: bool = Field(
        default=True,
        description="Serve lexical results when semantic search is unavailable",
    )

    # Context assembly
    context_threshold: float = Field(default=0.6, description="Similarity floor for chat context")
    context_top_k: int = Field(default=5, description="Chunks considered for chat context")
    context_max_chars: int = Field(
        default=8000,
        description="Upper bound on the assembled context length",
    )
