"""
Top-level settings object.

Groups the per-concern settings (database, queue, model service,
ingestion, retrieval) under one cached instance.

Dependencies: docsearch.configs.*
System role: Single entry point for configuration
"""

from functools import lru_cache

from pydantic import Field

from docsearch.configs.base import BaseSettings
from docsearch.configs.database import DatabaseSettings
from docsearch.configs.ingestion import IngestionSettings
from docsearch.configs.model_service import ModelServiceSettings
from docsearch.configs.queue import QueueSettings
from docsearch.configs.retrieval import RetrievalSettings


class Settings(BaseSettings):
    """Every settings group, each loaded from its own env prefix."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    model_service: ModelServiceSettings = Field(default_factory=ModelServiceSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Load settings once per process.

    Usage:
        from docsearch.configs import get_settings
        queue_name = get_settings().queue.queue_name
    """
    return Settings()
