"""Service orchestrators."""

from .chat_service import ChatService
from .health_service import HealthService
from .ingestion_service import IngestionService
from .search_service import SearchService
from .stats_service import StatsService

__all__ = [
    "ChatService",
    "HealthService",
    "IngestionService",
    "SearchService",
    "StatsService",
]
