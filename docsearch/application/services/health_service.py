"""
Health check service.

Probes the database, the queue broker and the model service.

Dependencies: sqlalchemy, docsearch.boundary
System role: Liveness reporting
"""

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from docsearch.boundary.db.connection import session_scope
from docsearch.boundary.model_service.http_base import ModelServiceHTTP
from docsearch.boundary.queue.job_queue import JobQueue
from docsearch.models.stats import HealthStatus

logger = logging.getLogger(__name__)


class HealthService:
    """Dependency health checks."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        queue: JobQueue,
        model_client: ModelServiceHTTP,
    ) -> None:
        self._session_factory = session_factory
        self._queue = queue
        self._model_client = model_client

    async def check(self) -> HealthStatus:
        """healthy when every dependency answers, degraded otherwise."""
        checks = {
            "database": await self._check_database(),
            "queue": await self._queue.ping(),
            "model_service": await self._model_client.is_available(),
        }
        status = "healthy" if all(checks.values()) else "degraded"
        if status == "degraded":
            logger.warning(f"{__name__}:check - Degraded", extra={"checks": checks})
        return HealthStatus(status=status, checks=checks)

    async def _check_database(self) -> bool:
        try:
            async with session_scope(self._session_factory) as session:
                await session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"{__name__}:_check_database - Database unreachable: {e}")
            return False
