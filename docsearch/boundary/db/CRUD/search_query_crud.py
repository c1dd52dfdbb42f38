"""
Search query CRUD operations.

Append-only analytics writes and the aggregate used by statistics.

Dependencies: sqlalchemy, docsearch.boundary.db.models.search_query_model
System role: Search analytics persistence
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docsearch.boundary.db.CRUD.base_crud import BaseCRUD
from docsearch.boundary.db.models.search_query_model import SearchQueryModel


class SearchQueryCRUD(BaseCRUD[SearchQueryModel]):
    """CRUD operations for SearchQueryModel."""

    def __init__(self) -> None:
        """Initialize SearchQueryCRUD with SearchQueryModel."""
        super().__init__(SearchQueryModel)

    async def record(
        self,
        session: AsyncSession,
        query_text: str,
        search_type: str,
        results_count: int,
        execution_time_ms: int,
        document_filter: list[UUID] | None = None,
    ) -> SearchQueryModel:
        """Append one analytics row."""
        return await self.create(
            session,
            query_text=query_text,
            search_type=search_type,
            document_filter=[str(d) for d in document_filter] if document_filter else None,
            results_count=results_count,
            execution_time_ms=execution_time_ms,
        )

    async def stats_since(self, session: AsyncSession, since: datetime) -> dict:
        """
        Aggregate queries run since a point in time.

        Returns:
            dict with total_queries, avg_execution_time_ms, avg_results_count
        """
        stmt = select(
            func.count(SearchQueryModel.id),
            func.avg(SearchQueryModel.execution_time_ms),
            func.avg(SearchQueryModel.results_count),
        ).where(SearchQueryModel.created_at >= since)
        total, avg_time, avg_results = (await session.execute(stmt)).one()
        return {
            "total_queries": int(total or 0),
            "avg_execution_time_ms": float(avg_time or 0),
            "avg_results_count": float(avg_results or 0),
        }


search_query_crud = SearchQueryCRUD()
