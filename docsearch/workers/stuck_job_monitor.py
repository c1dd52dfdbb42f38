"""
Stuck-job monitor.

Periodically finds documents left in pending/processing (lost queue
messages, crashed workers) and requeues them with an incremented retry
count, or fails them once the retry budget is spent.

Dependencies: asyncio, docsearch.application, docsearch.boundary.db
System role: Recovery of abandoned ingestion jobs
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from docsearch.application.services.ingestion_service import IngestionService
from docsearch.boundary.db.connection import session_scope
from docsearch.boundary.db.CRUD.document_crud import document_crud
from docsearch.boundary.db.CRUD.processing_job_crud import processing_job_crud
from docsearch.boundary.db.models.document_model import DocumentStatus
from docsearch.boundary.db.schema_probe import SchemaCapabilities
from docsearch.configs.ingestion import IngestionSettings
from docsearch.core.document_processing.models import IngestionJob
from docsearch.observability.log_utils import log_exception_with_context
from docsearch.workers.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """What one sweep did."""

    skipped: bool = False
    found: int = 0
    requeued: list[UUID] = field(default_factory=list)
    failed: list[UUID] = field(default_factory=list)
    errors: dict[UUID, str] = field(default_factory=dict)


def _minutes_since(timestamp: datetime | None, now: datetime) -> float | None:
    if timestamp is None:
        return None
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return round((now - timestamp).total_seconds() / 60, 1)


class StuckJobMonitor:
    """
    Periodic recovery sweep.

    Only one sweep runs at a time per monitor; a sweep requested while
    another is in progress returns immediately with skipped=True.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        ingestion_service: IngestionService,
        capabilities: SchemaCapabilities,
        settings: IngestionSettings,
        retry_policy: RetryPolicy,
    ) -> None:
        self._session_factory = session_factory
        self._ingestion_service = ingestion_service
        self._capabilities = capabilities
        self._settings = settings
        self._retry_policy = retry_policy
        self._lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

    async def sweep(self, now: datetime | None = None) -> SweepResult:
        """
        Requeue or fail every stuck document in one batch.

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            SweepResult: Requeued and failed document ids
        """
        if self._lock.locked():
            logger.info(f"{__name__}:sweep - Previous sweep still running, skipping")
            return SweepResult(skipped=True)

        async with self._lock:
            return await self._sweep(now or datetime.now(timezone.utc))

    async def _sweep(self, now: datetime) -> SweepResult:
        result = SweepResult()
        if self._capabilities.timestamp_column is None:
            return result

        cutoff = now - timedelta(minutes=self._settings.stuck_threshold_minutes)
        async with session_scope(self._session_factory) as session:
            rows = await document_crud.find_stale(
                session, self._capabilities, cutoff, self._settings.monitor_batch_size
            )

        result.found = len(rows)
        if not rows:
            return result

        logger.warning(
            f"{__name__}:sweep - Found stuck documents",
            extra={"count": len(rows), "threshold_minutes": self._settings.stuck_threshold_minutes},
        )

        for row in rows:
            document_id = row.id
            try:
                await self._recover(row, cutoff, now, result)
            except Exception as e:
                result.errors[document_id] = str(e)
                log_exception_with_context(
                    logger,
                    f"{__name__}:sweep - Failed to recover document",
                    e,
                    document_id=document_id,
                )

        logger.info(
            f"{__name__}:sweep - Sweep finished",
            extra={
                "requeued": len(result.requeued),
                "failed": len(result.failed),
                "errors": len(result.errors),
            },
        )
        return result

    async def _recover(self, row, cutoff: datetime, now: datetime, result: SweepResult) -> None:
        document_id: UUID = row.id
        minutes_stuck = _minutes_since(getattr(row, self._capabilities.timestamp_column), now)

        async with session_scope(self._session_factory) as session:
            latest = await processing_job_crud.get_latest_for_document(session, document_id)
        previous = latest.retry_count if latest is not None else 0
        retry_count = previous + 1
        file_path = getattr(row, "file_path", None)
        mime_type = getattr(row, "mime_type", None)

        if not self._retry_policy.should_retry(retry_count) or not file_path or not mime_type:
            reason = (
                f"Stuck for {minutes_stuck} minutes after {previous} retries"
                if file_path and mime_type
                else "Stuck document has no stored file path or MIME type"
            )
            async with session_scope(self._session_factory) as session:
                document = await document_crud.mark_failed(
                    session, document_id, reason, capabilities=self._capabilities
                )
                if document is not None and latest is not None:
                    await processing_job_crud.mark_failed(
                        session, latest.id, reason, retry_count
                    )
            if document is not None:
                result.failed.append(document_id)
                logger.error(
                    f"{__name__}:sweep - Stuck document failed",
                    extra={"document_id": str(document_id), "retry_count": retry_count},
                )
            return

        job = IngestionJob(
            document_id=document_id,
            file_path=file_path,
            mime_type=mime_type,
            retry_count=retry_count,
            job_id=latest.id if latest is not None else None,
        )
        requeued = await self._ingestion_service.requeue_document(
            job,
            allowed_from=(DocumentStatus.PENDING, DocumentStatus.PROCESSING),
            stale_before=cutoff,
        )
        if requeued:
            result.requeued.append(document_id)
            logger.info(
                f"{__name__}:sweep - Requeued stuck document",
                extra={
                    "document_id": str(document_id),
                    "status": row.status,
                    "minutes_stuck": minutes_stuck,
                    "retry_count": retry_count,
                },
            )

    def start(self) -> None:
        """Run sweep() every monitor_interval_minutes until stop()."""
        if self._loop_task is not None and not self._loop_task.done():
            return
        self._stop_event.clear()
        self._loop_task = asyncio.create_task(self._run_loop(), name="stuck-job-monitor")
        logger.info(
            f"{__name__}:start - Stuck-job monitor started",
            extra={"interval_minutes": self._settings.monitor_interval_minutes},
        )

    async def stop(self) -> None:
        """Stop the periodic loop, letting a running sweep finish."""
        self._stop_event.set()
        if self._loop_task is not None:
            await asyncio.gather(self._loop_task, return_exceptions=True)
            self._loop_task = None

    async def _run_loop(self) -> None:
        interval = self._settings.monitor_interval_minutes * 60
        while not self._stop_event.is_set():
            try:
                await self.sweep()
            except Exception as e:
                log_exception_with_context(logger, f"{__name__}:_run_loop - Sweep failed", e)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
