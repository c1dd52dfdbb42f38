"""
Ingestion worker pool.

Runs a fixed number of asyncio workers that pop jobs from the queue and
hand them to DocumentIngestionTask. Pool state and counters are owned by
the instance.

Dependencies: asyncio, docsearch.boundary.queue, docsearch.workers.tasks
System role: Concurrent background ingestion
"""

import asyncio
import logging

from docsearch.boundary.queue.job_queue import JobQueue
from docsearch.configs.queue import QueueSettings
from docsearch.core.exceptions import InvalidJobPayloadError, QueueConnectionError
from docsearch.models.stats import WorkerStats
from docsearch.observability.log_utils import log_exception_with_context
from docsearch.workers.tasks.document_ingestion import DocumentIngestionTask, TaskOutcome

logger = logging.getLogger(__name__)


class IngestionWorkerPool:
    """
    Pool of queue consumers.

    Usage:
        pool = IngestionWorkerPool(queue, task, settings.queue)
        pool.start()
        ...
        await pool.stop()
    """

    def __init__(
        self,
        queue: JobQueue,
        task: DocumentIngestionTask,
        settings: QueueSettings,
    ) -> None:
        self._queue = queue
        self._task = task
        self._settings = settings
        self._stop_event = asyncio.Event()
        self._workers: list[asyncio.Task] = []
        self._active_jobs = 0
        self._counts = {outcome: 0 for outcome in TaskOutcome}
        self._failed = 0
        self._invalid_payloads = 0
        self.fatal_error: BaseException | None = None

    @property
    def running(self) -> bool:
        return any(not worker.done() for worker in self._workers)

    def start(self) -> None:
        """Spawn max_concurrent_jobs worker tasks."""
        if self.running:
            logger.warning(f"{__name__}:start - Pool already running")
            return
        self._stop_event.clear()
        self.fatal_error = None
        self._workers = [
            asyncio.create_task(self._worker_loop(n), name=f"ingestion-worker-{n}")
            for n in range(self._settings.max_concurrent_jobs)
        ]
        logger.info(
            f"{__name__}:start - Worker pool started",
            extra={
                "workers": self._settings.max_concurrent_jobs,
                "queue": self._queue.name,
            },
        )

    async def stop(self, timeout: float = 30.0) -> None:
        """
        Stop the pool.

        Workers finish their current job; any still running after timeout
        are cancelled (their documents go back to pending).
        """
        self._stop_event.set()
        if not self._workers:
            return
        _, pending = await asyncio.wait(self._workers, timeout=timeout)
        for worker in pending:
            worker.cancel()
        if pending:
            logger.warning(
                f"{__name__}:stop - Cancelling workers after timeout",
                extra={"cancelled": len(pending)},
            )
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info(f"{__name__}:stop - Worker pool stopped")

    async def wait(self) -> None:
        """Wait until every worker has exited."""
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)

    def snapshot(self) -> WorkerStats:
        """Current in-process counters."""
        return WorkerStats(
            running=self.running,
            active_jobs=self._active_jobs,
            processed=self._counts[TaskOutcome.COMPLETED],
            failed=self._failed,
            requeued=self._counts[TaskOutcome.REQUEUED],
            exhausted=self._counts[TaskOutcome.EXHAUSTED],
            invalid_payloads=self._invalid_payloads,
        )

    async def _worker_loop(self, worker_number: int) -> None:
        while not self._stop_event.is_set():
            try:
                job = await self._queue.pop()
                if job is None:
                    continue
                self._active_jobs += 1
                try:
                    outcome = await self._task.run(job)
                finally:
                    self._active_jobs -= 1
                self._counts[outcome] += 1
                if outcome in (TaskOutcome.REQUEUED, TaskOutcome.EXHAUSTED):
                    self._failed += 1

            except InvalidJobPayloadError as e:
                self._invalid_payloads += 1
                logger.warning(
                    f"{__name__}:_worker_loop - Dropping malformed job: {e.message}",
                    extra={"worker": worker_number, **e.details},
                )
            except QueueConnectionError as e:
                logger.error(
                    f"{__name__}:_worker_loop - Queue broker unreachable, stopping pool",
                    extra={"worker": worker_number, **e.details},
                )
                self.fatal_error = e
                self._stop_event.set()
            except Exception as e:
                log_exception_with_context(
                    logger,
                    f"{__name__}:_worker_loop - Unexpected worker error",
                    e,
                    worker=worker_number,
                )
                await self._backoff()

    async def _backoff(self) -> None:
        try:
            await asyncio.wait_for(
                self._stop_event.wait(),
                timeout=self._settings.error_backoff_seconds,
            )
        except asyncio.TimeoutError:
            pass
