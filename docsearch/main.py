"""
Ingestion worker entry point.

Wires settings, storage, queue, model-service clients and services, then
runs the worker pool and the stuck-job monitor until SIGINT/SIGTERM.

Dependencies: python-dotenv, docsearch.*
System role: Process bootstrap for the docsearch-worker console script
"""

import asyncio
import logging
import signal
from dataclasses import dataclass

from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncEngine

from docsearch.application.services import (
    ChatService,
    HealthService,
    IngestionService,
    SearchService,
    StatsService,
)
from docsearch.boundary.db.connection import get_async_engine, get_async_session_factory
from docsearch.boundary.db.create_tables import create_all_tables
from docsearch.boundary.db.schema_probe import probe_schema_capabilities
from docsearch.boundary.model_service import EmbeddingClient, GenerationClient
from docsearch.boundary.queue import JobQueue
from docsearch.configs import Settings, get_settings
from docsearch.core.document_processing.entrypoint import DocumentPipeline
from docsearch.core.retrieval import ContextAssembler, RetrievalEngine
from docsearch.observability.logger import configure_logging
from docsearch.workers.retry_policy import RetryPolicy
from docsearch.workers.stuck_job_monitor import StuckJobMonitor
from docsearch.workers.tasks.document_ingestion import DocumentIngestionTask
from docsearch.workers.worker_pool import IngestionWorkerPool

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Every long-lived component of a running process."""

    engine: AsyncEngine
    queue: JobQueue
    embedding_client: EmbeddingClient
    generation_client: GenerationClient
    ingestion_service: IngestionService
    search_service: SearchService
    chat_service: ChatService
    stats_service: StatsService
    health_service: HealthService
    pool: IngestionWorkerPool
    monitor: StuckJobMonitor

    async def aclose(self) -> None:
        await self.embedding_client.aclose()
        await self.generation_client.aclose()
        await self.queue.aclose()
        await self.engine.dispose()


async def build_runtime(settings: Settings) -> Runtime:
    """
    Build every component from settings.

    Creates missing tables and probes the schema once; the resulting
    capabilities are shared by document writes, retrieval, recovery and
    statistics.
    """
    engine = get_async_engine(settings.database)
    await create_all_tables(engine)
    capabilities = await probe_schema_capabilities(engine)
    session_factory = get_async_session_factory(engine)

    queue = JobQueue.from_settings(settings.queue)
    embedding_client = EmbeddingClient(settings.model_service)
    generation_client = GenerationClient(settings.model_service)

    pipeline = DocumentPipeline(session_factory, embedding_client, settings.ingestion)
    retry_policy = RetryPolicy.from_settings(settings.ingestion)
    ingestion_service = IngestionService(session_factory, queue, pipeline, capabilities)

    retrieval_engine = RetrievalEngine(
        session_factory, embedding_client, settings.retrieval, capabilities
    )
    assembler = ContextAssembler(retrieval_engine, settings.retrieval)

    task = DocumentIngestionTask(
        session_factory, pipeline, ingestion_service, retry_policy, capabilities
    )
    pool = IngestionWorkerPool(queue, task, settings.queue)
    monitor = StuckJobMonitor(
        session_factory, ingestion_service, capabilities, settings.ingestion, retry_policy
    )

    return Runtime(
        engine=engine,
        queue=queue,
        embedding_client=embedding_client,
        generation_client=generation_client,
        ingestion_service=ingestion_service,
        search_service=SearchService(session_factory, retrieval_engine, settings.retrieval),
        chat_service=ChatService(assembler, generation_client),
        stats_service=StatsService(
            session_factory,
            capabilities,
            settings.ingestion.max_retries,
            queue=queue,
            worker_snapshot=pool.snapshot,
        ),
        health_service=HealthService(session_factory, queue, embedding_client),
        pool=pool,
        monitor=monitor,
    )


async def run(settings: Settings) -> None:
    """Run the worker pool and monitor until a stop signal or a fatal queue error."""
    logger.info(
        f"{__name__}:run - Starting docsearch worker",
        extra={"environment": settings.environment},
    )
    runtime = await build_runtime(settings)
    stop_requested = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_requested.set)
        except NotImplementedError:
            logger.warning(f"{__name__}:run - Signal handlers unsupported on this platform")

    health = await runtime.health_service.check()
    logger.info(f"{__name__}:run - Startup health: {health.status}", extra={"checks": health.checks})

    runtime.pool.start()
    runtime.monitor.start()

    pool_exit = asyncio.create_task(runtime.pool.wait())
    stop_wait = asyncio.create_task(stop_requested.wait())
    try:
        await asyncio.wait({pool_exit, stop_wait}, return_when=asyncio.FIRST_COMPLETED)
        if runtime.pool.fatal_error is not None:
            logger.error(f"{__name__}:run - Worker pool stopped: {runtime.pool.fatal_error}")
        else:
            logger.info(f"{__name__}:run - Shutdown requested")
    finally:
        stop_wait.cancel()
        await runtime.monitor.stop()
        await runtime.pool.stop()
        pool_exit.cancel()
        await runtime.aclose()
        logger.info(f"{__name__}:run - Shutdown complete")


def main() -> None:
    """Console script entry point."""
    load_dotenv()
    settings = get_settings()
    configure_logging(settings.effective_log_level)
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
