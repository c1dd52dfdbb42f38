"""
Document pipeline orchestrator.

Coordinates text extraction, chunking, chunk storage and embedding for a
single document, reporting progress on its processing job.

Dependencies: All task modules, docsearch.boundary.db, docsearch.configs
System role: Pipeline orchestration (coordinates only)
"""

import asyncio
import logging
import time
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from docsearch.boundary.db.connection import session_scope
from docsearch.boundary.db.CRUD.chunk_crud import chunk_crud
from docsearch.boundary.db.CRUD.processing_job_crud import processing_job_crud
from docsearch.boundary.model_service.embedding_client import EmbeddingClient
from docsearch.configs.ingestion import IngestionSettings

from .models import PipelineResult
from .tasks import ChunkingTask, EmbeddingTask, ParsingTask

logger = logging.getLogger(__name__)


class DocumentPipeline:
    """Orchestrate document ingestion: extract -> chunk -> store -> embed."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        embedding_client: EmbeddingClient,
        settings: IngestionSettings,
        parsing_task: ParsingTask | None = None,
    ) -> None:
        """
        Initialize pipeline with its collaborators.

        Args:
            session_factory: Async session factory for the chunk store
            embedding_client: Client used for chunk embeddings
            settings: Chunking parameters
            parsing_task: Text extractor (default loaders when None)
        """
        self._session_factory = session_factory
        self._parsing_task = parsing_task or ParsingTask()
        self._chunking_task = ChunkingTask(
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
            min_chunk_length=settings.min_chunk_length,
        )
        self._embedding_task = EmbeddingTask(session_factory, embedding_client)

    async def process(
        self,
        document_id: UUID,
        file_path: str,
        mime_type: str,
        job_id: UUID | None = None,
    ) -> PipelineResult:
        """
        Process a document file through the full pipeline.

        Args:
            document_id: Document being processed
            file_path: Path of the raw file
            mime_type: Content type used to pick a loader
            job_id: ProcessingJob to report progress on

        Returns:
            PipelineResult: Chunk and embedding counts

        Raises:
            ParsingError: Text extraction failed
            StorageConstraintError: Chunk storage failed
        """
        start_time = time.perf_counter()

        # Loaders are blocking
        text = await asyncio.to_thread(self._parsing_task.extract_text, file_path, mime_type)
        await self._report_progress(job_id, 25)

        return await self.process_text(document_id, text, job_id=job_id, start_time=start_time)

    async def process_text(
        self,
        document_id: UUID,
        text: str,
        job_id: UUID | None = None,
        start_time: float | None = None,
    ) -> PipelineResult:
        """
        Chunk, store and embed already-extracted text.

        Args:
            document_id: Document being processed
            text: Extracted text
            job_id: ProcessingJob to report progress on
            start_time: perf_counter value when processing began

        Returns:
            PipelineResult: Chunk and embedding counts
        """
        start_time = start_time if start_time is not None else time.perf_counter()

        fragments = self._chunking_task.split(text)
        await self._report_progress(job_id, 50)

        async with session_scope(self._session_factory) as session:
            await chunk_crud.replace_for_document(session, document_id, fragments)
        await self._report_progress(job_id, 75)

        outcome = await self._embedding_task.embed_missing(document_id)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"{__name__}:process_text - Document processed",
            extra={
                "document_id": str(document_id),
                "chunk_count": len(fragments),
                "embedded": outcome.embedded,
                "embedding_failures": outcome.failed,
                "elapsed_ms": round(elapsed_ms, 1),
            },
        )
        return PipelineResult(
            document_id=document_id,
            chunk_count=len(fragments),
            embedded_count=outcome.embedded,
            failed_embedding_count=outcome.failed,
            processing_time_ms=elapsed_ms,
        )

    async def embed_missing(self, document_id: UUID) -> PipelineResult:
        """
        Re-embed chunks of a document that have no embedding.

        Returns:
            PipelineResult: chunk_count is the number of chunks attempted
        """
        start_time = time.perf_counter()
        outcome = await self._embedding_task.embed_missing(document_id)
        return PipelineResult(
            document_id=document_id,
            chunk_count=outcome.attempted,
            embedded_count=outcome.embedded,
            failed_embedding_count=outcome.failed,
            processing_time_ms=(time.perf_counter() - start_time) * 1000,
        )

    async def _report_progress(self, job_id: UUID | None, progress: int) -> None:
        if job_id is None:
            return
        async with session_scope(self._session_factory) as session:
            await processing_job_crud.update_progress(session, job_id, progress)
