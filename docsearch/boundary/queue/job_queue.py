"""
Redis list job queue.

Durable FIFO for ingestion jobs: producers LPUSH, workers BRPOP with a
short timeout so they can notice shutdown between polls.

Dependencies: redis.asyncio, pydantic
System role: Hand-off between upload and the ingestion worker pool
"""

import logging

from pydantic import ValidationError as PydanticValidationError
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from docsearch.configs.queue import QueueSettings
from docsearch.core.document_processing.models.job_message import IngestionJob
from docsearch.core.exceptions import InvalidJobPayloadError, QueueConnectionError

logger = logging.getLogger(__name__)


class JobQueue:
    """
    FIFO queue of IngestionJob messages.

    Usage:
        queue = JobQueue.from_settings(settings.queue)
        await queue.push(job)
        job = await queue.pop()   # None on timeout
    """

    def __init__(self, redis: Redis, queue_name: str, poll_timeout: int = 1) -> None:
        """
        Initialize queue over an existing Redis client.

        Args:
            redis: redis.asyncio client
            queue_name: Redis list key
            poll_timeout: BRPOP timeout in seconds
        """
        self._redis = redis
        self._queue_name = queue_name
        self._poll_timeout = poll_timeout

    @classmethod
    def from_settings(cls, settings: QueueSettings) -> "JobQueue":
        """Build a queue and its Redis client from settings."""
        redis = Redis.from_url(settings.url, decode_responses=True)
        return cls(redis, settings.queue_name, settings.poll_timeout)

    @property
    def name(self) -> str:
        return self._queue_name

    async def push(self, job: IngestionJob) -> None:
        """
        Enqueue a job.

        Raises:
            QueueConnectionError: If the broker is unreachable
        """
        try:
            await self._redis.lpush(self._queue_name, job.to_wire())
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise QueueConnectionError(
                f"Failed to push job for document {job.document_id}",
                details={"queue": self._queue_name, "error": str(e)},
            ) from e

        logger.info(
            f"{__name__}:push - Job queued",
            extra={"document_id": str(job.document_id), "retry_count": job.retry_count},
        )

    async def pop(self) -> IngestionJob | None:
        """
        Dequeue the oldest job, waiting up to poll_timeout seconds.

        Returns:
            IngestionJob, or None when the queue stayed empty

        Raises:
            QueueConnectionError: If the broker is unreachable
            InvalidJobPayloadError: If the message is not a valid job
        """
        try:
            item = await self._redis.brpop([self._queue_name], timeout=self._poll_timeout)
        except RedisTimeoutError:
            return None
        except RedisConnectionError as e:
            raise QueueConnectionError(
                "Lost connection to queue broker",
                details={"queue": self._queue_name, "error": str(e)},
            ) from e

        if item is None:
            return None

        _, raw = item
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        try:
            return IngestionJob.model_validate_json(raw)
        except PydanticValidationError as e:
            raise InvalidJobPayloadError(
                "Malformed job payload",
                field="payload",
                details={"payload": raw[:200], "errors": e.error_count()},
            ) from e

    async def length(self) -> int:
        """Number of jobs waiting."""
        try:
            return int(await self._redis.llen(self._queue_name))
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise QueueConnectionError("Failed to read queue length", details={"error": str(e)}) from e

    async def ping(self) -> bool:
        """True if the broker answers PING."""
        try:
            return bool(await self._redis.ping())
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.warning(f"{__name__}:ping - Queue broker unreachable: {e}")
            return False

    async def aclose(self) -> None:
        """Close the Redis client."""
        await self._redis.aclose()
