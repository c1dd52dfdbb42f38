"""
Test suite for JobQueue.

Uses an AsyncMock in place of the redis.asyncio client.

System role: Verification of the queue boundary
"""

import json
import uuid
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from docsearch.boundary.queue.job_queue import JobQueue
from docsearch.configs.queue import QueueSettings
from docsearch.core.document_processing.models import IngestionJob
from docsearch.core.exceptions import InvalidJobPayloadError, QueueConnectionError


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Provide mock redis.asyncio client."""
    return AsyncMock()


@pytest.fixture
def queue(mock_redis: AsyncMock) -> JobQueue:
    """Provide JobQueue over the mock client."""
    return JobQueue(mock_redis, "document_processing", poll_timeout=1)


@pytest.fixture
def sample_job() -> IngestionJob:
    """Provide sample job payload."""
    return IngestionJob(
        document_id=uuid.uuid4(),
        file_path="/data/uploads/manual.pdf",
        mime_type="application/pdf",
        retry_count=1,
    )


class TestPush:
    """Test suite for JobQueue.push()."""

    @pytest.mark.asyncio
    async def test_should_lpush_camel_case_payload(
        self,
        queue: JobQueue,
        mock_redis: AsyncMock,
        sample_job: IngestionJob,
    ) -> None:
        # Act
        await queue.push(sample_job)

        # Assert
        key, raw = mock_redis.lpush.await_args.args
        payload = json.loads(raw)
        assert key == "document_processing"
        assert payload["documentId"] == str(sample_job.document_id)
        assert payload["filePath"] == "/data/uploads/manual.pdf"
        assert payload["mimeType"] == "application/pdf"
        assert payload["retryCount"] == 1
        assert "timestamp" in payload
        assert "jobId" not in payload

    @pytest.mark.asyncio
    async def test_connection_error_should_raise_queue_error(
        self,
        queue: JobQueue,
        mock_redis: AsyncMock,
        sample_job: IngestionJob,
    ) -> None:
        mock_redis.lpush.side_effect = RedisConnectionError("refused")

        with pytest.raises(QueueConnectionError):
            await queue.push(sample_job)


class TestPop:
    """Test suite for JobQueue.pop()."""

    @pytest.mark.asyncio
    async def test_should_brpop_and_parse_payload(
        self,
        queue: JobQueue,
        mock_redis: AsyncMock,
        sample_job: IngestionJob,
    ) -> None:
        # Arrange
        mock_redis.brpop.return_value = ("document_processing", sample_job.to_wire())

        # Act
        job = await queue.pop()

        # Assert
        mock_redis.brpop.assert_awaited_once_with(["document_processing"], timeout=1)
        assert job.document_id == sample_job.document_id
        assert job.retry_count == 1

    @pytest.mark.asyncio
    async def test_should_decode_bytes_payload(
        self,
        queue: JobQueue,
        mock_redis: AsyncMock,
        sample_job: IngestionJob,
    ) -> None:
        mock_redis.brpop.return_value = (b"document_processing", sample_job.to_wire().encode())

        job = await queue.pop()

        assert job.document_id == sample_job.document_id

    @pytest.mark.asyncio
    async def test_empty_queue_should_return_none(
        self,
        queue: JobQueue,
        mock_redis: AsyncMock,
    ) -> None:
        mock_redis.brpop.return_value = None

        assert await queue.pop() is None

    @pytest.mark.asyncio
    async def test_socket_timeout_should_return_none(
        self,
        queue: JobQueue,
        mock_redis: AsyncMock,
    ) -> None:
        mock_redis.brpop.side_effect = RedisTimeoutError()

        assert await queue.pop() is None

    @pytest.mark.asyncio
    async def test_connection_error_should_raise_queue_error(
        self,
        queue: JobQueue,
        mock_redis: AsyncMock,
    ) -> None:
        mock_redis.brpop.side_effect = RedisConnectionError("gone")

        with pytest.raises(QueueConnectionError):
            await queue.pop()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["not json", json.dumps({"filePath": "/x"})])
    async def test_malformed_payload_should_raise_invalid_payload(
        self,
        queue: JobQueue,
        mock_redis: AsyncMock,
        raw: str,
    ) -> None:
        mock_redis.brpop.return_value = ("document_processing", raw)

        with pytest.raises(InvalidJobPayloadError):
            await queue.pop()

    @pytest.mark.asyncio
    async def test_should_accept_payload_from_other_producers(
        self,
        queue: JobQueue,
        mock_redis: AsyncMock,
    ) -> None:
        # Arrange
        document_id = uuid.uuid4()
        raw = json.dumps(
            {
                "documentId": str(document_id),
                "filePath": "/uploads/a.docx",
                "mimeType": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                "timestamp": "2024-05-01T10:00:00.000Z",
                "retryCount": 0,
            }
        )
        mock_redis.brpop.return_value = ("document_processing", raw)

        # Act
        job = await queue.pop()

        # Assert
        assert job.document_id == document_id
        assert job.job_id is None


class TestHousekeeping:
    """Test suite for length/ping/from_settings."""

    @pytest.mark.asyncio
    async def test_length_should_use_llen(self, queue: JobQueue, mock_redis: AsyncMock) -> None:
        mock_redis.llen.return_value = 4

        assert await queue.length() == 4

    @pytest.mark.asyncio
    async def test_ping_failure_should_return_false(
        self,
        queue: JobQueue,
        mock_redis: AsyncMock,
    ) -> None:
        mock_redis.ping.side_effect = RedisConnectionError("down")

        assert await queue.ping() is False

    def test_url_should_include_password(self) -> None:
        settings = QueueSettings(host="broker", port=6380, db=2, password="pw")

        assert settings.url == "redis://:pw@broker:6380/2"
