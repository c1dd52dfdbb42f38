"""
Ingestion job message schema.

Validates messages popped from the Redis job queue. The wire format uses
camelCase keys; Python code uses snake_case attributes.

Dependencies: pydantic
System role: Data validation and contract definition for queued jobs
"""

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class IngestionJob(BaseModel):
    """Queue payload asking a worker to ingest one document."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "documentId": "550e8400-e29b-41d4-a716-446655440000",
                "filePath": "/data/uploads/manual.pdf",
                "mimeType": "application/pdf",
                "timestamp": "2024-01-01T00:00:00+00:00",
                "retryCount": 0,
            }
        },
    )

    document_id: UUID = Field(alias="documentId")
    file_path: str = Field(alias="filePath")
    mime_type: str = Field(alias="mimeType")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the job was enqueued",
    )
    retry_count: int = Field(default=0, ge=0, alias="retryCount")
    job_id: UUID | None = Field(default=None, alias="jobId", description="ProcessingJob row, if known")

    def to_wire(self) -> str:
        """Serialize with camelCase keys for the queue."""
        return self.model_dump_json(by_alias=True, exclude_none=True)

    def with_retry(self, retry_count: int) -> "IngestionJob":
        """Copy of this job carrying a new retry count and timestamp."""
        return self.model_copy(
            update={"retry_count": retry_count, "timestamp": datetime.now(timezone.utc)}
        )
