"""
Job queue configuration settings.

Manages Redis broker connection and ingestion worker pool sizing.

Dependencies: pydantic, pydantic_settings
System role: Queue broker and worker concurrency configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class QueueSettings(BaseSettings):
    """Redis list queue and worker pool configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="REDIS_",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    db: int = Field(default=0, description="Redis database number")
    password: str | None = Field(default=None, description="Redis password")

    queue_name: str = Field(
        default="document_processing",
        description="Redis list holding ingestion jobs",
    )
    poll_timeout: int = Field(
        default=1,
        description="Blocking pop timeout in seconds (lets workers observe shutdown)",
    )
    max_concurrent_jobs: int = Field(
        default=3,
        ge=1,
        description="Number of concurrent ingestion workers",
    )
    error_backoff_seconds: float = Field(
        default=5.0,
        description="Pause after an unexpected worker loop error",
    )

    @property
    def url(self) -> str:
        """
        Construct Redis connection URL.

        Returns:
            str: redis:// URL understood by redis.asyncio.from_url
        """
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"
