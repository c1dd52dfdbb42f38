"""
Ingestion configuration settings.

Chunking parameters, job retry policy and stuck-job monitor schedule.

Dependencies: pydantic, pydantic_settings
System role: Ingestion pipeline and recovery configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IngestionSettings(BaseSettings):
    """Settings for chunking, job retries and stuck-job recovery."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="INGESTION_",
        case_sensitive=False,
        extra="ignore",
    )

    # Chunking settings
    chunk_size: int = Field(default=1000, description="Target fragment size in characters")
    chunk_overlap: int = Field(
        default=200,
        description="Trailing characters of a closed fragment that seed the next one",
    )
    min_chunk_length: int = Field(
        default=50,
        description="Fragments shorter than this after trimming are dropped",
    )

    # Retry policy
    max_retries: int = Field(default=3, ge=0, description="Maximum requeues per document")
    retry_backoff_base: float = Field(
        default=1.0,
        description="Seconds before the first requeue (doubles per retry)",
    )
    retry_backoff_max: float = Field(default=30.0, description="Requeue delay ceiling")

    # Stuck-job monitor
    stuck_threshold_minutes: int = Field(
        default=15,
        description="Pending/processing documents older than this are considered stuck",
    )
    monitor_interval_minutes: float = Field(
        default=15,
        description="Minutes between stuck-job sweeps",
    )
    monitor_batch_size: int = Field(
        default=10,
        description="Maximum documents requeued per sweep",
    )
