"""
Model service configuration settings.

Settings for the external embedding and generation HTTP service
(Ollama-compatible API), including retry and timeout policy.

Dependencies: pydantic, pydantic_settings
System role: Embedding/generation client configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ModelServiceSettings(BaseSettings):
    """Embedding and generation service configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MODEL_SERVICE_",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = Field(
        default="http://localhost:11434",
        description="Model service base URL",
    )
    api_key: str | None = Field(
        default=None,
        description="Optional bearer token sent with every request",
    )
    embedding_model: str = Field(
        default="nomic-embed-text:latest",
        description="Embedding model name",
    )
    chat_model: str = Field(
        default="llama3.1",
        description="Generation model name",
    )

    embeddings_path: str = Field(default="/api/embeddings", description="Primary embeddings route")
    alternate_embeddings_path: str = Field(
        default="/v1/embeddings",
        description="Embeddings route tried once when the primary returns 404",
    )
    generate_path: str = Field(default="/api/generate", description="Generation route")
    version_path: str = Field(default="/api/version", description="Availability probe route")

    timeout: float = Field(default=60.0, description="Per-request timeout in seconds")
    max_retries: int = Field(
        default=3,
        ge=1,
        description="Maximum attempts per embedding/generation call",
    )
    retry_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Base backoff delay in seconds (doubles per attempt)",
    )
    retry_delay_max: float = Field(default=30.0, description="Backoff ceiling in seconds")
    max_text_length: int = Field(
        default=2000,
        description="Embedding input is truncated to this many characters",
    )
    batch_concurrency: int = Field(
        default=4,
        ge=1,
        description="Concurrent requests used by batch embedding",
    )

    # Generation options
    temperature: float = Field(default=0.7, description="Sampling temperature")
    top_p: float = Field(default=0.9, description="Nucleus sampling threshold")
    max_tokens: int = Field(default=1000, description="Maximum generated tokens")
    stop: list[str] = Field(
        default=["Human:", "User:"],
        description="Stop sequences for generation",
    )
