"""
Chunk store connection settings.

Read from POSTGRES_* variables. POSTGRES_URL_OVERRIDE accepts any async
SQLAlchemy URL, which lets tests and local runs point at SQLite.

Dependencies: pydantic, pydantic_settings
System role: Engine configuration for docsearch.boundary.db
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from docsearch.configs.base import BaseSettings


class DatabaseSettings(BaseSettings):
    """Where the documents/document_chunks tables live and how to pool connections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="POSTGRES_",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: str = "postgres"
    db: str = "docsearch"
    sslmode: str = Field(default="disable", description="'require' enables TLS for asyncpg")

    pool_size: int = Field(default=10, ge=1)
    max_overflow: int = Field(default=20, ge=0)
    pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    echo_sql: bool = False

    url_override: str | None = Field(
        default=None,
        description="Complete async URL used instead of the host/port/user fields",
    )

    @property
    def async_database_url(self) -> str:
        """asyncpg URL built from the fields above, unless url_override is set."""
        if self.url_override:
            return self.url_override
        query = "?ssl=require" if self.sslmode == "require" else ""
        return (
            f"postgresql+asyncpg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.db}{query}"
        )
