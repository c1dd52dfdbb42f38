"""
Shared settings base.

Holds the fields every docsearch process reads regardless of role and
the .env handling inherited by each settings group.

Dependencies: pydantic_settings
System role: Parent class of all settings groups
"""

from pydantic import Field
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict


class BaseSettings(PydanticBaseSettings):
    """Process-wide settings; groups add their own env_prefix."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(
        default="development",
        description="Deployment name shown in the startup log",
    )
    debug: bool = Field(default=False, description="Force DEBUG logging")
    log_level: str = Field(default="INFO", description="Root log level name")

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level
