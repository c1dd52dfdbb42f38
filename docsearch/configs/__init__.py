"""
docsearch configuration.

pydantic-settings groups read from the environment and .env; use
get_settings() for the cached process-wide instance.
"""

from docsearch.configs.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
