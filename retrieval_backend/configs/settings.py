"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from retrieval_backend.configs.base import BaseSettings
from retrieval_backend.configs.database import DatabaseSettings
from retrieval_backend.configs.jobs import JobSettings
from retrieval_backend.configs.query_cache import QueryCacheSettings
from retrieval_backend.configs.retrieval import RetrievalSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    jobs: JobSettings = Field(default_factory=JobSettings)
    query_cache: QueryCacheSettings = Field(default_factory=QueryCacheSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from retrieval_backend.configs import get_settings
        settings = get_settings()
    """
    return Settings()
