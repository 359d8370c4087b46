"""
Query cache configuration settings.

TTL, fire-and-forget write timeout and key normalization strategy.

Dependencies: pydantic_settings
System role: Semantic query cache configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class QueryCacheSettings(BaseSettings):
    """Query analysis/enhancement cache configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="QUERY_CACHE_",
        case_sensitive=False,
        extra="ignore",
    )

    ttl_days: int = Field(default=7, ge=0, description="Days an entry is kept before cleanup")
    write_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound for a single background cache write",
    )
    shutdown_grace_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Time pending writes get to finish on shutdown before cancellation",
    )
    normalization: str = Field(
        default="exact",
        description="Cache key normalization strategy: 'exact' or 'token_set'",
    )
