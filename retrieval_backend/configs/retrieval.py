"""
Retrieval configuration settings.

Dependencies: pydantic_settings
System role: Context assembly defaults
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrievalSettings(BaseSettings):
    """Context assembly configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RETRIEVAL_",
        case_sensitive=False,
        extra="ignore",
    )

    relevance_threshold: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Minimum similarity for a search result to reach the context",
    )
    deduplicate_documents: bool = Field(
        default=False,
        description="Keep one chunk per document when building context",
    )
    max_sources: int = Field(default=6, ge=1, description="Citation references returned per answer")
