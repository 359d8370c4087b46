"""
Query cache domain models.

Dependencies: pydantic
System role: Query cache value contracts
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EnhancementData(BaseModel):
    """Query rewrite record stored with a cache entry."""

    model_config = ConfigDict(populate_by_name=True)

    enhanced: str = Field(description="Rewritten query text")
    should_enhance: bool = Field(
        default=False,
        alias="shouldEnhance",
        description="Whether the rewritten text should replace the original",
    )
    article_number: int | None = Field(
        default=None,
        alias="articleNumber",
        description="Article number extracted from the query",
    )
    intent: str | None = Field(default=None, description="Intent tag")


class CacheHit(BaseModel):
    """Result of a successful cache lookup."""

    cache_key: str
    query_text: str
    analysis: dict[str, Any]
    enhancement: EnhancementData
    hit_count: int = Field(description="Lookups served before this one")
    age_seconds: float = Field(description="Seconds since the entry was written")
    is_stale: bool = Field(description="Entry is older than the TTL and awaits cleanup")
