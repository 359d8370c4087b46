"""
Query cache ORM model.

One row per normalized query: the query analysis (intent and derived
fields) and the enhancement record, so identical questions skip the
expensive analysis/rewrite calls.

Dependencies: sqlalchemy, retrieval_backend.boundary.db.base
System role: Semantic query cache storage
"""

from typing import Any

from sqlalchemy import JSON, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from retrieval_backend.boundary.db.base import Base, TimestampMixin, UUIDMixin


class QueryCacheModel(Base, UUIDMixin, TimestampMixin):
    """
    Query cache ORM model.

    Attributes:
        id: UUID primary key
        cache_key: sha256 hex of the normalized query (unique)
        query_text: Original query as last saved (trimmed)
        normalized_query: Normalized form the key was derived from
        analysis: Opaque analysis result
        enhancement: Enhancement record (enhanced, shouldEnhance, articleNumber, intent)
        hit_count: Lookups served from this entry since it was last written
        created_at: Write timestamp, refreshed on overwrite; TTL reference
        updated_at: Last modification timestamp
    """

    __tablename__ = "query_cache"

    cache_key: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    query_text: Mapped[str] = mapped_column(Text, nullable=False)
    normalized_query: Mapped[str] = mapped_column(Text, nullable=False)
    analysis: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    enhancement: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    hit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
