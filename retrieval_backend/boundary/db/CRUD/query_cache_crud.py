"""
Query cache CRUD operations.

Lookup by key, last-write-wins upsert, hit counting and TTL deletion for
QueryCacheModel.

Dependencies: sqlalchemy, retrieval_backend.boundary.db.models.query_cache_model
System role: Query cache persistence
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_backend.boundary.db.base import utcnow
from retrieval_backend.boundary.db.CRUD.base_crud import BaseCRUD
from retrieval_backend.boundary.db.models.query_cache_model import QueryCacheModel

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class QueryCacheCRUD(BaseCRUD[QueryCacheModel]):
    """CRUD operations for QueryCacheModel."""

    def __init__(self) -> None:
        """Initialize QueryCacheCRUD with QueryCacheModel."""
        super().__init__(QueryCacheModel)

    async def get_by_key(self, session: AsyncSession, cache_key: str) -> QueryCacheModel | None:
        """
        Retrieve a cache entry by key.

        Args:
            session: Async database session
            cache_key: sha256 hex of the normalized query

        Returns:
            QueryCacheModel if found, None otherwise
        """
        stmt = (
            select(QueryCacheModel)
            .where(QueryCacheModel.cache_key == cache_key)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(
        self,
        session: AsyncSession,
        cache_key: str,
        query_text: str,
        normalized_query: str,
        analysis: dict[str, Any],
        enhancement: dict[str, Any],
    ) -> None:
        """
        Insert or fully replace the entry for cache_key.

        An overwrite refreshes created_at and resets hit_count, so the TTL
        counts from the latest write. Dialects without ON CONFLICT support
        here fall back to select-then-write inside the caller's transaction.
        """
        now = utcnow()
        values = {
            "query_text": query_text,
            "normalized_query": normalized_query,
            "analysis": analysis,
            "enhancement": enhancement,
            "hit_count": 0,
            "created_at": now,
            "updated_at": now,
        }

        insert_fn = _UPSERT_INSERTS.get(session.get_bind().dialect.name)
        if insert_fn is None:
            await self._replace(session, cache_key, values)
            return

        stmt = insert_fn(QueryCacheModel).values(id=uuid.uuid4(), cache_key=cache_key, **values)
        stmt = stmt.on_conflict_do_update(index_elements=[QueryCacheModel.cache_key], set_=values)
        await session.execute(stmt)

    async def _replace(self, session: AsyncSession, cache_key: str, values: dict[str, Any]) -> None:
        existing = await self.get_by_key(session, cache_key)
        if existing is None:
            await self.create(session, cache_key=cache_key, **values)
            return
        for field, value in values.items():
            setattr(existing, field, value)
        await session.flush()

    async def increment_hit(self, session: AsyncSession, cache_key: str) -> bool:
        """Bump hit_count; False when the entry no longer exists."""
        stmt = (
            update(QueryCacheModel)
            .where(QueryCacheModel.cache_key == cache_key)
            .values(hit_count=QueryCacheModel.hit_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def delete_older_than(self, session: AsyncSession, cutoff: datetime) -> int:
        """
        Delete entries written at or before cutoff.

        Returns:
            Number of deleted entries
        """
        stmt = (
            delete(QueryCacheModel)
            .where(QueryCacheModel.created_at <= cutoff)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0


query_cache_crud = QueryCacheCRUD()
