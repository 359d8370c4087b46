"""
Query cache service.

Blocking lookup, last-write-wins save and TTL cleanup for the query
analysis/enhancement cache. Lookups never fail the request path: a storage
error is logged and treated as a miss.

Dependencies: retrieval_backend.boundary.db.CRUD, retrieval_backend.core.query_normalization
System role: Semantic query cache
"""

import logging
from datetime import timedelta
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_backend.boundary.db.base import as_utc, utcnow
from retrieval_backend.boundary.db.CRUD.query_cache_crud import query_cache_crud
from retrieval_backend.configs.query_cache import QueryCacheSettings
from retrieval_backend.core.exceptions import CleanupFailure, ValidationError
from retrieval_backend.core.query_normalization import QueryNormalizer, cache_key, get_normalizer
from retrieval_backend.models.query_cache import CacheHit, EnhancementData
from retrieval_backend.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


class QueryCacheService:
    """
    Query cache service.

    Args:
        db: AsyncSession for database operations
        settings: Cache settings (defaults from the environment)
        normalizer: Key normalization strategy (defaults to settings.normalization)
        hit_recorder: Called with the cache key on every hit; expected not to block
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: QueryCacheSettings | None = None,
        normalizer: QueryNormalizer | None = None,
        hit_recorder: Callable[[str], Any] | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or QueryCacheSettings()
        self.normalizer = normalizer or get_normalizer(self.settings.normalization)
        self.hit_recorder = hit_recorder

    def key_for(self, query: str) -> tuple[str, str]:
        """
        Normalize a query and derive its cache key.

        Returns:
            tuple[str, str]: (normalized query, sha256 hex key)
        """
        normalized = self.normalizer.normalize(query)
        return normalized, cache_key(normalized)

    async def find(self, query: str) -> CacheHit | None:
        """
        Look up a cached analysis for query.

        Entries older than the TTL are still returned (flagged is_stale);
        deleting them is left to cleanup().

        Args:
            query: Raw user query

        Returns:
            CacheHit on hit, None on miss, empty query or storage error
        """
        normalized, key = self.key_for(query)
        if not normalized:
            return None

        try:
            entry = await query_cache_crud.get_by_key(self.db, key)
            if entry is None:
                logger.debug(f"{__name__}:find - Cache miss", extra={"cache_key": key})
                return None

            age_seconds = max((utcnow() - as_utc(entry.created_at)).total_seconds(), 0.0)
            hit = CacheHit(
                cache_key=key,
                query_text=entry.query_text,
                analysis=entry.analysis or {},
                enhancement=EnhancementData.model_validate(entry.enhancement or {}),
                hit_count=entry.hit_count,
                age_seconds=age_seconds,
                is_stale=age_seconds > self.settings.ttl_days * SECONDS_PER_DAY,
            )
        except Exception as e:
            await self.db.rollback()
            log_exception_with_context(
                logger,
                f"{__name__}:find - Cache lookup failed, treating as miss",
                e,
                level=logging.WARNING,
                cache_key=key,
            )
            return None

        if self.hit_recorder is not None:
            self.hit_recorder(key)

        logger.info(
            f"{__name__}:find - Cache hit",
            extra={"cache_key": key, "hit_count": hit.hit_count, "is_stale": hit.is_stale},
        )
        return hit

    async def save(
        self,
        query: str,
        analysis: dict[str, Any],
        enhancement: EnhancementData | dict[str, Any],
    ) -> str:
        """
        Store (or fully replace) the entry for query.

        Args:
            query: Raw user query
            analysis: Analysis result
            enhancement: Enhancement record

        Returns:
            str: Cache key written

        Raises:
            ValidationError: If the query is empty after normalization
        """
        normalized, key = self.key_for(query)
        if not normalized:
            raise ValidationError("Cannot cache an empty query", field="query")

        if not isinstance(enhancement, EnhancementData):
            enhancement = EnhancementData.model_validate(enhancement)

        try:
            await query_cache_crud.upsert(
                self.db,
                cache_key=key,
                query_text=query.strip(),
                normalized_query=normalized,
                analysis=analysis,
                enhancement=enhancement.model_dump(by_alias=True),
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.debug(f"{__name__}:save - Cache entry written", extra={"cache_key": key})
        return key

    async def record_hit(self, cache_key: str) -> bool:
        """Increment the hit counter of an entry."""
        try:
            updated = await query_cache_crud.increment_hit(self.db, cache_key)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return updated

    async def cleanup(self, ttl_days: int | None = None) -> int:
        """
        Delete entries older than the TTL.

        Args:
            ttl_days: Override of the configured TTL

        Returns:
            int: Number of deleted entries

        Raises:
            ValidationError: If ttl_days is negative
            CleanupFailure: If the deletion fails (nothing is deleted)
        """
        ttl = self.settings.ttl_days if ttl_days is None else ttl_days
        if ttl < 0:
            raise ValidationError("ttl_days cannot be negative", field="ttl_days")

        cutoff = utcnow() - timedelta(days=ttl)
        try:
            deleted = await query_cache_crud.delete_older_than(self.db, cutoff)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            log_exception_with_context(
                logger,
                f"{__name__}:cleanup - Cache cleanup failed",
                e,
                ttl_days=ttl,
            )
            raise CleanupFailure(
                "Query cache cleanup failed",
                details={"ttl_days": ttl, "error": str(e)},
            ) from e

        logger.info(
            f"{__name__}:cleanup - Cache cleanup finished",
            extra={"deleted": deleted, "ttl_days": ttl},
        )
        return deleted
