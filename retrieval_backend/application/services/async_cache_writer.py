"""
Fire-and-forget cache writer.

Schedules cache writes as detached asyncio tasks so the request path never
waits on them. Each task opens its own session, is bounded by its own
timeout and logs its failure as CacheWriteFailure instead of raising.

Dependencies: sqlalchemy, retrieval_backend.application.services.background_tasks
System role: Non-blocking cache persistence
"""

import asyncio
from typing import Any, Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from retrieval_backend.application.services.background_tasks import BackgroundTaskRunner
from retrieval_backend.application.services.query_cache_service import QueryCacheService
from retrieval_backend.configs.query_cache import QueryCacheSettings
from retrieval_backend.core.exceptions import CacheWriteFailure
from retrieval_backend.core.query_normalization import QueryNormalizer
from retrieval_backend.models.query_cache import EnhancementData

CacheOperation = Callable[[QueryCacheService], Awaitable[Any]]


class AsyncCacheWriter(BackgroundTaskRunner):
    """Background writer for the query cache."""

    label = "Cache"
    failure_cls = CacheWriteFailure

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: QueryCacheSettings | None = None,
        normalizer: QueryNormalizer | None = None,
    ) -> None:
        """
        Initialize writer.

        Args:
            session_factory: Factory for the per-write sessions
            settings: Cache settings (timeout, shutdown grace)
            normalizer: Key normalization shared with the request-path service
        """
        self.settings = settings or QueryCacheSettings()
        super().__init__(
            timeout_seconds=self.settings.write_timeout_seconds,
            shutdown_grace_seconds=self.settings.shutdown_grace_seconds,
        )
        self.session_factory = session_factory
        self.normalizer = normalizer

    def save(
        self,
        query: str,
        analysis: dict[str, Any],
        enhancement: EnhancementData | dict[str, Any],
    ) -> asyncio.Task | None:
        """
        Schedule a cache save and return immediately.

        Returns:
            The scheduled task, or None when the write was dropped
        """
        return self._schedule(
            "save",
            lambda: self._execute(lambda service: service.save(query, analysis, enhancement)),
            query_length=len(query),
        )

    def record_hit(self, cache_key: str) -> asyncio.Task | None:
        """Schedule a hit-counter increment."""
        return self._schedule(
            "record_hit",
            lambda: self._execute(lambda service: service.record_hit(cache_key)),
            cache_key=cache_key,
        )

    async def _execute(self, operation: CacheOperation) -> Any:
        async with self.session_factory() as session:
            service = QueryCacheService(session, self.settings, self.normalizer)
            return await operation(service)
