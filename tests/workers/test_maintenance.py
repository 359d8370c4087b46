"""
Test suite for scheduled maintenance entry points.

System role: Verification of cache sweep and periodic dispatch
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from retrieval_backend.application.services.job_service import JobService
from retrieval_backend.application.services.query_cache_service import QueryCacheService
from retrieval_backend.boundary.db.base import utcnow
from retrieval_backend.boundary.db.CRUD.query_cache_crud import query_cache_crud
from retrieval_backend.boundary.db.models.job_model import JobType
from retrieval_backend.configs import Settings
from retrieval_backend.configs.jobs import JobSettings
from retrieval_backend.configs.query_cache import QueryCacheSettings
from retrieval_backend.core.exceptions import DispatchFailure
from retrieval_backend.workers.maintenance import run_cache_cleanup, run_dispatch_cycle


@pytest.fixture
def settings(job_settings: JobSettings, cache_settings: QueryCacheSettings) -> Settings:
    """Provide Settings assembled from the explicit test settings."""
    return Settings(jobs=job_settings, query_cache=cache_settings)


class TestRunCacheCleanup:
    """Test suite for run_cache_cleanup()."""

    @pytest.mark.asyncio
    async def test_deletes_expired(self, test_session_factory, settings: Settings) -> None:
        # Arrange
        async with test_session_factory() as session:
            key = await QueryCacheService(session, settings.query_cache).save("old", {}, {"enhanced": "old"})
            entry = await query_cache_crud.get_by_key(session, key)
            entry.created_at = utcnow() - timedelta(days=30)
            await session.commit()

        # Act
        deleted = await run_cache_cleanup(test_session_factory, settings)

        # Assert
        assert deleted == 1

    @pytest.mark.asyncio
    async def test_failure_is_absorbed(self, settings: Settings) -> None:
        # Arrange
        session = AsyncMock()
        session.execute = AsyncMock(side_effect=RuntimeError("db down"))
        factory = MagicMock()
        factory.return_value.__aenter__ = AsyncMock(return_value=session)
        factory.return_value.__aexit__ = AsyncMock(return_value=False)

        # Act
        deleted = await run_cache_cleanup(factory, settings)

        # Assert
        assert deleted is None


class TestRunDispatchCycle:
    """Test suite for run_dispatch_cycle()."""

    @pytest.mark.asyncio
    async def test_dispatches_without_credential(self, test_session_factory, settings: Settings) -> None:
        # Arrange
        secured = Settings(
            jobs=settings.jobs.model_copy(update={"dispatch_secret": "s3cret"}),
            query_cache=settings.query_cache,
        )
        async with test_session_factory() as session:
            job = await JobService(session, secured.jobs).enqueue(JobType.INGEST_DOCUMENT)
        worker = AsyncMock()

        # Act
        result = await run_dispatch_cycle(test_session_factory, secured, worker=worker)

        # Assert
        assert result.processed == 1
        assert result.job_id == job.id
        worker.invoke.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_worker_failure_is_absorbed(self, test_session_factory, settings: Settings) -> None:
        # Arrange
        async with test_session_factory() as session:
            await JobService(session, settings.jobs).enqueue(JobType.INGEST_DOCUMENT)
        worker = AsyncMock()
        worker.invoke.side_effect = DispatchFailure("Worker invocation timed out")

        # Act
        result = await run_dispatch_cycle(test_session_factory, settings, worker=worker)

        # Assert
        assert result is None
