"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory SQLite database (engine, session factory, session),
explicit settings objects, search result factories
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import pytest

from retrieval_backend.configs.jobs import JobSettings
from retrieval_backend.configs.query_cache import QueryCacheSettings
from retrieval_backend.models.search import SearchResult


@pytest.fixture
async def test_engine():
    """
    Create in-memory SQLite async engine with all tables.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.

    Yields:
        AsyncEngine: Engine bound to a fresh database
    """
    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import StaticPool

    from retrieval_backend.boundary.db import models  # noqa: F401
    from retrieval_backend.boundary.db.base import Base

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def test_session_factory(test_engine):
    """
    Session factory configured like the application's.

    Returns:
        async_sessionmaker: Factory with expire_on_commit=False
    """
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
async def test_async_db(test_session_factory):
    """
    Create a database session for one test.

    Yields:
        AsyncSession: Test database session with cleanup
    """
    async with test_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def job_settings() -> JobSettings:
    """Job settings independent of the environment."""
    return JobSettings(
        default_max_attempts=3,
        default_queue_name="async_jobs",
        dispatch_secret=None,
        worker_url="http://worker.test/process",
        worker_auth_token="worker-token",
        worker_timeout_seconds=1.0,
        claim_lease_seconds=300,
        dispatcher_id="dispatcher-test",
        retry_policies={
            "ingest-document": "retry",
            "generate-embeddings": "retry",
            "comparison": "fail",
        },
    )


@pytest.fixture
def cache_settings() -> QueryCacheSettings:
    """Query cache settings independent of the environment."""
    return QueryCacheSettings(
        ttl_days=7,
        write_timeout_seconds=1.0,
        shutdown_grace_seconds=0.5,
        normalization="exact",
    )


@pytest.fixture
def make_result():
    """
    Factory for SearchResult instances.

    Returns:
        Callable building a SearchResult from a few fields
    """

    def _make(
        document_id: str,
        similarity: float,
        content: str = "chunk text",
        filename: str | None = "doc.pdf",
    ) -> SearchResult:
        return SearchResult(
            document_id=document_id,
            document_filename=filename,
            content=content,
            similarity=similarity,
        )

    return _make
