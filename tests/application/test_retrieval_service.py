"""
Test suite for QueryPreparationService.

Uses mocked cache, cache writer, analyzer and vector search.

System role: Verification of retrieval use case orchestration
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from retrieval_backend.application.services.retrieval_service import QueryPreparationService
from retrieval_backend.configs.retrieval import RetrievalSettings
from retrieval_backend.models.query_cache import CacheHit, EnhancementData


@pytest.fixture
def mock_cache() -> AsyncMock:
    """Provide mock QueryCacheService (miss by default)."""
    cache = AsyncMock()
    cache.find = AsyncMock(return_value=None)
    return cache


@pytest.fixture
def mock_writer() -> MagicMock:
    """Provide mock AsyncCacheWriter."""
    return MagicMock()


@pytest.fixture
def mock_analyzer() -> AsyncMock:
    """Provide mock query analyzer."""
    analyzer = AsyncMock()
    analyzer.analyze = AsyncMock(
        return_value=(
            {"intent": "article_lookup"},
            EnhancementData(enhanced="labour code article 5", should_enhance=True, article_number=5),
        )
    )
    return analyzer


@pytest.fixture
def mock_search(make_result) -> AsyncMock:
    """Provide mock vector search returning mixed-relevance results."""
    search = AsyncMock()
    search.search = AsyncMock(
        return_value=[
            make_result("a", 0.9, "a-best", "a.pdf"),
            make_result("a", 0.7, "a-other", "a.pdf"),
            make_result("b", 0.6, "b-only", "b.pdf"),
            make_result("c", 0.2, "c-noise", "c.pdf"),
        ]
    )
    return search


@pytest.fixture
def service(mock_cache, mock_writer, mock_analyzer, mock_search) -> QueryPreparationService:
    """Provide QueryPreparationService with default retrieval settings."""
    return QueryPreparationService(
        cache=mock_cache,
        cache_writer=mock_writer,
        analyzer=mock_analyzer,
        search_client=mock_search,
        settings=RetrievalSettings(relevance_threshold=0.4, deduplicate_documents=False, max_sources=6),
    )


class TestPrepare:
    """Test suite for QueryPreparationService.prepare()."""

    @pytest.mark.asyncio
    async def test_cache_miss_analyzes_and_schedules_save(
        self, service, mock_analyzer, mock_writer, mock_search
    ) -> None:
        # Act
        prepared = await service.prepare("What is article 5?")

        # Assert
        assert prepared.cache_hit is False
        mock_analyzer.analyze.assert_awaited_once_with("What is article 5?")
        mock_writer.save.assert_called_once()
        mock_search.search.assert_awaited_once_with("labour code article 5")
        assert prepared.search_query == "labour code article 5"

    @pytest.mark.asyncio
    async def test_cache_hit_skips_analyzer(self, service, mock_cache, mock_analyzer, mock_writer) -> None:
        # Arrange
        mock_cache.find.return_value = CacheHit(
            cache_key="k",
            query_text="q",
            analysis={"intent": "cached"},
            enhancement=EnhancementData(enhanced="ignored", should_enhance=False),
            hit_count=3,
            age_seconds=10.0,
            is_stale=False,
        )

        # Act
        prepared = await service.prepare("q")

        # Assert
        assert prepared.cache_hit is True
        assert prepared.analysis == {"intent": "cached"}
        assert prepared.search_query == "q"
        mock_analyzer.analyze.assert_not_called()
        mock_writer.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_filters_below_threshold(self, service) -> None:
        # Act
        prepared = await service.prepare("q")

        # Assert
        assert [r.content for r in prepared.results] == ["a-best", "a-other", "b-only"]
        assert prepared.context.count("[Document") == 3
        assert prepared.document_names == ["a.pdf", "b.pdf"]
        assert prepared.average_similarity == pytest.approx((0.9 + 0.7 + 0.6) / 3)

    @pytest.mark.asyncio
    async def test_dedup_override(self, service) -> None:
        # Act
        prepared = await service.prepare("q", deduplicate_documents=True)

        # Assert
        assert [r.content for r in prepared.results] == ["a-best", "b-only"]
        assert [s.index for s in prepared.sources] == [1, 2]
        assert prepared.context.startswith("[Document 1: a.pdf]\na-best")
