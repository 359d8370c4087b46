"""
Query preparation orchestrator.

Request-path flow ahead of answer generation: cached query analysis (or a
fresh one persisted in the background), vector search, relevance filtering
and context assembly.

Dependencies: retrieval_backend.application.services, retrieval_backend.core.context_assembler
System role: Retrieval use case orchestration
"""

import logging
from typing import Any, Protocol

from pydantic import BaseModel, Field

from retrieval_backend.application.services.async_cache_writer import AsyncCacheWriter
from retrieval_backend.application.services.query_cache_service import QueryCacheService
from retrieval_backend.configs.retrieval import RetrievalSettings
from retrieval_backend.core.context_assembler import (
    build_context,
    build_sources,
    calculate_average_similarity,
    deduplicate_by_document,
    extract_unique_document_names,
    filter_relevant_results,
)
from retrieval_backend.models.query_cache import EnhancementData
from retrieval_backend.models.search import SearchResult, SourceReference

logger = logging.getLogger(__name__)


class QueryAnalyzer(Protocol):
    """Produces the analysis and enhancement record for a query (LLM-backed)."""

    async def analyze(self, query: str) -> tuple[dict[str, Any], EnhancementData]: ...


class VectorSearchClient(Protocol):
    """Returns ranked search results for a query."""

    async def search(self, query: str) -> list[SearchResult]: ...


class PreparedQuery(BaseModel):
    """Everything answer generation needs for one query."""

    query: str
    search_query: str = Field(description="Query text sent to vector search")
    analysis: dict[str, Any]
    enhancement: EnhancementData
    cache_hit: bool
    results: list[SearchResult]
    context: str
    sources: list[SourceReference]
    document_names: list[str]
    average_similarity: float


class QueryPreparationService:
    """Query preparation orchestrator."""

    def __init__(
        self,
        cache: QueryCacheService,
        cache_writer: AsyncCacheWriter,
        analyzer: QueryAnalyzer,
        search_client: VectorSearchClient,
        settings: RetrievalSettings | None = None,
    ) -> None:
        """
        Initialize query preparation.

        Args:
            cache: Blocking cache lookups
            cache_writer: Background cache persistence
            analyzer: Query analysis collaborator
            search_client: Vector search collaborator
            settings: Retrieval settings (threshold, dedup, source limit)
        """
        self.cache = cache
        self.cache_writer = cache_writer
        self.analyzer = analyzer
        self.search_client = search_client
        self.settings = settings or RetrievalSettings()

    async def _analyze(self, query: str) -> tuple[dict[str, Any], EnhancementData, bool]:
        hit = await self.cache.find(query)
        if hit is not None:
            return hit.analysis, hit.enhancement, True

        analysis, enhancement = await self.analyzer.analyze(query)
        self.cache_writer.save(query, analysis, enhancement)
        return analysis, enhancement, False

    async def prepare(self, query: str, deduplicate_documents: bool | None = None) -> PreparedQuery:
        """
        Analyze, search and assemble context for a query.

        Args:
            query: Raw user query
            deduplicate_documents: Override of the configured dedup behaviour

        Returns:
            PreparedQuery: Context string, sources and diagnostics
        """
        analysis, enhancement, cache_hit = await self._analyze(query)

        search_query = query
        if enhancement.should_enhance and enhancement.enhanced.strip():
            search_query = enhancement.enhanced

        raw_results = await self.search_client.search(search_query)
        relevant = filter_relevant_results(raw_results, self.settings.relevance_threshold)

        dedup = self.settings.deduplicate_documents if deduplicate_documents is None else deduplicate_documents
        ordered = deduplicate_by_document(relevant) if dedup else relevant

        logger.info(
            f"{__name__}:prepare - Query prepared",
            extra={
                "cache_hit": cache_hit,
                "retrieved": len(raw_results),
                "relevant": len(relevant),
                "used": len(ordered),
            },
        )

        return PreparedQuery(
            query=query,
            search_query=search_query,
            analysis=analysis,
            enhancement=enhancement,
            cache_hit=cache_hit,
            results=ordered,
            context=build_context(ordered),
            sources=build_sources(ordered, self.settings.max_sources),
            document_names=extract_unique_document_names(ordered),
            average_similarity=calculate_average_similarity(ordered),
        )
