"""Application services orchestrating domain rules and persistence."""

from retrieval_backend.application.services.async_cache_writer import AsyncCacheWriter
from retrieval_backend.application.services.dispatch_service import DispatchResult, JobDispatcher
from retrieval_backend.application.services.dispatch_trigger import DispatchTrigger
from retrieval_backend.application.services.job_service import JobService
from retrieval_backend.application.services.query_cache_service import QueryCacheService
from retrieval_backend.application.services.query_routing_service import (
    DispatchDecision,
    QueryRoutingService,
)
from retrieval_backend.application.services.retrieval_service import (
    PreparedQuery,
    QueryPreparationService,
)

__all__ = [
    "AsyncCacheWriter",
    "DispatchDecision",
    "DispatchResult",
    "DispatchTrigger",
    "JobDispatcher",
    "JobService",
    "PreparedQuery",
    "QueryCacheService",
    "QueryPreparationService",
    "QueryRoutingService",
]
