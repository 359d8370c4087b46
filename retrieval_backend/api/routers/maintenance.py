"""
Maintenance API endpoints.

Routes: POST /maintenance/cache-cleanup

Dependencies: retrieval_backend.application.services
System role: Out-of-band hygiene triggers
"""

from fastapi import APIRouter, Depends, Query

from retrieval_backend.api.deps import get_query_cache_service, require_internal_token
from retrieval_backend.api.routers.error_handling import handle_job_errors
from retrieval_backend.application.services.query_cache_service import QueryCacheService
from retrieval_backend.models.job import CleanupResponse

router = APIRouter(
    prefix="/maintenance",
    tags=["maintenance"],
    dependencies=[Depends(require_internal_token)],
)


@router.post("/cache-cleanup", response_model=CleanupResponse)
@handle_job_errors
async def cleanup_query_cache(
    ttl_days: int | None = Query(default=None, ge=0),
    cache_service: QueryCacheService = Depends(get_query_cache_service),
) -> CleanupResponse:
    """
    Delete query cache entries older than the TTL.

    Raises:
        HTTPException(500): Cleanup failed; nothing was deleted
    """
    ttl = cache_service.settings.ttl_days if ttl_days is None else ttl_days
    deleted = await cache_service.cleanup(ttl)
    return CleanupResponse(deleted=deleted, ttl_days=ttl)
