"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: retrieval_backend.configs, retrieval_backend.application, retrieval_backend.boundary
System role: DI container for service injection
"""

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_backend.application.services import (
    AsyncCacheWriter,
    DispatchTrigger,
    JobDispatcher,
    JobService,
    QueryCacheService,
    QueryRoutingService,
)
from retrieval_backend.boundary.db import get_async_db
from retrieval_backend.boundary.worker import WorkerClient, build_worker_client
from retrieval_backend.configs import Settings, get_settings
from retrieval_backend.core.exceptions import UnauthorizedError
from retrieval_backend.core.internal_auth import verify_bearer_token


def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def require_internal_token(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings_dependency),
) -> None:
    """
    Guard internal endpoints (enqueue, worker callbacks, maintenance).

    Raises:
        HTTPException(401): If a secret is configured and the bearer token does not match
    """
    try:
        verify_bearer_token(authorization, settings.jobs.dispatch_secret)
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))


def get_cache_writer(request: Request) -> AsyncCacheWriter:
    """
    Get the application-wide background cache writer.

    Created in the application lifespan and stored on app.state.
    """
    return request.app.state.cache_writer


def get_worker_client(settings: Settings = Depends(get_settings_dependency)) -> WorkerClient | None:
    """
    Get worker client for the configured processing endpoint.

    Returns:
        WorkerClient, or None when JOBS_WORKER_URL is not set
    """
    return build_worker_client(settings.jobs)


def get_job_service(
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(get_settings_dependency),
) -> JobService:
    """
    Get job service instance.

    Args:
        db: Async database session (injected via Depends)
        settings: Application settings (injected via Depends)

    Returns:
        JobService: Job service instance
    """
    return JobService(db=db, settings=settings.jobs)


def get_job_dispatcher(
    db: AsyncSession = Depends(get_async_db),
    worker: WorkerClient | None = Depends(get_worker_client),
    settings: Settings = Depends(get_settings_dependency),
) -> JobDispatcher:
    """
    Get job dispatcher instance.

    Returns:
        JobDispatcher: Dispatcher bound to the request session
    """
    return JobDispatcher(db=db, worker=worker, settings=settings.jobs)


def get_query_cache_service(
    request: Request,
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(get_settings_dependency),
) -> QueryCacheService:
    """
    Get query cache service instance.

    Hits are counted through the background cache writer.

    Returns:
        QueryCacheService: Cache service bound to the request session
    """
    writer = get_cache_writer(request)
    return QueryCacheService(
        db=db,
        settings=settings.query_cache,
        normalizer=writer.normalizer,
        hit_recorder=writer.record_hit,
    )


def get_dispatch_trigger(request: Request) -> DispatchTrigger | None:
    """
    Get the application-wide dispatch trigger.

    Created in the application lifespan; None when the app runs without one.
    """
    return getattr(request.app.state, "dispatch_trigger", None)


def get_query_routing_service(
    job_service: JobService = Depends(get_job_service),
    trigger: DispatchTrigger | None = Depends(get_dispatch_trigger),
) -> QueryRoutingService:
    """
    Get query routing service instance.

    Returns:
        QueryRoutingService: Routing bound to the request's job service
    """
    return QueryRoutingService(job_service=job_service, trigger=trigger)
