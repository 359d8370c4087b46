"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.

Dependencies: fastapi, retrieval_backend.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from retrieval_backend import __version__
from retrieval_backend.application.services import AsyncCacheWriter, DispatchTrigger
from retrieval_backend.boundary.db import get_async_session_factory
from retrieval_backend.boundary.worker import build_worker_client
from retrieval_backend.configs import get_settings
from retrieval_backend.core.query_normalization import get_normalizer
from retrieval_backend.observability import configure_logging
from retrieval_backend.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import health_router, jobs_router, maintenance_router, queries_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Starts the background cache writer and dispatch trigger and drains
    both on shutdown.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    # Startup
    app.state.cache_writer = AsyncCacheWriter(
        session_factory=get_async_session_factory(),
        settings=settings.query_cache,
        normalizer=get_normalizer(settings.query_cache.normalization),
    )
    app.state.dispatch_trigger = DispatchTrigger(
        session_factory=get_async_session_factory(),
        worker=build_worker_client(settings.jobs),
        settings=settings.jobs,
    )
    logger.info(f"{__name__}:lifespan - Cache writer and dispatch trigger started")

    yield

    # Shutdown
    await app.state.dispatch_trigger.shutdown()
    await app.state.cache_writer.shutdown()
    logger.info(
        f"{__name__}:lifespan - Cache writer stopped",
        extra=app.state.cache_writer.stats(),
    )


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="Retrieval Backend API",
        description="Background job tracking and query cache for retrieval-augmented answers",
        version=__version__,
        lifespan=lifespan,
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(jobs_router, prefix="/api/v1")
    app.include_router(maintenance_router, prefix="/api/v1")
    app.include_router(queries_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "retrieval_backend.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
