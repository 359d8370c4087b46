"""
Scheduled maintenance entry points.

Cache TTL sweep and one dispatch cycle, each with its own session, for a
scheduler (cron, container job) to call. Failures are logged and turned
into a non-zero exit code; the next scheduled run retries.

Run: python -m retrieval_backend.workers.maintenance [init-db|cleanup-cache|dispatch-once]

Dependencies: retrieval_backend.application.services, retrieval_backend.boundary
System role: Out-of-band hygiene and dispatch scheduling
"""

import asyncio
import logging
import sys

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from retrieval_backend.application.services import DispatchResult, JobDispatcher, QueryCacheService
from retrieval_backend.boundary.db import create_tables, get_async_session_factory
from retrieval_backend.boundary.worker import WorkerClient, build_worker_client
from retrieval_backend.configs import Settings, get_settings
from retrieval_backend.core.exceptions import CleanupFailure, DispatchFailure
from retrieval_backend.observability import configure_logging, trace_scope

logger = logging.getLogger(__name__)


async def run_cache_cleanup(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    settings: Settings | None = None,
) -> int | None:
    """
    Delete expired query cache entries.

    Returns:
        Number of deleted entries, or None when the sweep failed
    """
    settings = settings or get_settings()
    SessionFactory = session_factory or get_async_session_factory()

    with trace_scope():
        async with SessionFactory() as session:
            service = QueryCacheService(session, settings.query_cache)
            try:
                return await service.cleanup()
            except CleanupFailure as e:
                logger.error(
                    f"{__name__}:run_cache_cleanup - Sweep failed, will retry on next run",
                    extra={"error": e.message, "details": e.details},
                )
                return None


async def run_dispatch_cycle(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    settings: Settings | None = None,
    worker: WorkerClient | None = None,
) -> DispatchResult | None:
    """
    Dispatch at most one queued job.

    Runs inside the trusted scheduler, so no credential is checked.

    Returns:
        DispatchResult, or None when the worker could not be invoked
    """
    settings = settings or get_settings()
    SessionFactory = session_factory or get_async_session_factory()

    if worker is None:
        worker = build_worker_client(settings.jobs)

    trusted = settings.jobs.model_copy(update={"dispatch_secret": None})
    with trace_scope():
        async with SessionFactory() as session:
            dispatcher = JobDispatcher(session, worker, trusted)
            try:
                return await dispatcher.dispatch_next()
            except DispatchFailure as e:
                logger.error(
                    f"{__name__}:run_dispatch_cycle - Dispatch failed, job left queued",
                    extra={"error": e.message, "details": e.details},
                )
                return None


def main() -> None:
    """CLI entry point."""
    settings = get_settings()
    configure_logging(settings.log_level)

    command = sys.argv[1] if len(sys.argv) > 1 else "cleanup-cache"

    if command == "init-db":
        asyncio.run(create_tables())
        sys.exit(0)

    elif command == "cleanup-cache":
        deleted = asyncio.run(run_cache_cleanup(settings=settings))
        sys.exit(0 if deleted is not None else 1)

    elif command == "dispatch-once":
        result = asyncio.run(run_dispatch_cycle(settings=settings))
        sys.exit(0 if result is not None else 1)

    else:
        logger.error(f"{__name__}:main - Unknown command: {command}")
        sys.exit(2)


if __name__ == "__main__":
    main()
