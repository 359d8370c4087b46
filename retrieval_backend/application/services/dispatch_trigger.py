"""
Immediate dispatch trigger.

Starts one background dispatch cycle right after a job is enqueued so the
worker picks it up without waiting for the scheduled dispatcher. The cycle
goes through the normal claim, so it never bypasses the lease and a failed
trigger only leaves the job queued for the next scheduled run.

Dependencies: sqlalchemy, retrieval_backend.application.services.dispatch_service
System role: Non-blocking worker wake-up
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from retrieval_backend.application.services.background_tasks import BackgroundTaskRunner
from retrieval_backend.application.services.dispatch_service import (
    DispatchResult,
    JobDispatcher,
    JobInvoker,
)
from retrieval_backend.configs.jobs import JobSettings
from retrieval_backend.core.exceptions import DispatchFailure

logger = logging.getLogger(__name__)


class DispatchTrigger(BackgroundTaskRunner):
    """Fire-and-forget dispatch cycles with their own sessions."""

    label = "Dispatch"
    failure_cls = DispatchFailure

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        worker: JobInvoker | None,
        settings: JobSettings | None = None,
    ) -> None:
        """
        Initialize trigger.

        Args:
            session_factory: Factory for the per-cycle sessions
            worker: Worker invoker; None disables the trigger
            settings: Job settings (lease, dispatcher id, trigger timeout)
        """
        settings = settings or JobSettings()
        super().__init__(
            timeout_seconds=settings.trigger_timeout_seconds,
            shutdown_grace_seconds=settings.trigger_shutdown_grace_seconds,
        )
        self.session_factory = session_factory
        self.worker = worker
        # In-process trigger, the dispatch credential does not apply
        self.settings = settings.model_copy(update={"dispatch_secret": None})

    def kick(self, trace_id: str | None = None) -> asyncio.Task | None:
        """
        Schedule one dispatch cycle and return immediately.

        Args:
            trace_id: Trace of the enqueue that caused the kick (for logs)

        Returns:
            The scheduled task, or None when no worker is configured or the trigger is shut down
        """
        if self.worker is None:
            logger.debug(
                f"{__name__}:kick - No worker configured, job waits for scheduled dispatch",
                extra={"trace_id": trace_id},
            )
            return None
        return self._schedule("kick", self._dispatch_once, trace_id=trace_id)

    async def _dispatch_once(self) -> DispatchResult:
        async with self.session_factory() as session:
            dispatcher = JobDispatcher(session, self.worker, self.settings)
            return await dispatcher.dispatch_next()
