"""
Detached background task runner.

Shared scheduling for fire-and-forget work started from the request path
(cache writes, worker triggers). Every task is bounded by a timeout and
tracked until it finishes; a failure is logged as the subclass's domain
error and never raised to the caller.

Dependencies: asyncio, retrieval_backend.observability.log_utils
System role: Non-blocking side work
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from retrieval_backend.core.exceptions import RetrievalBackendException
from retrieval_backend.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

TaskFactory = Callable[[], Awaitable[Any]]


class BackgroundTaskRunner:
    """
    Base class for fire-and-forget task owners.

    Pending tasks are tracked so the application can drain them on
    shutdown. Once shut down, new tasks are dropped with a warning.

    Attributes:
        label: Prefix for failure messages ("Cache", "Dispatch")
        failure_cls: Domain error a failed task is reported as
    """

    label = "Background"
    failure_cls: type[RetrievalBackendException] = RetrievalBackendException

    def __init__(self, timeout_seconds: float, shutdown_grace_seconds: float) -> None:
        """
        Initialize runner.

        Args:
            timeout_seconds: Upper bound for a single task
            shutdown_grace_seconds: Time pending tasks get on shutdown before cancellation
        """
        self.timeout_seconds = timeout_seconds
        self.shutdown_grace_seconds = shutdown_grace_seconds
        self._pending: set[asyncio.Task] = set()
        self._completed = 0
        self._failed = 0
        self._closed = False

    def _schedule(self, name: str, factory: TaskFactory, **context: Any) -> asyncio.Task | None:
        if self._closed:
            logger.warning(
                f"{__name__}:_schedule - {self.label} runner is shut down, dropping {name}",
                extra={"operation": name, **context},
            )
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                f"{__name__}:_schedule - No running event loop, dropping {name}",
                extra={"operation": name, **context},
            )
            return None

        task = loop.create_task(self._run(name, factory, context))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(self, name: str, factory: TaskFactory, context: dict[str, Any]) -> None:
        timeout = self.timeout_seconds
        details = {"operation": name, **context}
        try:
            await asyncio.wait_for(factory(), timeout=timeout)
        except asyncio.TimeoutError as e:
            self._record_failure(
                self.failure_cls(f"{self.label} {name} timed out after {timeout}s", details=details), e
            )
        except Exception as e:
            self._record_failure(self.failure_cls(f"{self.label} {name} failed: {e}", details=details), e)
        else:
            self._completed += 1

    def _record_failure(self, failure: RetrievalBackendException, cause: BaseException) -> None:
        self._failed += 1
        failure.__cause__ = cause
        log_exception_with_context(
            logger,
            f"{__name__}:_run - {failure.message}",
            failure,
            level=logging.WARNING,
            **failure.details,
        )

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self, timeout: float | None = None) -> bool:
        """
        Wait for pending tasks.

        Args:
            timeout: Maximum seconds to wait (None waits indefinitely)

        Returns:
            bool: True when nothing is left pending
        """
        if not self._pending:
            return True
        _, still_pending = await asyncio.wait(set(self._pending), timeout=timeout)
        return not still_pending

    async def shutdown(self) -> None:
        """Stop accepting tasks, give pending ones a grace period, cancel the rest."""
        self._closed = True
        if await self.drain(self.shutdown_grace_seconds):
            return

        remaining = list(self._pending)
        logger.warning(
            f"{__name__}:shutdown - Cancelling unfinished {self.label.lower()} tasks",
            extra={"pending": len(remaining)},
        )
        for task in remaining:
            task.cancel()
        await asyncio.gather(*remaining, return_exceptions=True)

    def stats(self) -> dict[str, int]:
        """Counters for health reporting."""
        return {
            "pending": len(self._pending),
            "completed": self._completed,
            "failed": self._failed,
        }
