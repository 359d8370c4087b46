"""
Job dispatcher.

Claims the oldest eligible queued job and hands it to the external worker.
The dispatcher never changes job status: a claim only hides the job from
other dispatch calls for the lease duration, and a failed invocation
releases it so the next call retries the same job.

Dependencies: retrieval_backend.boundary.db.CRUD, retrieval_backend.boundary.worker
System role: Queue-to-worker hand-off
"""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_backend.boundary.db.CRUD.job_crud import job_crud
from retrieval_backend.configs.jobs import JobSettings
from retrieval_backend.core.exceptions import DispatchFailure
from retrieval_backend.core.internal_auth import verify_bearer_token
from retrieval_backend.observability.correlation import trace_scope

logger = logging.getLogger(__name__)


class JobInvoker(Protocol):
    """Anything that can start a job on a worker (WorkerClient in production)."""

    async def invoke(self, job_id: UUID, trace_id: str | None = None) -> None: ...


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of one dispatch cycle."""

    processed: int
    job_id: UUID | None = None

    @property
    def message(self) -> str:
        if self.processed:
            return "Job dispatched"
        return "No queued jobs"


class JobDispatcher:
    """Performs at most one claim-and-invoke cycle per call."""

    def __init__(
        self,
        db: AsyncSession,
        worker: JobInvoker | None,
        settings: JobSettings | None = None,
    ) -> None:
        """
        Initialize dispatcher.

        Args:
            db: AsyncSession for database operations
            worker: Worker invoker; None when no worker endpoint is configured
            settings: Job settings (defaults from the environment)
        """
        self.db = db
        self.worker = worker
        self.settings = settings or JobSettings()

    def authorize(self, authorization: str | None) -> None:
        """
        Verify the dispatch credential.

        Raises:
            UnauthorizedError: If a secret is configured and the credential does not match
        """
        verify_bearer_token(authorization, self.settings.dispatch_secret)

    async def dispatch_next(self, authorization: str | None = None) -> DispatchResult:
        """
        Claim the oldest queued job and invoke the worker for it.

        Args:
            authorization: Raw Authorization header of the trigger request

        Returns:
            DispatchResult: processed=0 when nothing was queued, 1 with job_id otherwise

        Raises:
            UnauthorizedError: If the credential is rejected (nothing is claimed)
            DispatchFailure: If no worker is configured or the invocation failed
                (the job stays queued and its claim is released)
        """
        self.authorize(authorization)

        if self.worker is None:
            raise DispatchFailure("No worker endpoint configured")

        try:
            job_id = await job_crud.claim_next_queued(
                self.db,
                claimed_by=self.settings.dispatcher_id,
                lease_seconds=self.settings.claim_lease_seconds,
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        if job_id is None:
            logger.debug(f"{__name__}:dispatch_next - No queued jobs")
            return DispatchResult(processed=0)

        job = await job_crud.get_by_id(self.db, job_id)
        trace_id = job.trace_id if job is not None else None

        with trace_scope(trace_id):
            try:
                await self.worker.invoke(job_id, trace_id=trace_id)
            except DispatchFailure as e:
                await self._release(job_id)
                logger.error(
                    f"{__name__}:dispatch_next - Worker invocation failed, job left queued",
                    extra={"job_id": str(job_id), "trace_id": trace_id, "error": e.message},
                )
                raise

            logger.info(
                f"{__name__}:dispatch_next - Job dispatched",
                extra={"job_id": str(job_id), "trace_id": trace_id},
            )
        return DispatchResult(processed=1, job_id=job_id)

    async def _release(self, job_id: UUID) -> None:
        try:
            await job_crud.release_claim(self.db, job_id, self.settings.dispatcher_id)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            # The lease still expires on its own
            logger.error(
                f"{__name__}:_release - Failed to release dispatch claim",
                extra={"job_id": str(job_id), "error": str(e)},
            )
