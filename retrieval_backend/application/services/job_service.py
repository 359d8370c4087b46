"""
Job service orchestrator.

Drives the job state machine: enqueue, start, progress, complete and fail.
Each transition is one guarded UPDATE plus its lifecycle event, committed
together; an illegal transition leaves the stored job untouched.

Dependencies: retrieval_backend.boundary.db.CRUD, retrieval_backend.core.job_state
System role: Job lifecycle orchestration
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_backend.boundary.db.CRUD.job_crud import job_crud
from retrieval_backend.boundary.db.CRUD.job_event_crud import job_event_crud
from retrieval_backend.boundary.db.models.job_event_model import JobEventType
from retrieval_backend.boundary.db.models.job_model import JobModel, JobStatus, JobType
from retrieval_backend.configs.jobs import JobSettings
from retrieval_backend.core.exceptions import (
    InvalidStateTransitionError,
    JobNotFoundError,
    ValidationError,
)
from retrieval_backend.core.job_state import (
    RetryPolicy,
    next_status_after_failure,
    resolve_retry_policy,
    validate_progress,
)
from retrieval_backend.models.job import JobEventResponse, JobResponse, JobStatusResponse
from retrieval_backend.observability.correlation import resolve_trace_id
from retrieval_backend.observability.log_utils import job_log_context

logger = logging.getLogger(__name__)


class JobService:
    """
    Job service orchestrator.

    Only workers call the transition methods; the dispatcher never changes
    job status.
    """

    def __init__(self, db: AsyncSession, settings: JobSettings | None = None) -> None:
        """
        Initialize job service.

        Args:
            db: AsyncSession for database operations
            settings: Job settings (defaults from the environment)
        """
        self.db = db
        self.settings = settings or JobSettings()

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[None]:
        try:
            yield
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def _require_job(self, job_id: UUID) -> JobModel:
        job = await job_crud.get_by_id(self.db, job_id)
        if job is None:
            raise JobNotFoundError(str(job_id))
        return job

    async def _reject_transition(self, job_id: UUID, target: JobStatus) -> None:
        """Raise the error explaining why a guarded update matched nothing."""
        job = await self._require_job(job_id)
        logger.warning(
            f"{__name__}:_reject_transition - Illegal job transition",
            extra={
                "job_id": str(job_id),
                "current_status": job.status.value,
                "target_status": target.value,
            },
        )
        raise InvalidStateTransitionError(
            str(job_id),
            job.status.value,
            target.value,
            details={"attempt_count": job.attempt_count, "max_attempts": job.max_attempts},
        )

    async def _record_event(
        self,
        job: JobModel,
        event_type: str,
        message: str | None = None,
        **metadata: Any,
    ) -> None:
        await job_event_crud.append(
            self.db,
            job.id,
            event_type,
            message=message,
            metadata={"trace_id": job.trace_id, **metadata},
        )

    async def enqueue(
        self,
        job_type: JobType | str,
        metadata: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
        max_attempts: int | None = None,
        queue_name: str | None = None,
        trace_id: str | None = None,
        priority: int = 0,
        reason: str | None = None,
        event_metadata: dict[str, Any] | None = None,
    ) -> JobModel:
        """
        Create a queued job.

        Args:
            job_type: Job type (JobType or its string value)
            metadata: Caller context, immutable afterwards
            payload: Task input handed to the worker
            max_attempts: Attempt budget (defaults from settings)
            queue_name: Logical lane (defaults from settings)
            trace_id: Correlation id (defaults to the request correlation id)
            priority: Urgency hint recorded on the job (higher is more urgent)
            reason: Why the job was queued, recorded on the queued event
            event_metadata: Extra fields for the queued event (routing heuristics)

        Returns:
            JobModel: Created job in QUEUED status

        Raises:
            ValidationError: If job_type is unknown, max_attempts < 1 or priority is negative
        """
        try:
            resolved_type = JobType(job_type)
        except ValueError as e:
            raise ValidationError(
                f"Unknown job type: {job_type}",
                field="job_type",
                details={"allowed": [t.value for t in JobType]},
            ) from e

        attempts = self.settings.default_max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValidationError(
                "max_attempts must be at least 1",
                field="max_attempts",
                details={"max_attempts": attempts},
            )
        if priority < 0:
            raise ValidationError(
                "priority cannot be negative",
                field="priority",
                details={"priority": priority},
            )

        async with self._transaction():
            job = await job_crud.create(
                self.db,
                job_type=resolved_type,
                status=JobStatus.QUEUED,
                queue_name=queue_name or self.settings.default_queue_name,
                job_metadata=metadata,
                payload=payload,
                progress=0,
                attempt_count=0,
                max_attempts=attempts,
                priority=priority,
                trace_id=resolve_trace_id(trace_id),
            )
            await self._record_event(
                job,
                JobEventType.QUEUED,
                f"Job queued via {reason}" if reason else "Job queued",
                **{**(event_metadata or {}), "queue": job.queue_name, "priority": job.priority},
            )

        logger.info(
            f"{__name__}:enqueue - Job queued",
            extra=job_log_context(job, priority=job.priority, reason=reason),
        )
        return job

    async def start(self, job_id: UUID) -> JobModel:
        """
        QUEUED -> PROCESSING.

        Raises:
            JobNotFoundError: If the job does not exist
            InvalidStateTransitionError: If the job is not queued or has no attempts left
        """
        async with self._transaction():
            if not await job_crud.mark_processing(self.db, job_id):
                await self._reject_transition(job_id, JobStatus.PROCESSING)
            job = await self._require_job(job_id)
            await self._record_event(
                job,
                JobEventType.STARTED,
                f"Attempt {job.attempt_count} of {job.max_attempts} started",
                attempt=job.attempt_count,
            )

        logger.info(
            f"{__name__}:start - Job started",
            extra=job_log_context(job),
        )
        return job

    async def report_progress(
        self,
        job_id: UUID,
        progress: int,
        message: str | None = None,
    ) -> JobModel:
        """
        Record progress of a PROCESSING job.

        Raises:
            JobNotFoundError: If the job does not exist
            InvalidStateTransitionError: If the job is not processing
            ValidationError: If progress is outside 0-100 or decreases
        """
        async with self._transaction():
            job = await self._require_job(job_id)
            if job.status != JobStatus.PROCESSING:
                await self._reject_transition(job_id, JobStatus.PROCESSING)
            validate_progress(job.progress, progress)

            if not await job_crud.update_progress(self.db, job_id, progress):
                current = await self._require_job(job_id)
                if current.status != JobStatus.PROCESSING:
                    await self._reject_transition(job_id, JobStatus.PROCESSING)
                validate_progress(current.progress, progress)

            job = await self._require_job(job_id)
            await self._record_event(job, JobEventType.PROGRESS, message, progress=progress)

        return job

    async def complete(self, job_id: UUID, result: dict[str, Any] | None = None) -> JobModel:
        """
        PROCESSING -> COMPLETED.

        Raises:
            JobNotFoundError: If the job does not exist
            InvalidStateTransitionError: If the job is not processing
        """
        async with self._transaction():
            if not await job_crud.mark_completed(self.db, job_id, result or {}):
                await self._reject_transition(job_id, JobStatus.COMPLETED)
            job = await self._require_job(job_id)
            await self._record_event(
                job, JobEventType.COMPLETED, "Job completed", attempt=job.attempt_count
            )

        logger.info(
            f"{__name__}:complete - Job completed",
            extra=job_log_context(job),
        )
        return job

    async def fail(
        self,
        job_id: UUID,
        error: dict[str, Any],
        retryable: bool | None = None,
    ) -> JobModel:
        """
        Record a failed attempt.

        A retryable failure with attempts left puts the job back in QUEUED;
        anything else ends it in FAILED. When retryable is None the job
        type's retry policy decides.

        Args:
            job_id: Job UUID
            error: Failure payload stored on the job when it ends FAILED
            retryable: Explicit override of the retry policy

        Returns:
            JobModel: Job after the transition (QUEUED or FAILED)

        Raises:
            JobNotFoundError: If the job does not exist
            InvalidStateTransitionError: If the job is not processing
        """
        async with self._transaction():
            job = await self._require_job(job_id)
            if job.status != JobStatus.PROCESSING:
                await self._reject_transition(job_id, JobStatus.FAILED)

            if retryable is None:
                policy = resolve_retry_policy(job.job_type.value, self.settings.retry_policies)
                retryable = policy == RetryPolicy.RETRY

            observed_attempts = job.attempt_count
            target = next_status_after_failure(observed_attempts, job.max_attempts, retryable)

            if target == JobStatus.QUEUED:
                applied = await job_crud.requeue_for_retry(self.db, job_id, observed_attempts)
            else:
                applied = await job_crud.mark_failed(self.db, job_id, error, observed_attempts)
            if not applied:
                await self._reject_transition(job_id, target)

            job = await self._require_job(job_id)
            if target == JobStatus.QUEUED:
                await self._record_event(
                    job,
                    JobEventType.RETRY_SCHEDULED,
                    f"Attempt {observed_attempts} failed, retry scheduled",
                    attempt=observed_attempts,
                    error=error,
                )
            else:
                await self._record_event(
                    job,
                    JobEventType.FAILED,
                    f"Attempt {observed_attempts} failed",
                    attempt=observed_attempts,
                    retryable=retryable,
                    error=error,
                )

        logger.warning(
            f"{__name__}:fail - Job attempt failed",
            extra=job_log_context(job, failed_attempt=observed_attempts, retryable=retryable),
        )
        return job

    async def get_job_status(self, job_id: UUID) -> JobStatusResponse:
        """
        Get job status details for polling.

        Args:
            job_id: Job UUID

        Returns:
            JobStatusResponse: Job projection (without payload) and ordered events

        Raises:
            JobNotFoundError: If job doesn't exist
        """
        job = await self._require_job(job_id)
        events = await job_event_crud.list_for_job(self.db, job_id)
        return JobStatusResponse(
            job=JobResponse.model_validate(job),
            events=[JobEventResponse.model_validate(event) for event in events],
        )
