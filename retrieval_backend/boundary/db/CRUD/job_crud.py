"""
Job CRUD operations.

Provides persistence for JobModel: creation, the atomic dispatch claim and
conditional status updates. Every state-changing method is a single
UPDATE guarded by the expected current state, so concurrent callers can
never both win a transition.

Dependencies: sqlalchemy, retrieval_backend.boundary.db.models.job_model
System role: Job persistence operations for async task tracking
"""

from datetime import datetime, timedelta
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import ColumnElement, DateTime, func, literal, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_backend.boundary.db.base import utcnow
from retrieval_backend.boundary.db.CRUD.base_crud import BaseCRUD
from retrieval_backend.boundary.db.models.job_model import JobModel, JobStatus


class JobCRUD(BaseCRUD[JobModel]):
    """
    CRUD operations for JobModel.

    Conditional methods return True when the guarded UPDATE matched a row
    and False otherwise; callers reload the job to find out why.
    """

    def __init__(self) -> None:
        """Initialize JobCRUD with JobModel."""
        super().__init__(JobModel)

    async def _conditional_update(
        self,
        session: AsyncSession,
        id: UUID,
        conditions: Sequence[ColumnElement[bool]],
        values: dict[str, Any],
    ) -> bool:
        stmt = (
            update(JobModel)
            .where(JobModel.id == id, *conditions)
            .values(**values)
            .returning(JobModel.id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def claim_next_queued(
        self,
        session: AsyncSession,
        claimed_by: str,
        lease_seconds: int,
        now: datetime | None = None,
    ) -> UUID | None:
        """
        Atomically claim the oldest queued job whose lease is free or expired.

        Selection and claim happen in one UPDATE statement. On PostgreSQL the
        candidate row is locked with FOR UPDATE SKIP LOCKED so concurrent
        dispatchers move on to the next row instead of blocking. Job status
        is not changed: the job stays QUEUED until its worker starts it.

        Args:
            session: Async database session
            claimed_by: Dispatcher identifier stamped on the claim
            lease_seconds: Age after which an unstarted claim can be taken again
            now: Claim timestamp (defaults to current UTC time)

        Returns:
            UUID of the claimed job, or None when nothing is eligible
        """
        now = now or utcnow()
        lease_cutoff = now - timedelta(seconds=lease_seconds)
        claimable = or_(JobModel.claimed_at.is_(None), JobModel.claimed_at <= lease_cutoff)

        candidate = (
            select(JobModel.id)
            .where(JobModel.status == JobStatus.QUEUED, claimable)
            .order_by(JobModel.created_at, JobModel.sequence)
            .limit(1)
            .with_for_update(skip_locked=True)
            .scalar_subquery()
        )
        stmt = (
            update(JobModel)
            .where(JobModel.id == candidate, JobModel.status == JobStatus.QUEUED, claimable)
            .values(claimed_at=now, claimed_by=claimed_by)
            .returning(JobModel.id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def release_claim(self, session: AsyncSession, id: UUID, claimed_by: str) -> bool:
        """
        Drop a dispatch claim so the job is immediately eligible again.

        Only releases a claim still held by claimed_by on a QUEUED job.
        """
        return await self._conditional_update(
            session,
            id,
            [JobModel.status == JobStatus.QUEUED, JobModel.claimed_by == claimed_by],
            {"claimed_at": None, "claimed_by": None},
        )

    async def mark_processing(self, session: AsyncSession, id: UUID) -> bool:
        """
        QUEUED -> PROCESSING, consuming one attempt.

        Guarded by attempt_count < max_attempts. Sets started_at on the first
        attempt only, resets progress and clears the dispatch claim.
        """
        now = utcnow()
        return await self._conditional_update(
            session,
            id,
            [
                JobModel.status == JobStatus.QUEUED,
                JobModel.attempt_count < JobModel.max_attempts,
            ],
            {
                "status": JobStatus.PROCESSING,
                "attempt_count": JobModel.attempt_count + 1,
                "started_at": func.coalesce(JobModel.started_at, literal(now, DateTime(timezone=True))),
                "progress": 0,
                "claimed_at": None,
                "claimed_by": None,
            },
        )

    async def update_progress(self, session: AsyncSession, id: UUID, progress: int) -> bool:
        """Set progress on a PROCESSING job without letting it decrease."""
        return await self._conditional_update(
            session,
            id,
            [JobModel.status == JobStatus.PROCESSING, JobModel.progress <= progress],
            {"progress": progress},
        )

    async def mark_completed(
        self,
        session: AsyncSession,
        id: UUID,
        result_data: dict[str, Any],
    ) -> bool:
        """PROCESSING -> COMPLETED with result."""
        return await self._conditional_update(
            session,
            id,
            [JobModel.status == JobStatus.PROCESSING],
            {
                "status": JobStatus.COMPLETED,
                "result": result_data,
                "progress": 100,
                "completed_at": utcnow(),
            },
        )

    async def mark_failed(
        self,
        session: AsyncSession,
        id: UUID,
        error_details: dict[str, Any],
        expected_attempt_count: int,
    ) -> bool:
        """PROCESSING -> FAILED with error details."""
        return await self._conditional_update(
            session,
            id,
            [
                JobModel.status == JobStatus.PROCESSING,
                JobModel.attempt_count == expected_attempt_count,
            ],
            {
                "status": JobStatus.FAILED,
                "error": error_details,
                "completed_at": utcnow(),
            },
        )

    async def requeue_for_retry(
        self,
        session: AsyncSession,
        id: UUID,
        expected_attempt_count: int,
    ) -> bool:
        """PROCESSING -> QUEUED after a retryable failure with attempts left."""
        return await self._conditional_update(
            session,
            id,
            [
                JobModel.status == JobStatus.PROCESSING,
                JobModel.attempt_count == expected_attempt_count,
                JobModel.attempt_count < JobModel.max_attempts,
            ],
            {"status": JobStatus.QUEUED, "progress": 0},
        )


job_crud = JobCRUD()
