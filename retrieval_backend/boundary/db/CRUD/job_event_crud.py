"""
Job event CRUD operations.

Append-only access to the job event log.

Dependencies: sqlalchemy, retrieval_backend.boundary.db.models.job_event_model
System role: Job lifecycle event persistence
"""

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_backend.boundary.db.CRUD.base_crud import BaseCRUD
from retrieval_backend.boundary.db.models.job_event_model import JobEventModel


class JobEventCRUD(BaseCRUD[JobEventModel]):
    """CRUD operations for JobEventModel."""

    def __init__(self) -> None:
        """Initialize JobEventCRUD with JobEventModel."""
        super().__init__(JobEventModel)

    async def append(
        self,
        session: AsyncSession,
        job_id: UUID,
        event_type: str,
        message: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> JobEventModel:
        """
        Append an event to a job's log.

        Args:
            session: Async database session
            job_id: Owning job
            event_type: Event code (see JobEventType)
            message: Optional description
            metadata: Structured context

        Returns:
            Created JobEventModel
        """
        return await self.create(
            session,
            job_id=job_id,
            event_type=event_type,
            message=message,
            event_metadata=metadata,
        )

    async def list_for_job(self, session: AsyncSession, job_id: UUID) -> Sequence[JobEventModel]:
        """Events of one job in insertion order."""
        stmt = (
            select(JobEventModel)
            .where(JobEventModel.job_id == job_id)
            .order_by(JobEventModel.created_at, JobEventModel.sequence)
        )
        result = await session.execute(stmt)
        return result.scalars().all()


job_event_crud = JobEventCRUD()
