"""
Job ORM model.

Durable record of a unit of deferred work (document ingestion, embedding
generation, long comparisons). Holds lifecycle status, retry bookkeeping,
progress, outcome payloads and the dispatch lease used for atomic claims.

Dependencies: sqlalchemy, retrieval_backend.boundary.db.base
System role: Async job tracking for background tasks
"""

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, CheckConstraint, DateTime, Enum, Index, Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from retrieval_backend.boundary.db.base import Base, SequenceMixin, TimestampMixin, UUIDMixin


class JobType(str, enum.Enum):
    """
    Background job types.

    INGEST_DOCUMENT: Parse, chunk and index an uploaded document
    GENERATE_EMBEDDINGS: (Re)compute embeddings for stored chunks
    COMPARISON: Long-running comparative answer synthesis
    """

    INGEST_DOCUMENT = "ingest-document"
    GENERATE_EMBEDDINGS = "generate-embeddings"
    COMPARISON = "comparison"


class JobStatus(str, enum.Enum):
    """
    Job lifecycle states.

    QUEUED: Waiting for a dispatcher/worker pickup (also after a retryable failure)
    PROCESSING: A worker is executing the job
    COMPLETED: Terminal; result holds the worker output
    FAILED: Terminal; error holds the failure payload
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class JobModel(Base, UUIDMixin, TimestampMixin, SequenceMixin):
    """
    Job ORM model.

    Status is only changed through conditional updates issued by JobCRUD so
    that a transition either applies completely or not at all. The dispatch
    lease (claimed_at/claimed_by) is separate from status: a claimed job is
    still QUEUED until its worker starts it.

    Attributes:
        id: UUID primary key (auto-generated)
        job_type: Kind of work (JobType)
        status: Lifecycle status (JobStatus)
        queue_name: Logical lane for work partitioning
        payload: Task input for the worker; never exposed to polling clients
        result: Worker output, set only when COMPLETED
        error: Failure payload, set only when FAILED
        job_metadata: Caller-supplied context, immutable after creation
        progress: Percentage 0-100, non-decreasing while PROCESSING
        attempt_count: Number of times the job entered PROCESSING
        max_attempts: Upper bound for attempt_count
        priority: Urgency hint set by query routing (0 for ordinary work)
        trace_id: Correlation id propagated to events and worker calls
        started_at: First transition to PROCESSING
        completed_at: Terminal transition
        claimed_at: When a dispatcher claimed the job for invocation
        claimed_by: Dispatcher identifier holding the claim
    """

    __tablename__ = "async_jobs"
    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_async_jobs_progress"),
        CheckConstraint("max_attempts > 0", name="ck_async_jobs_max_attempts"),
        CheckConstraint("attempt_count >= 0", name="ck_async_jobs_attempts_non_negative"),
        CheckConstraint("attempt_count <= max_attempts", name="ck_async_jobs_attempts_bounded"),
        CheckConstraint("priority >= 0", name="ck_async_jobs_priority_non_negative"),
        Index("ix_async_jobs_fifo", "status", "created_at", "sequence"),
    )

    job_type: Mapped[JobType] = mapped_column(
        Enum(JobType, native_enum=False, values_callable=_enum_values, length=64),
        nullable=False,
        index=True,
    )

    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, native_enum=False, values_callable=_enum_values, length=32),
        nullable=False,
        default=JobStatus.QUEUED,
        index=True,
    )

    queue_name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    result: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    error: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    job_metadata: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)

    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    priority: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)

    trace_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    claimed_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
