"""
Job event ORM model.

Append-only audit trail of a job's lifecycle (queued, started, progress,
retry-scheduled, completed, failed). Rows are never updated or deleted
except through the cascade when their job is removed.

Dependencies: sqlalchemy, retrieval_backend.boundary.db.base
System role: Job lifecycle event log
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from retrieval_backend.boundary.db.base import Base, SequenceMixin, UUIDMixin, utcnow


class JobEventType:
    """Event type codes written by the job state machine."""

    QUEUED = "queued"
    STARTED = "started"
    PROGRESS = "progress"
    RETRY_SCHEDULED = "retry-scheduled"
    COMPLETED = "completed"
    FAILED = "failed"


class JobEventModel(Base, UUIDMixin, SequenceMixin):
    """
    Job event ORM model.

    Attributes:
        id: UUID primary key
        job_id: Owning job (cascade delete)
        event_type: Short code (see JobEventType)
        message: Optional human-readable description
        event_metadata: Structured context (includes the job trace_id)
        created_at: Event timestamp (UTC); ordering key together with sequence
    """

    __tablename__ = "async_job_events"
    __table_args__ = (Index("ix_async_job_events_job_order", "job_id", "created_at", "sequence"),)

    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("async_jobs.id", ondelete="CASCADE"),
        nullable=False,
    )
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_metadata: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
