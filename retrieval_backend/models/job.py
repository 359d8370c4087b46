"""
Job domain models and schemas.

Request/response schemas for job tracking, worker callbacks and the
dispatch trigger.

Dependencies: pydantic
System role: Job status API contracts
"""

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from retrieval_backend.boundary.db.models.job_model import JobStatus, JobType
from retrieval_backend.models.query_cache import EnhancementData


class EnqueueJobRequest(BaseModel):
    """Request schema for creating a job."""

    job_type: str = Field(description="Job type (ingest-document, generate-embeddings, comparison)")
    metadata: dict[str, Any] | None = Field(default=None, description="Caller context, immutable")
    payload: dict[str, Any] | None = Field(default=None, description="Task input for the worker")
    max_attempts: int | None = Field(default=None, description="Attempt budget (defaults from settings)")
    priority: int = Field(default=0, ge=0, description="Urgency hint (higher is more urgent)")
    queue_name: str | None = Field(default=None, description="Logical queue lane")
    trace_id: str | None = Field(default=None, description="Correlation id for the job lifetime")


class JobResponse(BaseModel):
    """Job projection returned to clients (payload is never included)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    job_type: JobType
    status: JobStatus
    queue_name: str
    metadata: dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("job_metadata", "metadata"),
    )
    result: dict[str, Any] | None = None
    error: dict[str, Any] | None = None
    progress: int
    attempt_count: int
    max_attempts: int
    priority: int = 0
    trace_id: str | None = None
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None


class JobEventResponse(BaseModel):
    """One lifecycle event."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    event_type: str
    message: str | None = None
    metadata: dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("event_metadata", "metadata"),
    )
    created_at: datetime


class JobStatusResponse(BaseModel):
    """Response schema for job status: job fields plus ordered events."""

    job: JobResponse
    events: list[JobEventResponse]


class JobProgressRequest(BaseModel):
    """Worker progress callback."""

    progress: int = Field(description="Progress percentage (0-100)")
    message: str | None = Field(default=None, description="Optional progress note")


class JobCompleteRequest(BaseModel):
    """Worker completion callback."""

    result: dict[str, Any] = Field(default_factory=dict, description="Job output")


class JobFailRequest(BaseModel):
    """Worker failure callback."""

    error: dict[str, Any] = Field(description="Failure payload")
    retryable: bool | None = Field(
        default=None,
        description="Override the job type retry policy for this failure",
    )


class DispatchResponse(BaseModel):
    """Dispatch trigger outcome."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    processed: int = Field(description="0 when no queued job was found, 1 otherwise")
    job_id: uuid.UUID | None = Field(default=None, alias="jobId")


class CleanupResponse(BaseModel):
    """Cache cleanup outcome."""

    deleted: int
    ttl_days: int


class QueryDispatchRequest(BaseModel):
    """Chat query to route between inline answering and a background job."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(min_length=1, description="User message")
    analysis: dict[str, Any] = Field(default_factory=dict, description="Query analysis")
    enhancement: EnhancementData = Field(description="Query enhancement")
    conversation_id: str | None = Field(default=None, alias="conversationId")
    user_id: str | None = Field(default=None, alias="userId")
    conversation_history_length: int = Field(default=0, ge=0, alias="conversationHistoryLength")
    web_search_enabled: bool = Field(default=False, alias="webSearchEnabled")
    skip_cache: bool = Field(default=False, alias="skipCache")
    trace_id: str | None = Field(default=None, alias="traceId")


class QueryDispatchResponse(BaseModel):
    """Routing outcome; job is set only in async mode."""

    mode: Literal["sync", "async"]
    reason: str | None = None
    job: JobResponse | None = None
