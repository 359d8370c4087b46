"""
Test suite for JobService.

Drives the job state machine end to end on an in-memory SQLite database:
enqueue, start, progress, complete, fail/retry and status polling.

System role: Verification of job lifecycle orchestration
"""

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_backend.application.services.job_service import JobService
from retrieval_backend.boundary.db.models.job_model import JobStatus, JobType
from retrieval_backend.configs.jobs import JobSettings
from retrieval_backend.core.exceptions import (
    InvalidStateTransitionError,
    JobNotFoundError,
    ValidationError,
)
from retrieval_backend.observability.correlation import trace_scope


@pytest.fixture
def job_service(test_async_db: AsyncSession, job_settings: JobSettings) -> JobService:
    """Provide JobService bound to the test database."""
    return JobService(db=test_async_db, settings=job_settings)


async def _event_types(job_service: JobService, job_id: uuid.UUID) -> list[str]:
    status = await job_service.get_job_status(job_id)
    return [event.event_type for event in status.events]


class TestEnqueue:
    """Test suite for JobService.enqueue()."""

    @pytest.mark.asyncio
    async def test_enqueue_creates_queued_job_with_event(self, job_service: JobService) -> None:
        # Act
        job = await job_service.enqueue(
            JobType.INGEST_DOCUMENT,
            metadata={"document_id": "doc-1"},
            payload={"path": "s3://bucket/doc-1.pdf"},
        )

        # Assert
        assert job.status == JobStatus.QUEUED
        assert job.attempt_count == 0
        assert job.max_attempts == 3
        assert job.queue_name == "async_jobs"
        assert job.job_metadata == {"document_id": "doc-1"}
        assert job.trace_id
        assert await _event_types(job_service, job.id) == ["queued"]

    @pytest.mark.asyncio
    async def test_enqueue_accepts_string_type(self, job_service: JobService) -> None:
        job = await job_service.enqueue("generate-embeddings")
        assert job.job_type == JobType.GENERATE_EMBEDDINGS

    @pytest.mark.asyncio
    async def test_enqueue_unknown_type_rejected(self, job_service: JobService) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await job_service.enqueue("transcode-video")
        assert exc_info.value.details["field"] == "job_type"

    @pytest.mark.asyncio
    async def test_enqueue_rejects_zero_attempts(self, job_service: JobService) -> None:
        with pytest.raises(ValidationError):
            await job_service.enqueue(JobType.COMPARISON, max_attempts=0)

    @pytest.mark.asyncio
    async def test_trace_id_defaults_to_correlation_id(self, job_service: JobService) -> None:
        # Act
        with trace_scope("corr-123"):
            job = await job_service.enqueue(JobType.COMPARISON)

        # Assert
        assert job.trace_id == "corr-123"

    @pytest.mark.asyncio
    async def test_enqueue_persists_priority(self, job_service: JobService) -> None:
        # Act
        job = await job_service.enqueue(JobType.COMPARISON, priority=5)
        status = await job_service.get_job_status(job.id)

        # Assert
        assert status.job.priority == 5
        assert status.events[0].metadata["priority"] == 5

    @pytest.mark.asyncio
    async def test_enqueue_defaults_priority_to_zero(self, job_service: JobService) -> None:
        job = await job_service.enqueue(JobType.COMPARISON)
        assert job.priority == 0

    @pytest.mark.asyncio
    async def test_enqueue_rejects_negative_priority(self, job_service: JobService) -> None:
        with pytest.raises(ValidationError):
            await job_service.enqueue(JobType.COMPARISON, priority=-1)


class TestTransitions:
    """Test suite for start/progress/complete."""

    @pytest.mark.asyncio
    async def test_happy_path(self, job_service: JobService) -> None:
        # Arrange
        job = await job_service.enqueue(JobType.INGEST_DOCUMENT)

        # Act
        started = await job_service.start(job.id)
        progressed = await job_service.report_progress(job.id, 40, "parsed")
        completed = await job_service.complete(job.id, {"chunks": 12})

        # Assert
        assert started.status == JobStatus.PROCESSING
        assert started.attempt_count == 1
        assert progressed.progress == 40
        assert completed.status == JobStatus.COMPLETED
        assert completed.result == {"chunks": 12}
        assert completed.progress == 100
        assert completed.completed_at is not None
        assert await _event_types(job_service, job.id) == ["queued", "started", "progress", "completed"]

    @pytest.mark.asyncio
    async def test_complete_from_queued_is_rejected(self, job_service: JobService) -> None:
        # Arrange
        job = await job_service.enqueue(JobType.INGEST_DOCUMENT)
        job_id = job.id

        # Act
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            await job_service.complete(job_id, {"x": 1})

        # Assert
        assert exc_info.value.details["current_status"] == "queued"
        status = await job_service.get_job_status(job_id)
        assert status.job.status == JobStatus.QUEUED
        assert status.job.result is None
        assert [e.event_type for e in status.events] == ["queued"]

    @pytest.mark.asyncio
    async def test_terminal_job_accepts_nothing(self, job_service: JobService) -> None:
        # Arrange
        job = await job_service.enqueue(JobType.INGEST_DOCUMENT)
        job_id = job.id
        await job_service.start(job_id)
        await job_service.complete(job_id, {"ok": True})

        # Act / Assert
        with pytest.raises(InvalidStateTransitionError):
            await job_service.start(job_id)
        with pytest.raises(InvalidStateTransitionError):
            await job_service.fail(job_id, {"code": "late"})
        with pytest.raises(InvalidStateTransitionError):
            await job_service.report_progress(job_id, 100)

        status = await job_service.get_job_status(job_id)
        assert status.job.status == JobStatus.COMPLETED
        assert status.job.error is None

    @pytest.mark.asyncio
    async def test_second_start_is_rejected(self, job_service: JobService) -> None:
        # Arrange
        job = await job_service.enqueue(JobType.INGEST_DOCUMENT)
        await job_service.start(job.id)

        # Act / Assert
        with pytest.raises(InvalidStateTransitionError):
            await job_service.start(job.id)

    @pytest.mark.asyncio
    async def test_progress_cannot_decrease(self, job_service: JobService) -> None:
        # Arrange
        job = await job_service.enqueue(JobType.INGEST_DOCUMENT)
        job_id = job.id
        await job_service.start(job_id)
        await job_service.report_progress(job_id, 50)

        # Act / Assert
        with pytest.raises(ValidationError):
            await job_service.report_progress(job_id, 20)
        with pytest.raises(ValidationError):
            await job_service.report_progress(job_id, 101)

        status = await job_service.get_job_status(job_id)
        assert status.job.progress == 50

    @pytest.mark.asyncio
    async def test_unknown_job(self, job_service: JobService) -> None:
        missing = uuid.uuid4()
        with pytest.raises(JobNotFoundError):
            await job_service.start(missing)
        with pytest.raises(JobNotFoundError):
            await job_service.get_job_status(missing)


class TestFailAndRetry:
    """Test suite for JobService.fail()."""

    @pytest.mark.asyncio
    async def test_retry_twice_then_complete(self, job_service: JobService) -> None:
        # Arrange
        job = await job_service.enqueue(JobType.INGEST_DOCUMENT, max_attempts=3)

        # Act
        await job_service.start(job.id)
        first = await job_service.fail(job.id, {"code": "timeout"}, retryable=True)
        await job_service.start(job.id)
        second = await job_service.fail(job.id, {"code": "timeout"}, retryable=True)
        await job_service.start(job.id)
        final = await job_service.complete(job.id, {"chunks": 4})

        # Assert
        assert first.status == JobStatus.QUEUED
        assert second.status == JobStatus.QUEUED
        assert final.status == JobStatus.COMPLETED
        assert final.attempt_count == 3
        assert await _event_types(job_service, job.id) == [
            "queued",
            "started",
            "retry-scheduled",
            "started",
            "retry-scheduled",
            "started",
            "completed",
        ]

    @pytest.mark.asyncio
    async def test_retryable_failure_on_last_attempt_fails(self, job_service: JobService) -> None:
        # Arrange
        job = await job_service.enqueue(JobType.INGEST_DOCUMENT, max_attempts=2)
        job_id = job.id
        await job_service.start(job_id)
        await job_service.fail(job_id, {"code": "e1"}, retryable=True)
        await job_service.start(job_id)

        # Act
        final = await job_service.fail(job_id, {"code": "e2"}, retryable=True)

        # Assert
        assert final.status == JobStatus.FAILED
        assert final.attempt_count == 2
        assert final.error == {"code": "e2"}
        with pytest.raises(InvalidStateTransitionError):
            await job_service.start(job_id)

    @pytest.mark.asyncio
    async def test_non_retryable_failure_is_terminal(self, job_service: JobService) -> None:
        # Arrange
        job = await job_service.enqueue(JobType.INGEST_DOCUMENT)
        await job_service.start(job.id)

        # Act
        final = await job_service.fail(job.id, {"code": "corrupt"}, retryable=False)

        # Assert
        assert final.status == JobStatus.FAILED
        assert final.completed_at is not None

    @pytest.mark.asyncio
    async def test_policy_applies_when_flag_omitted(self, job_service: JobService) -> None:
        # Arrange
        ingest = await job_service.enqueue(JobType.INGEST_DOCUMENT)
        comparison = await job_service.enqueue(JobType.COMPARISON)
        await job_service.start(ingest.id)
        await job_service.start(comparison.id)

        # Act
        ingest_after = await job_service.fail(ingest.id, {"code": "x"})
        comparison_after = await job_service.fail(comparison.id, {"code": "x"})

        # Assert
        assert ingest_after.status == JobStatus.QUEUED
        assert comparison_after.status == JobStatus.FAILED

    @pytest.mark.asyncio
    async def test_retry_resets_progress(self, job_service: JobService) -> None:
        # Arrange
        job = await job_service.enqueue(JobType.INGEST_DOCUMENT)
        await job_service.start(job.id)
        await job_service.report_progress(job.id, 70)

        # Act
        requeued = await job_service.fail(job.id, {"code": "x"}, retryable=True)
        restarted = await job_service.start(job.id)

        # Assert
        assert requeued.progress == 0
        assert restarted.progress == 0

    @pytest.mark.asyncio
    async def test_fail_from_queued_is_rejected(self, job_service: JobService) -> None:
        job = await job_service.enqueue(JobType.INGEST_DOCUMENT)
        with pytest.raises(InvalidStateTransitionError):
            await job_service.fail(job.id, {"code": "x"})


class TestGetJobStatus:
    """Test suite for JobService.get_job_status()."""

    @pytest.mark.asyncio
    async def test_projection_excludes_payload(self, job_service: JobService) -> None:
        # Arrange
        job = await job_service.enqueue(JobType.INGEST_DOCUMENT, payload={"secret_path": "/tmp/x"})

        # Act
        status = await job_service.get_job_status(job.id)
        dumped = status.model_dump()

        # Assert
        assert "payload" not in dumped["job"]
        assert dumped["job"]["id"] == job.id

    @pytest.mark.asyncio
    async def test_events_carry_trace_id(self, job_service: JobService) -> None:
        # Arrange
        job = await job_service.enqueue(JobType.INGEST_DOCUMENT, trace_id="trace-7")
        await job_service.start(job.id)

        # Act
        status = await job_service.get_job_status(job.id)

        # Assert
        assert all(event.metadata["trace_id"] == "trace-7" for event in status.events)
