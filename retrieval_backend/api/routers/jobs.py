"""
Job API endpoints.

Routes:
- GET /jobs/{id} - Job status and ordered events (polling)
- POST /jobs - Enqueue a job
- POST /jobs/process - Dispatch trigger (claim oldest queued job, invoke worker)
- POST /jobs/{id}/start - Worker callback: queued -> processing
- POST /jobs/{id}/progress - Worker callback: progress update
- POST /jobs/{id}/complete - Worker callback: processing -> completed
- POST /jobs/{id}/fail - Worker callback: processing -> queued | failed

Dependencies: retrieval_backend.application.services, retrieval_backend.models
System role: Job status HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Header

from retrieval_backend.api.deps import get_job_dispatcher, get_job_service, require_internal_token
from retrieval_backend.api.routers.error_handling import handle_job_errors
from retrieval_backend.application.services.dispatch_service import JobDispatcher
from retrieval_backend.application.services.job_service import JobService
from retrieval_backend.models.job import (
    DispatchResponse,
    EnqueueJobRequest,
    JobCompleteRequest,
    JobFailRequest,
    JobProgressRequest,
    JobResponse,
    JobStatusResponse,
)

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post(
    "",
    response_model=JobResponse,
    status_code=201,
    dependencies=[Depends(require_internal_token)],
)
@handle_job_errors
async def enqueue_job(
    request: EnqueueJobRequest,
    job_service: JobService = Depends(get_job_service),
) -> JobResponse:
    """
    Enqueue a background job.

    Raises:
        HTTPException(400): Unknown job type or invalid max_attempts
    """
    job = await job_service.enqueue(
        job_type=request.job_type,
        metadata=request.metadata,
        payload=request.payload,
        max_attempts=request.max_attempts,
        queue_name=request.queue_name,
        priority=request.priority,
        trace_id=request.trace_id,
    )
    return JobResponse.model_validate(job)


@router.post("/process", response_model=DispatchResponse)
@handle_job_errors
async def process_next_job(
    authorization: str | None = Header(default=None),
    dispatcher: JobDispatcher = Depends(get_job_dispatcher),
) -> DispatchResponse:
    """
    Hand the oldest queued job to the worker.

    Performs at most one claim-and-invoke cycle. The job status is left to
    the worker; a failed invocation leaves the job queued.

    Raises:
        HTTPException(401): Missing or wrong bearer credential
        HTTPException(502): Worker not configured or invocation failed

    Example Response:
        {"message": "Job dispatched", "processed": 1, "jobId": "123e4567-e89b-12d3-a456-426614174000"}
    """
    result = await dispatcher.dispatch_next(authorization)
    return DispatchResponse(message=result.message, processed=result.processed, job_id=result.job_id)


@router.get("/{job_id}", response_model=JobStatusResponse)
@handle_job_errors
async def get_job_status(
    job_id: UUID,
    job_service: JobService = Depends(get_job_service),
) -> JobStatusResponse:
    """
    Get job status, progress and event history for polling.

    Raises:
        HTTPException(404): Job not found
    """
    return await job_service.get_job_status(job_id)


@router.post(
    "/{job_id}/start",
    response_model=JobResponse,
    dependencies=[Depends(require_internal_token)],
)
@handle_job_errors
async def start_job(
    job_id: UUID,
    job_service: JobService = Depends(get_job_service),
) -> JobResponse:
    """Worker picked the job up; consumes one attempt."""
    job = await job_service.start(job_id)
    return JobResponse.model_validate(job)


@router.post(
    "/{job_id}/progress",
    response_model=JobResponse,
    dependencies=[Depends(require_internal_token)],
)
@handle_job_errors
async def report_job_progress(
    job_id: UUID,
    request: JobProgressRequest,
    job_service: JobService = Depends(get_job_service),
) -> JobResponse:
    job = await job_service.report_progress(job_id, request.progress, request.message)
    return JobResponse.model_validate(job)


@router.post(
    "/{job_id}/complete",
    response_model=JobResponse,
    dependencies=[Depends(require_internal_token)],
)
@handle_job_errors
async def complete_job(
    job_id: UUID,
    request: JobCompleteRequest,
    job_service: JobService = Depends(get_job_service),
) -> JobResponse:
    job = await job_service.complete(job_id, request.result)
    return JobResponse.model_validate(job)


@router.post(
    "/{job_id}/fail",
    response_model=JobResponse,
    dependencies=[Depends(require_internal_token)],
)
@handle_job_errors
async def fail_job(
    job_id: UUID,
    request: JobFailRequest,
    job_service: JobService = Depends(get_job_service),
) -> JobResponse:
    """
    Record a failed attempt.

    The job goes back to queued when the failure is retryable and attempts
    remain, otherwise it ends failed.
    """
    job = await job_service.fail(job_id, request.error, request.retryable)
    return JobResponse.model_validate(job)
