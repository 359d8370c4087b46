"""
Job lifecycle rules.

Pure transition table and retry/progress policy for the job state machine.
The persistence layer enforces these rules atomically through conditional
updates; this module is the single place where they are written down.

Dependencies: retrieval_backend.boundary.db.models.job_model
System role: Job state machine policy
"""

import enum
from typing import Mapping

from retrieval_backend.boundary.db.models.job_model import JobStatus
from retrieval_backend.core.exceptions import ValidationError

ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.PROCESSING}),
    JobStatus.PROCESSING: frozenset({JobStatus.QUEUED, JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}

TERMINAL_STATUSES: frozenset[JobStatus] = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


class RetryPolicy(str, enum.Enum):
    """Behaviour applied to a failure reported without an explicit retryable flag."""

    RETRY = "retry"
    FAIL = "fail"


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    """Whether target is reachable from current in one step."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def is_terminal(status: JobStatus) -> bool:
    return status in TERMINAL_STATUSES


def resolve_retry_policy(job_type: str, policies: Mapping[str, str]) -> RetryPolicy:
    """
    Look up the retry policy for a job type.

    Job types without an entry (or with an unrecognised value) fail
    outright so retries are always an explicit choice.

    Args:
        job_type: Job type value (e.g. "ingest-document")
        policies: Mapping of job type -> "retry" | "fail"

    Returns:
        RetryPolicy: Policy to apply
    """
    raw = policies.get(str(job_type))
    if raw is None:
        return RetryPolicy.FAIL
    try:
        return RetryPolicy(raw.strip().lower())
    except ValueError:
        return RetryPolicy.FAIL


def next_status_after_failure(attempt_count: int, max_attempts: int, retryable: bool) -> JobStatus:
    """
    Decide where a failing PROCESSING job goes.

    Args:
        attempt_count: Attempts consumed so far (including the current one)
        max_attempts: Attempt budget of the job
        retryable: Whether the failure may be retried

    Returns:
        JobStatus: QUEUED when another attempt is allowed, FAILED otherwise
    """
    if retryable and attempt_count < max_attempts:
        return JobStatus.QUEUED
    return JobStatus.FAILED


def validate_progress(current: int, new: int) -> None:
    """
    Validate a progress update.

    Raises:
        ValidationError: If new is outside 0-100 or lower than current
    """
    if not 0 <= new <= 100:
        raise ValidationError(
            "Progress must be between 0 and 100",
            field="progress",
            details={"progress": new},
        )
    if new < current:
        raise ValidationError(
            "Progress cannot decrease",
            field="progress",
            details={"progress": new, "current_progress": current},
        )
