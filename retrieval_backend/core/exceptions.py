"""
Exception hierarchy for the retrieval-support backend.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class RetrievalBackendException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(RetrievalBackendException):
    """Raised when input validation fails (bad enqueue or progress parameters)."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class JobNotFoundError(RetrievalBackendException):
    """Raised when a job cannot be found."""

    def __init__(self, job_id: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize job not found error.

        Args:
            job_id: ID of the missing job
            details: Additional context
        """
        details = details or {}
        details["job_id"] = job_id
        super().__init__(f"Job not found: {job_id}", details)


class InvalidStateTransitionError(RetrievalBackendException):
    """Raised when a job status change is not allowed from its current state."""

    def __init__(
        self,
        job_id: str,
        current_status: str,
        target_status: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize invalid transition error.

        Args:
            job_id: ID of the job
            current_status: Status stored when the transition was attempted
            target_status: Requested status
            details: Additional context
        """
        details = details or {}
        details.update(
            {"job_id": job_id, "current_status": current_status, "target_status": target_status}
        )
        super().__init__(
            f"Cannot move job {job_id} from '{current_status}' to '{target_status}'",
            details,
        )


class UnauthorizedError(RetrievalBackendException):
    """Raised when an internal credential is missing or does not match."""

    pass


class DispatchFailure(RetrievalBackendException):
    """Raised when the worker could not be invoked; the job stays queued."""

    def __init__(
        self,
        message: str,
        job_id: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize dispatch failure.

        Args:
            message: Error message
            job_id: Job that was being dispatched, if one was claimed
            status_code: Worker HTTP status when it answered with an error
            details: Additional context
        """
        details = details or {}
        if job_id:
            details["job_id"] = job_id
        if status_code is not None:
            details["status_code"] = status_code
        self.job_id = job_id
        self.status_code = status_code
        super().__init__(message, details)


class CacheWriteFailure(RetrievalBackendException):
    """Raised inside background cache writes; logged, never surfaced to callers."""

    pass


class CleanupFailure(RetrievalBackendException):
    """Raised when a cache TTL sweep fails; retried on the next scheduled run."""

    pass
