"""
Router error handling utilities.

Decorator translating application exceptions into HTTPExceptions with
consistent status codes and logging.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import HTTPException, status

from retrieval_backend.core.exceptions import (
    CleanupFailure,
    DispatchFailure,
    InvalidStateTransitionError,
    JobNotFoundError,
    RetrievalBackendException,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Type for the decorated function
F = TypeVar("F", bound=Callable[..., Any])

_STATUS_BY_ERROR: list[tuple[type[RetrievalBackendException], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (JobNotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidStateTransitionError, status.HTTP_409_CONFLICT),
    (DispatchFailure, status.HTTP_502_BAD_GATEWAY),
    (CleanupFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_code_for(error: RetrievalBackendException) -> int:
    """HTTP status for an application exception (500 when unmapped)."""
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def handle_job_errors(func: F) -> F:
    """
    Decorator to handle application errors and transform them into HTTPExceptions.

    This centralizes:
    - Logging of errors with their details
    - Mapping exception types to HTTP status codes
    - Uniform error response format
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except HTTPException:
            raise

        except RetrievalBackendException as e:
            code = status_code_for(e)
            log = logger.error if code >= 500 else logger.warning
            log(
                f"{__name__}:{func.__name__} - {type(e).__name__}",
                extra={"error": e.message, "details": e.details, "status_code": code},
            )
            raise HTTPException(status_code=code, detail=str(e))

        except Exception as e:
            logger.exception(
                f"{__name__}:{func.__name__} - Unexpected failure",
                extra={"error": str(e)},
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"An internal error occurred: {str(e)}",
            )

    return wrapper  # type: ignore
