"""
Logging utilities for safe structured logging.

Helpers that turn job records and arbitrary payloads (job results, cache
analysis blobs) into flat, truncated log fields.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import enum
import logging
from typing import Any


def safe_log_value(value: Any, max_length: int = 500) -> str:
    """
    Safely convert any value to a string for logging.

    Collections are summarized by size; enums log their value.

    Args:
        value: Value to convert
        max_length: Maximum length before truncating

    Returns:
        str: Safe string representation
    """
    try:
        if value is None:
            return "None"
        if isinstance(value, enum.Enum):
            val_str = str(value.value)
        elif isinstance(value, str):
            val_str = value
        elif isinstance(value, (list, tuple)):
            val_str = f"{type(value).__name__}({len(value)} items)"
        elif isinstance(value, dict):
            val_str = f"dict({len(value)} keys)"
        else:
            val_str = str(value)

        if len(val_str) > max_length:
            return val_str[:max_length] + f"... (truncated, {len(val_str)} total)"
        return val_str
    except Exception as e:
        return f"<unable to log: {type(e).__name__}>"


def job_log_context(job: Any, **context: Any) -> dict[str, str]:
    """
    Standard log fields for a job record.

    Args:
        job: JobModel (or anything with the same attributes)
        **context: Extra fields for this log line

    Returns:
        dict: job_id, job_type, status, attempt, trace_id plus context, all safe strings
    """
    fields = {
        "job_id": job.id,
        "job_type": job.job_type,
        "status": job.status,
        "attempt": job.attempt_count,
        "trace_id": job.trace_id,
        **context,
    }
    return {key: safe_log_value(value) for key, value in fields.items()}


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    level: int = logging.ERROR,
    **context,
) -> None:
    """
    Log an exception with full context.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance (its cause chain is included in the traceback)
        level: Log level; the traceback is attached at every level
        **context: Additional context dict
    """
    safe_context = {key: safe_log_value(val) for key, val in context.items()}
    safe_context.update(
        {
            "error_type": type(exc).__name__,
            "error_msg": safe_log_value(str(exc)),
        }
    )
    logger.log(level, message, exc_info=exc, extra=safe_context)
