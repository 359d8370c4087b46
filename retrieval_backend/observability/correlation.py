"""
Trace context.

Carries the current correlation id across async boundaries using
contextvars. A request's correlation id becomes the trace id of the jobs it
enqueues, is forwarded to the worker and is stamped on every log record.

Dependencies: contextvars
System role: Request and job tracing across service boundaries
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

# Matches the width of the job trace_id column
MAX_TRACE_ID_LENGTH = 64

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def new_trace_id() -> str:
    """Generate a fresh trace id (32 hex characters)."""
    return uuid.uuid4().hex


def get_correlation_id() -> str:
    """
    Get current correlation ID from context.

    Returns:
        str: Current correlation ID (empty string outside a trace scope)
    """
    return correlation_id_ctx.get()


def resolve_trace_id(explicit: str | None = None) -> str:
    """
    Pick the trace id for new work.

    An explicit value wins, then the ambient correlation id, then a new id.
    """
    value = explicit or correlation_id_ctx.get() or new_trace_id()
    return value[:MAX_TRACE_ID_LENGTH]


@contextmanager
def trace_scope(trace_id: str | None = None) -> Iterator[str]:
    """
    Bind a correlation id for the duration of a block.

    The previous id is restored on exit, so scopes nest. Tasks created
    inside the block inherit the id.

    Args:
        trace_id: Id to bind (a new one is generated when empty)

    Yields:
        str: The bound correlation id
    """
    value = (trace_id or new_trace_id())[:MAX_TRACE_ID_LENGTH]
    token = correlation_id_ctx.set(value)
    try:
        yield value
    finally:
        correlation_id_ctx.reset(token)
