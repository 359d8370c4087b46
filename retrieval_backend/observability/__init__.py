"""
Observability module.

Provides logging configuration, safe structured logging helpers and
trace context propagation across async boundaries.
"""

from retrieval_backend.observability.correlation import (
    get_correlation_id,
    resolve_trace_id,
    trace_scope,
)
from retrieval_backend.observability.logger import configure_logging

__all__ = [
    "configure_logging",
    "get_correlation_id",
    "resolve_trace_id",
    "trace_scope",
]
