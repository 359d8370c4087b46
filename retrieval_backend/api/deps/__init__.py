"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    get_cache_writer,
    get_dispatch_trigger,
    get_job_dispatcher,
    get_job_service,
    get_query_cache_service,
    get_query_routing_service,
    get_settings_dependency,
    get_worker_client,
    require_internal_token,
)

__all__ = [
    "get_cache_writer",
    "get_dispatch_trigger",
    "get_job_dispatcher",
    "get_job_service",
    "get_query_cache_service",
    "get_query_routing_service",
    "get_settings_dependency",
    "get_worker_client",
    "require_internal_token",
]
