"""
Background job configuration settings.

Retry policy per job type, dispatch credential, worker endpoint and
claim lease used by the job dispatcher.

Dependencies: pydantic, pydantic_settings
System role: Job queue and dispatcher configuration
"""

import os
import socket
import uuid

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_dispatcher_id() -> str:
    """Per-process claim owner: host, pid and a random suffix."""
    return f"{socket.gethostname()[:64]}-{os.getpid()}-{uuid.uuid4().hex[:8]}"


class JobSettings(BaseSettings):
    """Job record store and dispatcher configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="JOBS_",
        case_sensitive=False,
        extra="ignore",
    )

    default_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts granted to a job when the caller does not specify one",
    )
    default_queue_name: str = Field(default="async_jobs", description="Default logical queue lane")

    dispatch_secret: str | None = Field(
        default=None,
        description="Bearer token required by the dispatch trigger (disabled when unset)",
    )
    worker_url: str | None = Field(
        default=None,
        description="External processing endpoint invoked with {jobId}",
    )
    worker_auth_token: str | None = Field(
        default=None,
        description="Bearer token sent to the worker endpoint",
    )
    worker_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Request timeout for a worker invocation",
    )

    claim_lease_seconds: int = Field(
        default=300,
        ge=1,
        description="Seconds a dispatched job stays invisible to other dispatch calls",
    )
    dispatcher_id: str = Field(
        default_factory=default_dispatcher_id,
        max_length=128,
        description="Identifier stamped on claims, unique per process unless overridden",
    )
    trigger_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Upper bound for a background dispatch started right after enqueue",
    )
    trigger_shutdown_grace_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Time pending dispatch triggers get on shutdown before cancellation",
    )

    retry_policies: dict[str, str] = Field(
        default={
            "ingest-document": "retry",
            "generate-embeddings": "retry",
            "comparison": "fail",
        },
        description="Job type -> policy applied to failures reported without a retryable flag",
    )
