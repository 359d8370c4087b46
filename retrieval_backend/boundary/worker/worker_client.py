"""
Worker invocation client.

Hands a claimed job to the external processing endpoint with a POST of
{"jobId": ...}. The endpoint drives the job state machine itself; only the
initiation contract lives here.

Dependencies: httpx
System role: Outbound worker call for the job dispatcher
"""

import logging
from uuid import UUID

import httpx

from retrieval_backend.configs.jobs import JobSettings
from retrieval_backend.core.exceptions import DispatchFailure

logger = logging.getLogger(__name__)

TRACE_HEADER = "X-Trace-Id"


class WorkerClient:
    """
    HTTP client for the job processing endpoint.

    Every transport error, timeout and non-2xx answer is reported as
    DispatchFailure.
    """

    def __init__(
        self,
        url: str,
        auth_token: str | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize worker client.

        Args:
            url: Processing endpoint URL
            auth_token: Bearer token sent in the Authorization header
            timeout_seconds: Total request timeout
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.url = url
        self.auth_token = auth_token
        self.timeout = httpx.Timeout(timeout_seconds)
        self._transport = transport

    def _headers(self, trace_id: str | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        if trace_id:
            headers[TRACE_HEADER] = trace_id
        return headers

    async def invoke(self, job_id: UUID, trace_id: str | None = None) -> None:
        """
        Ask the worker to process a job.

        Args:
            job_id: Claimed job
            trace_id: Correlation id forwarded to the worker

        Raises:
            DispatchFailure: If the call fails or the worker answers non-2xx
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.url,
                    json={"jobId": str(job_id)},
                    headers=self._headers(trace_id),
                )
        except httpx.TimeoutException as e:
            raise DispatchFailure(
                "Worker invocation timed out",
                job_id=str(job_id),
                details={"url": self.url},
            ) from e
        except httpx.HTTPError as e:
            raise DispatchFailure(
                f"Worker invocation failed: {e}",
                job_id=str(job_id),
                details={"url": self.url},
            ) from e

        if not response.is_success:
            raise DispatchFailure(
                f"Worker responded with status {response.status_code}",
                job_id=str(job_id),
                status_code=response.status_code,
                details={"body": response.text[:500]},
            )

        logger.info(
            f"{__name__}:invoke - Worker accepted job",
            extra={"job_id": str(job_id), "trace_id": trace_id, "status_code": response.status_code},
        )


def build_worker_client(settings: JobSettings) -> WorkerClient | None:
    """
    Build the worker client from job settings.

    Returns:
        WorkerClient, or None when JOBS_WORKER_URL is not set
    """
    if not settings.worker_url:
        return None
    return WorkerClient(
        url=settings.worker_url,
        auth_token=settings.worker_auth_token,
        timeout_seconds=settings.worker_timeout_seconds,
    )
