"""Outbound worker invocation."""

from retrieval_backend.boundary.worker.worker_client import WorkerClient, build_worker_client

__all__ = ["WorkerClient", "build_worker_client"]
