"""
Database models package.

Exports:
  - JobModel, JobStatus, JobType: Job ORM model and related enums
  - JobEventModel, JobEventType: Job lifecycle event log
  - QueryCacheModel: Query analysis/enhancement cache

Dependencies: sqlalchemy, retrieval_backend.boundary.db.base
System role: Database model definitions for domain entities
"""

from retrieval_backend.boundary.db.models.job_model import JobModel, JobStatus, JobType
from retrieval_backend.boundary.db.models.job_event_model import JobEventModel, JobEventType
from retrieval_backend.boundary.db.models.query_cache_model import QueryCacheModel

__all__ = [
    "JobModel",
    "JobStatus",
    "JobType",
    "JobEventModel",
    "JobEventType",
    "QueryCacheModel",
]
