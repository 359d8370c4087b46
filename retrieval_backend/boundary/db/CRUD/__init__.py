"""CRUD singletons for database models."""

from retrieval_backend.boundary.db.CRUD.job_crud import JobCRUD, job_crud
from retrieval_backend.boundary.db.CRUD.job_event_crud import JobEventCRUD, job_event_crud
from retrieval_backend.boundary.db.CRUD.query_cache_crud import QueryCacheCRUD, query_cache_crud

__all__ = [
    "JobCRUD",
    "job_crud",
    "JobEventCRUD",
    "job_event_crud",
    "QueryCacheCRUD",
    "query_cache_crud",
]
