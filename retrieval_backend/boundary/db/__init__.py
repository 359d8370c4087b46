"""Database layer: declarative base, models, CRUD and connection helpers."""

from retrieval_backend.boundary.db.base import Base
from retrieval_backend.boundary.db.connection import (
    create_tables,
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)

__all__ = [
    "Base",
    "create_tables",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
]
