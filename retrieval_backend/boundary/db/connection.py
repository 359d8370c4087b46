"""
Database connection management.

Provides the async SQLAlchemy engine, session factory, FastAPI dependency
for session injection and table bootstrapping.

Dependencies: sqlalchemy, retrieval_backend.configs
System role: Database connection lifecycle management
"""

from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from retrieval_backend.boundary.db.base import Base
from retrieval_backend.configs import get_settings


@lru_cache
def get_async_engine() -> AsyncEngine:
    """
    Create async SQLAlchemy engine with connection pooling.

    Cached so every session factory shares one pool. pool_pre_ping=True
    verifies connections before use to detect stale/broken connections early.
    SQLite URLs skip pool sizing (aiosqlite uses its own pool class).

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Raises:
        ArgumentError: If database URL is invalid or engine creation fails

    Usage:
        engine = get_async_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
    """
    db_config = get_settings().database

    if db_config.is_sqlite:
        return create_async_engine(db_config.async_database_url, echo=db_config.echo_sql)

    return create_async_engine(
        db_config.async_database_url,
        echo=db_config.echo_sql,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )


def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Create async session factory for database operations.

    Returns async_sessionmaker bound to the shared engine with autoflush=False
    and expire_on_commit=False for explicit transaction control.

    Returns:
        async_sessionmaker: Async session factory configured for manual transaction control

    Usage:
        SessionFactory = get_async_session_factory()
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return async_sessionmaker(
        bind=get_async_engine(),
        autoflush=False,
        expire_on_commit=False,
    )


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database session injection with automatic cleanup.

    Creates a new async database session for each request and ensures it's closed
    after the route completes, even if exceptions occur.

    Yields:
        AsyncSession: Async SQLAlchemy database session (scoped to request lifetime)

    Usage:
        from fastapi import Depends

        @router.get("/jobs/{id}")
        async def get_job(id: UUID, db: AsyncSession = Depends(get_async_db)):
            return await job_crud.get_by_id(db, id)
    """
    SessionFactory = get_async_session_factory()
    async with SessionFactory() as session:
        yield session


async def create_tables(engine: AsyncEngine | None = None) -> None:
    """
    Create all registered tables if they do not exist.

    Args:
        engine: Engine to use (defaults to the shared application engine)
    """
    # Register every model on Base.metadata before create_all
    from retrieval_backend.boundary.db import models  # noqa: F401

    target = engine or get_async_engine()
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
