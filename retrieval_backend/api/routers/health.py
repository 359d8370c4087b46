"""
Health check API endpoints.

Routes: GET /health, GET /health/db

Dependencies: retrieval_backend.boundary
System role: Health check HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_backend.boundary.db import get_async_db

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str
    cache_writer: dict[str, int] | None = None
    dispatch_trigger: dict[str, int] | None = None


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Basic health check with background task counters."""
    writer = getattr(request.app.state, "cache_writer", None)
    trigger = getattr(request.app.state, "dispatch_trigger", None)
    return HealthResponse(
        status="healthy",
        message="Server Healthy",
        cache_writer=writer.stats() if writer is not None else None,
        dispatch_trigger=trigger.stats() if trigger is not None else None,
    )


@router.get("/db", response_model=HealthResponse)
async def health_check_db(db: AsyncSession = Depends(get_async_db)) -> HealthResponse:
    """Database health check."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"{__name__}:health_check_db - Database unreachable", extra={"error": str(e)})
        raise HTTPException(status_code=503, detail="Database unavailable")
    return HealthResponse(status="healthy", message="Database connection OK")
