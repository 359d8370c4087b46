"""API routers."""

from .health import router as health_router
from .jobs import router as jobs_router
from .maintenance import router as maintenance_router
from .queries import router as queries_router

__all__ = [
    "health_router",
    "jobs_router",
    "maintenance_router",
    "queries_router",
]
