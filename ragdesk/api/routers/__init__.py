"""
API routers.

Exports all routers for registration in the FastAPI application.
"""

from .documents import router as documents_router
from .health import router as health_router
from .pipeline import router as pipeline_router
from .settings import router as settings_router

__all__ = [
    "documents_router",
    "health_router",
    "pipeline_router",
    "settings_router",
]
