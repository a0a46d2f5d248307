"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.

Dependencies: fastapi, ragdesk.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ragdesk import __version__
from ragdesk.api.deps.dependencies import get_service_cache
from ragdesk.configs import get_settings
from ragdesk.observability import configure_logging
from ragdesk.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import documents_router, health_router, pipeline_router, settings_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    logger = logging.getLogger("uvicorn")
    logger.info("ragdesk API starting (environment: %s)", get_settings().environment)

    yield

    get_service_cache().clear()
    logger.info("Service cache cleared")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    settings = get_settings()
    app = FastAPI(
        title="ragdesk API",
        description="Document ingestion pipeline and retrieval configuration for RAG projects",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url=None if settings.is_production else "/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Outermost last: correlation id is set before the request is logged
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(documents_router, prefix="/api/v1")
    app.include_router(pipeline_router, prefix="/api/v1")
    app.include_router(settings_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    configure_logging(get_settings().effective_log_level)
    uvicorn.run(
        "ragdesk.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
