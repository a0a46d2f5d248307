"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: ragdesk.configs, ragdesk.application, ragdesk.boundary
System role: DI container for service injection
"""

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from ragdesk.application.services import DocumentService, PipelineService, SettingsService
from ragdesk.boundary.aws.pipeline_dispatcher import PipelineDispatcher
from ragdesk.boundary.aws.s3_client import S3DocumentClient
from ragdesk.boundary.db.connection import get_async_db
from ragdesk.configs import get_settings

PRINCIPAL_HEADER = "X-Principal-ID"
ANONYMOUS_PRINCIPAL = "anonymous"


class ServiceCache:
    """Container for cached boto3-backed clients."""

    def __init__(self) -> None:
        self._s3_client: S3DocumentClient | None = None
        self._dispatcher: PipelineDispatcher | None = None

    @property
    def s3_client(self) -> S3DocumentClient:
        """Get cached S3 document client."""
        if self._s3_client is None:
            settings = get_settings()
            self._s3_client = S3DocumentClient(
                bucket=settings.s3_documents.bucket,
                region=settings.s3_documents.region,
            )
        return self._s3_client

    @property
    def dispatcher(self) -> PipelineDispatcher | None:
        """Get cached pipeline dispatcher, or None when dispatch is disabled."""
        queue = get_settings().pipeline_queue
        if not queue.enabled:
            return None
        if self._dispatcher is None:
            self._dispatcher = PipelineDispatcher(queue_url=queue.queue_url, region=queue.region)
        return self._dispatcher

    def clear(self) -> None:
        """Clear all cached instances."""
        self._s3_client = None
        self._dispatcher = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


def get_principal_id(
    x_principal_id: str | None = Header(default=None, alias=PRINCIPAL_HEADER),
) -> str:
    """Principal id of the caller; identity is asserted by the caller."""
    return x_principal_id or ANONYMOUS_PRINCIPAL


def get_document_service(
    db: AsyncSession = Depends(get_async_db),
    cache: ServiceCache = Depends(get_service_cache),
) -> DocumentService:
    """
    Get document service instance.

    Args:
        db: Async database session (injected via Depends)
        cache: Cached storage and queue clients

    Returns:
        DocumentService: Document service bound to the request session
    """
    settings = get_settings()
    return DocumentService(
        db=db,
        s3_client=cache.s3_client,
        dispatcher=cache.dispatcher,
        presigned_url_expiry=settings.s3_documents.presigned_url_expiry,
    )


def get_pipeline_service(db: AsyncSession = Depends(get_async_db)) -> PipelineService:
    return PipelineService(db=db)


def get_settings_service(db: AsyncSession = Depends(get_async_db)) -> SettingsService:
    return SettingsService(db=db)
