"""FastAPI dependency providers."""

from ragdesk.api.deps.dependencies import (
    PRINCIPAL_HEADER,
    ServiceCache,
    get_document_service,
    get_pipeline_service,
    get_principal_id,
    get_service_cache,
    get_settings_service,
)

__all__ = [
    "PRINCIPAL_HEADER",
    "ServiceCache",
    "get_document_service",
    "get_pipeline_service",
    "get_principal_id",
    "get_service_cache",
    "get_settings_service",
]
