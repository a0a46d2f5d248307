"""HTTP adapters (httpx)."""

from ragdesk.boundary.http.api_client import PRINCIPAL_HEADER, KnowledgeBaseApiClient

__all__ = ["KnowledgeBaseApiClient", "PRINCIPAL_HEADER"]
