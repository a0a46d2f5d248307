"""
REST client for the ragdesk service.

Implements the registration, transfer, status, chunk and settings contracts
of the ingestion core over HTTP. Uses an injected ``httpx.AsyncClient`` for
testability and connection pooling; every transport or HTTP error surfaces
as ApiClientError carrying the status code.

Dependencies: httpx, ragdesk.core.interfaces, ragdesk.models
System role: Client-side boundary to the REST service and presigned storage URLs
"""

import logging
import uuid
from typing import Any

import httpx

from ragdesk.configs.ingestion import IngestionSettings
from ragdesk.core.exceptions import ApiClientError
from ragdesk.core.interfaces import (
    ChunkSource,
    DocumentStatusSource,
    RegistrationService,
    SettingsStore,
    TransferTarget,
)
from ragdesk.models.chunk import Chunk, ChunkListResponse
from ragdesk.models.document import (
    DocumentDetail,
    DocumentListResponse,
    ProjectDocument,
    UploadConfirmation,
    UploadSlot,
    UploadSlotRequest,
)
from ragdesk.models.settings import (
    PerformanceEstimate,
    ProjectSettingsResponse,
    RetrievalSettings,
    RetrievalSettingsUpdate,
)

logger = logging.getLogger(__name__)

PRINCIPAL_HEADER = "X-Principal-ID"
API_PREFIX = "/api/v1"


class KnowledgeBaseApiClient(
    RegistrationService,
    TransferTarget,
    DocumentStatusSource,
    ChunkSource,
    SettingsStore,
):
    """
    Async client for one principal.

    Parameters
    ----------
    base_url:
        Service root, e.g. ``http://localhost:8000``.
    principal_id:
        Sent as ``X-Principal-ID`` on every REST call (never to storage).
    http_client:
        Injected client for REST calls; created (and owned) when omitted.
    transfer_client:
        Client for the PUT to presigned storage URLs; defaults to the REST client.
    """

    def __init__(
        self,
        base_url: str,
        principal_id: str,
        http_client: httpx.AsyncClient | None = None,
        transfer_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        transfer_timeout: float = 300.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._principal_id = principal_id
        self._owned: list[httpx.AsyncClient] = []
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=timeout)
            self._owned.append(http_client)
        if transfer_client is None:
            if self._owned:
                transfer_client = httpx.AsyncClient(timeout=transfer_timeout)
                self._owned.append(transfer_client)
            else:
                transfer_client = http_client
        self._http = http_client
        self._transfer = transfer_client

    @classmethod
    def from_settings(cls, settings: IngestionSettings) -> "KnowledgeBaseApiClient":
        return cls(
            base_url=settings.api_base_url,
            principal_id=settings.principal_id,
            timeout=settings.request_timeout_seconds,
            transfer_timeout=settings.transfer_timeout_seconds,
        )

    async def __aenter__(self) -> "KnowledgeBaseApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the clients this object created; injected clients stay open."""
        for client in self._owned:
            await client.aclose()
        self._owned.clear()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def request_upload_slot(
        self,
        project_id: uuid.UUID,
        filename: str,
        file_size: int,
        content_type: str,
    ) -> UploadSlot:
        body = UploadSlotRequest(filename=filename, file_size=file_size, content_type=content_type)
        response = await self._request(
            "POST",
            f"/projects/{project_id}/documents/upload-url",
            json=body.model_dump(),
        )
        return UploadSlot.model_validate(response.json())

    async def confirm_upload(self, project_id: uuid.UUID, storage_key: str) -> ProjectDocument:
        response = await self._request(
            "POST",
            f"/projects/{project_id}/documents/confirm",
            json=UploadConfirmation(storage_key=storage_key).model_dump(),
        )
        return ProjectDocument.model_validate(response.json())

    async def delete_document(self, project_id: uuid.UUID, document_id: uuid.UUID) -> None:
        await self._request("DELETE", f"/projects/{project_id}/documents/{document_id}")

    # ------------------------------------------------------------------
    # Transfer
    # ------------------------------------------------------------------

    async def upload(self, upload_url: str, content: bytes, content_type: str) -> None:
        """
        PUT raw bytes to a presigned URL.

        Raises:
            ApiClientError: Transport error or non-2xx response
        """
        try:
            response = await self._transfer.put(
                upload_url,
                content=content,
                headers={"Content-Type": content_type},
            )
        except httpx.HTTPError as e:
            raise ApiClientError(f"Upload to storage failed: {e}") from e
        if not response.is_success:
            raise ApiClientError(
                f"Storage rejected upload with HTTP {response.status_code}",
                status_code=response.status_code,
            )
        logger.debug("Bytes transferred", extra={"size": len(content), "content_type": content_type})

    # ------------------------------------------------------------------
    # Status and chunks
    # ------------------------------------------------------------------

    async def get_document(self, project_id: uuid.UUID, document_id: uuid.UUID) -> DocumentDetail:
        response = await self._request("GET", f"/projects/{project_id}/documents/{document_id}")
        return DocumentDetail.model_validate(response.json())

    async def list_documents(self, project_id: uuid.UUID) -> list[ProjectDocument]:
        response = await self._request("GET", f"/projects/{project_id}/documents")
        return DocumentListResponse.model_validate(response.json()).documents

    async def list_chunks(self, project_id: uuid.UUID, document_id: uuid.UUID) -> list[Chunk]:
        response = await self._request("GET", f"/projects/{project_id}/documents/{document_id}/chunks")
        return ChunkListResponse.model_validate(response.json()).chunks

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def get_settings(self, project_id: uuid.UUID) -> RetrievalSettings:
        response = await self._request("GET", f"/projects/{project_id}/settings")
        return ProjectSettingsResponse.model_validate(response.json()).to_settings()

    async def put_settings(
        self,
        project_id: uuid.UUID,
        update: RetrievalSettingsUpdate,
    ) -> RetrievalSettings:
        response = await self._request(
            "PUT",
            f"/projects/{project_id}/settings",
            json=update.model_dump(mode="json", exclude_unset=True),
        )
        return ProjectSettingsResponse.model_validate(response.json()).to_settings()

    async def estimate(self, project_id: uuid.UUID, settings: RetrievalSettings) -> PerformanceEstimate:
        response = await self._request(
            "POST",
            f"/projects/{project_id}/settings/estimate",
            json=settings.model_dump(mode="json", exclude={"keyword_weight"}),
        )
        return PerformanceEstimate.model_validate(response.json())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._base_url}{API_PREFIX}{path}"
        try:
            response = await self._http.request(
                method,
                url,
                headers={PRINCIPAL_HEADER: self._principal_id},
                **kwargs,
            )
        except httpx.HTTPError as e:
            logger.warning("Request failed", extra={"method": method, "url": url, "error": str(e)})
            raise ApiClientError(f"{method} {path} failed: {e}") from e

        if response.is_error:
            raise ApiClientError(
                f"{method} {path} returned HTTP {response.status_code}: {_error_detail(response)}",
                status_code=response.status_code,
            )
        return response


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict) and "detail" in payload:
        detail = payload["detail"]
        if isinstance(detail, dict):
            return str(detail.get("message", detail))
        return str(detail)
    return response.text
