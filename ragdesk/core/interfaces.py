"""
Abstract contracts between the ingestion core and its collaborators.

The core never talks to the network directly; it drives these interfaces,
implemented over HTTP by ragdesk.boundary.http.api_client and replaced by
mocks in tests.

Dependencies: ragdesk.models
System role: Boundary contracts for the client-side ingestion core
"""

import uuid
from abc import ABC, abstractmethod

from ragdesk.models.chunk import Chunk
from ragdesk.models.document import DocumentDetail, ProjectDocument, UploadSlot
from ragdesk.models.settings import RetrievalSettings, RetrievalSettingsUpdate


class RegistrationService(ABC):
    """Issues upload slots and tracks the documents created for them."""

    @abstractmethod
    async def request_upload_slot(
        self,
        project_id: uuid.UUID,
        filename: str,
        file_size: int,
        content_type: str,
    ) -> UploadSlot:
        """Create a document in 'uploading' and return where to PUT its bytes."""

    @abstractmethod
    async def confirm_upload(self, project_id: uuid.UUID, storage_key: str) -> ProjectDocument:
        """Mark the transfer finished; the document moves to 'queued'."""

    @abstractmethod
    async def delete_document(self, project_id: uuid.UUID, document_id: uuid.UUID) -> None:
        """Delete the document, its chunks and stored object."""


class TransferTarget(ABC):
    """Receives the raw bytes of an upload."""

    @abstractmethod
    async def upload(self, upload_url: str, content: bytes, content_type: str) -> None:
        """PUT the bytes to the presigned URL; raise on non-2xx."""


class DocumentStatusSource(ABC):
    @abstractmethod
    async def get_document(self, project_id: uuid.UUID, document_id: uuid.UUID) -> DocumentDetail:
        """Current document state including stage records."""


class ChunkSource(ABC):
    @abstractmethod
    async def list_chunks(self, project_id: uuid.UUID, document_id: uuid.UUID) -> list[Chunk]:
        """All chunks of a completed document, ordered by index."""


class SettingsStore(ABC):
    @abstractmethod
    async def get_settings(self, project_id: uuid.UUID) -> RetrievalSettings:
        """Project settings, created with defaults on first read."""

    @abstractmethod
    async def put_settings(
        self,
        project_id: uuid.UUID,
        update: RetrievalSettingsUpdate,
    ) -> RetrievalSettings:
        """Apply a partial update and return the stored settings."""
