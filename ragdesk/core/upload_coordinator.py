"""
Upload coordinator.

Drives one file from selection to a confirmed document:

    policy check -> register (upload slot) -> transfer bytes -> confirm

A failure after registration marks the document failed and deletes it
best-effort, so no document is left in 'uploading'. Files in a batch are
uploaded concurrently and fail independently.

Dependencies: ragdesk.core.interfaces, ragdesk.core.document_registry
System role: Client-side upload orchestration
"""

import asyncio
import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from ragdesk.core.document_registry import DocumentRegistry
from ragdesk.core.exceptions import (
    CleanupFailed,
    ConfirmationFailed,
    RagdeskError,
    RegistrationFailed,
    TransferFailed,
    UploadError,
)
from ragdesk.core.interfaces import RegistrationService, TransferTarget
from ragdesk.core.upload_policy import UploadPolicy
from ragdesk.models.document import ProjectDocument, UploadFile

logger = logging.getLogger(__name__)


@dataclass
class UploadOutcome:
    """Result of one file in a batch: a document or the error that stopped it."""

    filename: str
    document: ProjectDocument | None = None
    error: RagdeskError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class UploadCoordinator:
    """Uploads files into one project's knowledge base."""

    def __init__(
        self,
        project_id: uuid.UUID,
        registration: RegistrationService,
        transfer: TransferTarget,
        registry: DocumentRegistry,
        policy: UploadPolicy | None = None,
    ) -> None:
        self.project_id = project_id
        self.registration = registration
        self.transfer = transfer
        self.registry = registry
        self.policy = policy or UploadPolicy()

    async def ingest(self, file: UploadFile) -> ProjectDocument:
        """
        Upload one file and return its confirmed document.

        Args:
            file: File name, size, MIME type and bytes

        Returns:
            ProjectDocument: Document in 'queued'

        Raises:
            UploadRejected: File outside the allow-list or size limit
            RegistrationFailed: Upload slot could not be obtained
            TransferFailed: Bytes could not be stored
            ConfirmationFailed: Upload could not be confirmed
        """
        self.policy.validate(file.name, file.size, file.mime_type)

        try:
            slot = await self.registration.request_upload_slot(
                self.project_id, file.name, file.size, file.mime_type
            )
        except Exception as e:
            raise RegistrationFailed(
                f"Could not register '{file.name}': {e}", filename=file.name
            ) from e

        document = slot.document
        await self.registry.add_pending(document)
        logger.info(
            "Upload slot issued",
            extra={"document_id": str(document.id), "doc_filename": file.name, "storage_key": slot.storage_key},
        )

        try:
            await self.transfer.upload(slot.upload_url, file.content, file.mime_type)
        except Exception as e:
            error = TransferFailed(
                f"Transfer of '{file.name}' failed: {e}",
                filename=file.name,
                document_id=str(document.id),
            )
            await self._compensate(document, error)
            raise error from e

        try:
            confirmed = await self.registration.confirm_upload(self.project_id, slot.storage_key)
        except Exception as e:
            error = ConfirmationFailed(
                f"Confirmation of '{file.name}' failed: {e}",
                filename=file.name,
                document_id=str(document.id),
            )
            await self._compensate(document, error)
            raise error from e

        await self.registry.confirm(confirmed)
        logger.info(
            "Upload confirmed",
            extra={"document_id": str(confirmed.id), "status": confirmed.processing_status.value},
        )
        return confirmed

    async def ingest_many(self, files: Iterable[UploadFile]) -> list[UploadOutcome]:
        """
        Upload files concurrently; one outcome per file, in input order.

        A failing file never cancels or delays the others.
        """
        return list(await asyncio.gather(*(self._ingest_isolated(file) for file in files)))

    async def _ingest_isolated(self, file: UploadFile) -> UploadOutcome:
        try:
            document = await self.ingest(file)
        except RagdeskError as e:
            logger.warning(
                "Upload failed",
                extra={
                    "doc_filename": file.name,
                    "step": getattr(e, "step", "policy"),
                    "error": e.message,
                },
            )
            return UploadOutcome(filename=file.name, error=e)
        return UploadOutcome(filename=file.name, document=document)

    async def _compensate(self, document: ProjectDocument, error: UploadError) -> None:
        """Mark the document failed, then try to delete it server-side."""
        await self.registry.mark_failed(document.id, error.message)
        try:
            await self.registration.delete_document(self.project_id, document.id)
        except Exception as cleanup_exc:
            cleanup = CleanupFailed(str(document.id), details={"reason": str(cleanup_exc)})
            cleanup.__cause__ = cleanup_exc
            error.cleanup_error = cleanup
            logger.warning(
                "Cleanup after failed upload did not succeed",
                extra={"document_id": str(document.id), "step": error.step, "error": str(cleanup_exc)},
            )
            return
        await self.registry.remove(document.id)
