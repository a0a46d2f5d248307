"""
Shared document collection for the ingestion client.

Every mutation goes through one asyncio lock and is keyed by document id.
Records start pending (created by the registration step, bytes not yet
confirmed) and are reconciled by id when the confirmation arrives. Removed
ids are tombstoned so a late poll cannot bring a deleted document back.

Dependencies: ragdesk.models, ragdesk.core.pipeline
System role: Single source of document state for coordinator, poller and UI
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass

from ragdesk.core.pipeline import STAGE_ORDER, ProcessingStatus
from ragdesk.models.document import ProjectDocument

logger = logging.getLogger(__name__)

_RANK = {stage: position for position, stage in enumerate(STAGE_ORDER)}
_RANK[ProcessingStatus.COMPLETED] = len(STAGE_ORDER)
_RANK[ProcessingStatus.FAILED] = len(STAGE_ORDER)


@dataclass
class RegistryEntry:
    document: ProjectDocument
    confirmed: bool = False


def _is_stale(current: ProjectDocument, incoming: ProjectDocument) -> bool:
    """An update is stale when it would move the document backwards."""
    if current.is_terminal:
        return incoming.processing_status is not current.processing_status
    current_rank = _RANK[current.processing_status]
    incoming_rank = _RANK[incoming.processing_status]
    if incoming_rank != current_rank:
        return incoming_rank < current_rank
    return incoming.progress_percentage < current.progress_percentage


class DocumentRegistry:
    """Document records keyed by id, in insertion order."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._entries: dict[uuid.UUID, RegistryEntry] = {}
        self._tombstones: set[uuid.UUID] = set()

    async def add_pending(self, document: ProjectDocument) -> None:
        """Insert the record returned by the registration step."""
        async with self._lock:
            if document.id in self._tombstones:
                return
            self._entries[document.id] = RegistryEntry(document=document)
            logger.debug(
                "Pending document added",
                extra={"document_id": str(document.id), "doc_filename": document.original_filename},
            )

    async def confirm(self, document: ProjectDocument) -> bool:
        """
        Reconcile the confirmed document into its pending record.

        Returns:
            bool: False if the id was removed in the meantime
        """
        async with self._lock:
            if document.id in self._tombstones:
                return False
            self._entries[document.id] = RegistryEntry(document=document, confirmed=True)
            return True

    async def apply_update(self, document: ProjectDocument) -> bool:
        """
        Apply a polled document state.

        Updates for unknown or removed ids are dropped, as are updates that
        would move a document backwards.

        Returns:
            bool: True if the record changed
        """
        async with self._lock:
            entry = self._entries.get(document.id)
            if entry is None or document.id in self._tombstones:
                logger.debug("Dropped update for unknown document", extra={"document_id": str(document.id)})
                return False
            if _is_stale(entry.document, document):
                logger.debug(
                    "Dropped stale update",
                    extra={
                        "document_id": str(document.id),
                        "current_status": entry.document.processing_status.value,
                        "incoming_status": document.processing_status.value,
                    },
                )
                return False
            entry.document = document
            return True

    async def mark_failed(self, document_id: uuid.UUID, error_message: str) -> ProjectDocument | None:
        async with self._lock:
            entry = self._entries.get(document_id)
            if entry is None:
                return None
            entry.document = entry.document.model_copy(
                update={
                    "processing_status": ProcessingStatus.FAILED,
                    "error_message": error_message,
                }
            )
            return entry.document

    async def remove(self, document_id: uuid.UUID) -> bool:
        """Remove a record and tombstone its id."""
        async with self._lock:
            self._tombstones.add(document_id)
            return self._entries.pop(document_id, None) is not None

    def get(self, document_id: uuid.UUID) -> ProjectDocument | None:
        entry = self._entries.get(document_id)
        return entry.document if entry else None

    def is_confirmed(self, document_id: uuid.UUID) -> bool:
        entry = self._entries.get(document_id)
        return bool(entry and entry.confirmed)

    def documents(self) -> list[ProjectDocument]:
        return [entry.document for entry in self._entries.values()]

    def non_terminal_ids(self) -> list[uuid.UUID]:
        """Ids of confirmed documents whose run has not finished."""
        return [
            document_id
            for document_id, entry in self._entries.items()
            if entry.confirmed and not entry.document.is_terminal
        ]

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
