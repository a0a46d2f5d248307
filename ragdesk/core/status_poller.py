"""
Document status poller.

One cancellable subscription per document id. Each subscription polls the
status source until the document is terminal, keeps a PipelineRun synced
to what it observes and writes the observed state into the registry.
Disposing a subscription cancels its task; a poll that resolves afterwards
is discarded without touching the registry. Disposal never stops the
server-side run.

Dependencies: ragdesk.core.interfaces, ragdesk.core.pipeline
System role: Client-side progress tracking
"""

import asyncio
import logging
import uuid
from collections.abc import Callable

from ragdesk.core.document_registry import DocumentRegistry
from ragdesk.core.exceptions import ApiClientError, PollDiscarded, StageOrderViolation
from ragdesk.core.interfaces import DocumentStatusSource
from ragdesk.core.pipeline import PipelineRun, ProcessingStatus, StageStatus
from ragdesk.models.document import DocumentDetail

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 2.0


def run_from_detail(detail: DocumentDetail) -> PipelineRun:
    """
    Rebuild a document's pipeline run from its stage records.

    Falls back to replaying the status when the records are absent.
    """
    if not detail.stages:
        return PipelineRun.for_status(detail.processing_status, detail.error_message)

    current_index = next(
        (i for i, record in enumerate(detail.stages) if record.status is not StageStatus.COMPLETED),
        None,
    )
    snapshot = {
        "stages": [
            record.model_dump(mode="json", include={"stage", "status", "progress", "started_at", "completed_at"})
            for record in detail.stages
        ],
        "current_index": current_index,
        "outcome": detail.processing_status.value if detail.is_terminal else None,
        "error_message": detail.error_message,
    }
    return PipelineRun.from_snapshot(snapshot)


def _stage_progress(detail: DocumentDetail) -> int | None:
    for record in detail.stages:
        if record.stage is detail.processing_status:
            return record.progress
    return None


def _failed_stage(detail: DocumentDetail) -> ProcessingStatus | None:
    for record in detail.stages:
        if record.status is StageStatus.FAILED:
            return record.stage
    return None


class StatusSubscription:
    """Polling task for one document."""

    def __init__(self, document_id: uuid.UUID) -> None:
        self.document_id = document_id
        self.run: PipelineRun | None = None
        self.last_seen: DocumentDetail | None = None
        self.task: asyncio.Task | None = None
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def active(self) -> bool:
        return not self._disposed and self.task is not None and not self.task.done()

    def dispose(self) -> None:
        """Stop polling. Safe to call more than once."""
        self._disposed = True
        if self.task is not None and not self.task.done():
            self.task.cancel()

    def observe(self, detail: DocumentDetail) -> None:
        """
        Sync the run to a polled state.

        Raises:
            PollDiscarded: Subscription already disposed
            StageOrderViolation: Polled state contradicts the run
        """
        if self._disposed:
            raise PollDiscarded(str(self.document_id))
        if self.run is None:
            self.run = run_from_detail(detail)
        else:
            self.run.sync_to(
                detail.processing_status,
                stage_progress=_stage_progress(detail),
                error_message=detail.error_message,
                failed_stage=_failed_stage(detail),
            )
        self.last_seen = detail

    async def wait(self) -> DocumentDetail | None:
        """Wait for the final polled state; None if disposed first."""
        if self.task is None:
            return None
        try:
            return await self.task
        except asyncio.CancelledError:
            if self._disposed:
                return None
            raise


class DocumentStatusPoller:
    """Subscriptions keyed by document id."""

    def __init__(
        self,
        project_id: uuid.UUID,
        status_source: DocumentStatusSource,
        registry: DocumentRegistry,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        on_update: Callable[[DocumentDetail], None] | None = None,
    ) -> None:
        self.project_id = project_id
        self.status_source = status_source
        self.registry = registry
        self.interval_seconds = interval_seconds
        self.on_update = on_update
        self._subscriptions: dict[uuid.UUID, StatusSubscription] = {}

    def subscribe(self, document_id: uuid.UUID) -> StatusSubscription:
        """Start polling a document, or return its running subscription."""
        existing = self._subscriptions.get(document_id)
        if existing is not None and existing.active:
            return existing

        subscription = StatusSubscription(document_id)
        subscription.task = asyncio.create_task(
            self._poll(subscription), name=f"poll-{document_id}"
        )
        self._subscriptions[document_id] = subscription
        return subscription

    def watch_pending(self) -> list[StatusSubscription]:
        """Subscribe every confirmed, non-terminal document in the registry."""
        return [self.subscribe(document_id) for document_id in self.registry.non_terminal_ids()]

    def dispose(self, document_id: uuid.UUID) -> None:
        subscription = self._subscriptions.pop(document_id, None)
        if subscription is not None:
            subscription.dispose()

    async def close(self) -> None:
        """Dispose every subscription and wait for the tasks to unwind."""
        subscriptions = list(self._subscriptions.values())
        self._subscriptions.clear()
        for subscription in subscriptions:
            subscription.dispose()
        tasks = [s.task for s in subscriptions if s.task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def get(self, document_id: uuid.UUID) -> StatusSubscription | None:
        return self._subscriptions.get(document_id)

    async def _poll(self, subscription: StatusSubscription) -> DocumentDetail | None:
        document_id = subscription.document_id
        while True:
            try:
                detail = await self.status_source.get_document(self.project_id, document_id)
            except ApiClientError as e:
                if e.status_code == 404:
                    logger.info("Document no longer exists, stopping poll", extra={"document_id": str(document_id)})
                    await self.registry.remove(document_id)
                    return None
                logger.warning(
                    "Status poll failed, retrying",
                    extra={"document_id": str(document_id), "error": e.message},
                )
                await asyncio.sleep(self.interval_seconds)
                continue

            try:
                await self._apply(subscription, detail)
            except PollDiscarded:
                logger.debug("Discarded poll result after dispose", extra={"document_id": str(document_id)})
                return None

            if detail.is_terminal:
                logger.info(
                    "Document reached terminal status",
                    extra={"document_id": str(document_id), "status": detail.processing_status.value},
                )
                return detail
            await asyncio.sleep(self.interval_seconds)

    async def _apply(self, subscription: StatusSubscription, detail: DocumentDetail) -> None:
        try:
            subscription.observe(detail)
        except StageOrderViolation:
            logger.error(
                "Polled status breaks stage order",
                extra={"document_id": str(subscription.document_id), "status": detail.processing_status.value},
            )
            raise
        await self.registry.apply_update(detail)
        if self.on_update is not None:
            self.on_update(detail)
