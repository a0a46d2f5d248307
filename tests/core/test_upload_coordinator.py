"""
Tests for the upload coordinator.

Registration, transfer and confirmation are AsyncMocks; the registry is real.
"""

import asyncio
import uuid
from unittest.mock import AsyncMock

import pytest

from ragdesk.core.document_registry import DocumentRegistry
from ragdesk.core.exceptions import (
    ApiClientError,
    CleanupFailed,
    ConfirmationFailed,
    RegistrationFailed,
    TransferFailed,
    UploadRejected,
)
from ragdesk.core.interfaces import RegistrationService, TransferTarget
from ragdesk.core.pipeline import ProcessingStatus
from ragdesk.core.upload_coordinator import UploadCoordinator
from ragdesk.models.document import UploadSlot
from tests.factories import make_document, make_upload_file


@pytest.fixture
def registry() -> DocumentRegistry:
    return DocumentRegistry()


@pytest.fixture
def registration(project_id):
    """RegistrationService mock issuing a fresh document per slot and confirming it as queued."""
    service = AsyncMock(spec=RegistrationService)
    issued = {}

    async def request_upload_slot(pid, filename, size, content_type):
        document = make_document(project_id=pid, filename=filename)
        key = f"projects/{pid}/documents/{uuid.uuid4().hex[:8]}-{filename}"
        document = document.model_copy(update={"storage_key": key})
        issued[key] = document
        return UploadSlot(
            upload_url=f"https://bucket.s3.amazonaws.com/{key}?sig=1",
            storage_key=key,
            expires_at="2030-01-01T00:00:00+00:00",
            document=document,
        )

    async def confirm_upload(pid, storage_key):
        return issued[storage_key].model_copy(update={"processing_status": ProcessingStatus.QUEUED})

    service.request_upload_slot.side_effect = request_upload_slot
    service.confirm_upload.side_effect = confirm_upload
    service.delete_document.return_value = None
    return service


@pytest.fixture
def transfer():
    target = AsyncMock(spec=TransferTarget)
    target.upload.return_value = None
    return target


@pytest.fixture
def coordinator(project_id, registration, transfer, registry) -> UploadCoordinator:
    return UploadCoordinator(project_id, registration, transfer, registry)


class TestIngest:
    @pytest.mark.asyncio
    async def test_successful_upload_is_queued(self, coordinator, registry, transfer):
        """Arrange: all collaborators succeed. Act: ingest. Assert: confirmed document in registry."""
        file = make_upload_file()

        document = await coordinator.ingest(file)

        assert document.processing_status is ProcessingStatus.QUEUED
        assert registry.get(document.id).processing_status is ProcessingStatus.QUEUED
        assert registry.is_confirmed(document.id)
        upload_url, content, content_type = transfer.upload.call_args.args
        assert upload_url.startswith("https://bucket.s3.amazonaws.com/")
        assert content == file.content
        assert content_type == "application/pdf"

    @pytest.mark.asyncio
    async def test_policy_rejection_makes_no_network_call(self, coordinator, registration, transfer):
        with pytest.raises(UploadRejected):
            await coordinator.ingest(make_upload_file(name="photo.png", mime_type="image/png"))

        registration.request_upload_slot.assert_not_called()
        transfer.upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_registration_failure(self, coordinator, registration, registry):
        registration.request_upload_slot.side_effect = ApiClientError("boom", status_code=500)

        with pytest.raises(RegistrationFailed) as exc_info:
            await coordinator.ingest(make_upload_file())

        assert isinstance(exc_info.value.__cause__, ApiClientError)
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_transfer_failure_cleans_up(self, coordinator, registration, transfer, registry):
        transfer.upload.side_effect = ApiClientError("storage said no", status_code=403)

        with pytest.raises(TransferFailed) as exc_info:
            await coordinator.ingest(make_upload_file())

        error = exc_info.value
        assert error.step == "transfer"
        assert error.cleanup_error is None
        registration.delete_document.assert_awaited_once()
        assert registry.get(uuid.UUID(error.document_id)) is None
        registration.confirm_upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_cleanup_failure_is_attached_not_raised(self, coordinator, registration, transfer, registry):
        transfer.upload.side_effect = ApiClientError("timeout")
        registration.delete_document.side_effect = ApiClientError("delete failed", status_code=500)

        with pytest.raises(TransferFailed) as exc_info:
            await coordinator.ingest(make_upload_file())

        error = exc_info.value
        assert isinstance(error.cleanup_error, CleanupFailed)
        assert error.cleanup_error.document_id == error.document_id
        remaining = registry.get(uuid.UUID(error.document_id))
        assert remaining.processing_status is ProcessingStatus.FAILED

    @pytest.mark.asyncio
    async def test_confirmation_failure_cleans_up(self, coordinator, registration, registry):
        registration.confirm_upload.side_effect = ApiClientError("conflict", status_code=409)

        with pytest.raises(ConfirmationFailed):
            await coordinator.ingest(make_upload_file())

        registration.delete_document.assert_awaited_once()
        assert len(registry) == 0


class TestIngestMany:
    @pytest.mark.asyncio
    async def test_one_failure_does_not_affect_siblings(self, coordinator, transfer, registry):
        """N files, file k fails at transfer: N-1 queued, k absent, none left uploading."""
        files = [make_upload_file(name=f"doc{i}.pdf") for i in range(4)]

        async def upload(url, content, content_type):
            if "doc2" in url:
                raise ApiClientError("broken pipe")

        transfer.upload.side_effect = upload

        outcomes = await coordinator.ingest_many(files)

        assert [o.filename for o in outcomes] == [f.name for f in files]
        assert [o.succeeded for o in outcomes] == [True, True, False, True]
        assert isinstance(outcomes[2].error, TransferFailed)
        statuses = [d.processing_status for d in registry.documents()]
        assert statuses.count(ProcessingStatus.QUEUED) == 3
        assert ProcessingStatus.UPLOADING not in statuses

    @pytest.mark.asyncio
    async def test_rejected_file_reported_in_outcome(self, coordinator):
        outcomes = await coordinator.ingest_many(
            [make_upload_file(), make_upload_file(name="empty.txt", content=b"", mime_type="text/plain")]
        )

        assert outcomes[0].succeeded
        assert isinstance(outcomes[1].error, UploadRejected)

    @pytest.mark.asyncio
    async def test_slow_file_does_not_delay_others(self, coordinator, transfer):
        release = asyncio.Event()
        finished = []

        async def upload(url, content, content_type):
            if "slow" in url:
                await release.wait()
            finished.append(url)

        transfer.upload.side_effect = upload

        task = asyncio.create_task(
            coordinator.ingest_many([make_upload_file(name="slow.pdf"), make_upload_file(name="fast.pdf")])
        )
        for _ in range(50):
            if finished:
                break
            await asyncio.sleep(0)

        assert len(finished) == 1 and "fast" in finished[0]
        release.set()
        outcomes = await task
        assert all(o.succeeded for o in outcomes)
