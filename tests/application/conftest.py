"""
Fixtures for service tests: stubbed AWS boundaries over the in-memory database.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from ragdesk.application.services.document_service import DocumentService
from ragdesk.application.services.pipeline_service import PipelineService
from ragdesk.application.services.settings_service import SettingsService
from ragdesk.boundary.aws.pipeline_dispatcher import PipelineDispatcher
from ragdesk.boundary.aws.s3_client import S3DocumentClient
from ragdesk.models.document import UploadSlotRequest


@pytest.fixture
def mock_s3():
    s3 = MagicMock(spec=S3DocumentClient)
    s3.generate_presigned_url.side_effect = lambda storage_key, content_type, expires_in: (
        f"https://documents.s3.amazonaws.com/{storage_key}?X-Amz-Signature=test",
        datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    )
    s3.file_exists.return_value = True
    return s3


@pytest.fixture
def mock_dispatcher():
    dispatcher = MagicMock(spec=PipelineDispatcher)
    dispatcher.dispatch.return_value = "message-1"
    return dispatcher


@pytest.fixture
def document_service(test_async_db, mock_s3, mock_dispatcher) -> DocumentService:
    return DocumentService(test_async_db, mock_s3, mock_dispatcher)


@pytest.fixture
def pipeline_service(test_async_db) -> PipelineService:
    return PipelineService(test_async_db)


@pytest.fixture
def settings_service(test_async_db) -> SettingsService:
    return SettingsService(test_async_db)


@pytest.fixture
def slot_request() -> UploadSlotRequest:
    return UploadSlotRequest(filename="Annual Report.pdf", file_size=4096, content_type="application/pdf")


@pytest.fixture
async def queued_document(document_service, project_id, slot_request):
    """A document whose upload has been confirmed."""
    slot = await document_service.request_upload_slot(project_id, "user-1", slot_request)
    return await document_service.confirm_upload(project_id, slot.storage_key)
