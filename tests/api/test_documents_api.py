import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock
from uuid import uuid4

from ragdesk.api.deps.dependencies import get_document_service, get_pipeline_service
from ragdesk.api.main import create_app
from ragdesk.core.exceptions import (
    DispatchError,
    DocumentNotFoundError,
    DocumentStateError,
    NotReady,
    StageOrderViolation,
    StorageError,
    UploadRejected,
)
from ragdesk.core.pipeline import ProcessingStatus
from ragdesk.models import ChunkListResponse, DocumentListResponse, UploadSlot
from ragdesk.observability.middleware import CORRELATION_HEADER
from tests.factories import make_chunk, make_detail, make_document


@pytest.fixture
def mock_document_service():
    return AsyncMock()


@pytest.fixture
def mock_pipeline_service():
    return AsyncMock()


@pytest.fixture
def client(mock_document_service, mock_pipeline_service):
    app = create_app()
    app.dependency_overrides[get_document_service] = lambda: mock_document_service
    app.dependency_overrides[get_pipeline_service] = lambda: mock_pipeline_service
    return TestClient(app)


def test_create_upload_slot_passes_principal(client, mock_document_service):
    project_id = uuid4()
    document = make_document(project_id=project_id)
    mock_document_service.request_upload_slot.return_value = UploadSlot(
        upload_url="https://documents.s3.amazonaws.com/key?sig=1",
        storage_key=document.storage_key,
        expires_at="2030-01-01T00:00:00+00:00",
        document=document,
    )

    response = client.post(
        f"/api/v1/projects/{project_id}/documents/upload-url",
        json={"filename": "report.pdf", "file_size": 1024, "content_type": "application/pdf"},
        headers={"X-Principal-ID": "user-7"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["storage_key"] == document.storage_key
    assert data["document"]["processing_status"] == "uploading"
    args = mock_document_service.request_upload_slot.call_args.args
    assert args[0] == project_id
    assert args[1] == "user-7"


def test_missing_principal_is_anonymous(client, mock_document_service):
    project_id = uuid4()
    document = make_document(project_id=project_id)
    mock_document_service.request_upload_slot.return_value = UploadSlot(
        upload_url="https://x", storage_key=document.storage_key, expires_at="2030-01-01T00:00:00+00:00", document=document
    )

    client.post(
        f"/api/v1/projects/{project_id}/documents/upload-url",
        json={"filename": "report.pdf", "file_size": 1024, "content_type": "application/pdf"},
    )

    assert mock_document_service.request_upload_slot.call_args.args[1] == "anonymous"


def test_rejected_upload_returns_400(client, mock_document_service):
    mock_document_service.request_upload_slot.side_effect = UploadRejected("Unsupported file type", filename="a.png")

    response = client.post(
        f"/api/v1/projects/{uuid4()}/documents/upload-url",
        json={"filename": "a.png", "file_size": 10, "content_type": "image/png"},
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["error"] == "UploadRejected"
    assert detail["details"]["filename"] == "a.png"


def test_negative_file_size_is_422(client):
    response = client.post(
        f"/api/v1/projects/{uuid4()}/documents/upload-url",
        json={"filename": "a.pdf", "file_size": -1, "content_type": "application/pdf"},
    )

    assert response.status_code == 422


@pytest.mark.parametrize(
    "error,status_code",
    [
        (DocumentNotFoundError("k"), 404),
        (DocumentStateError("Upload already confirmed", document_id="d", status="queued"), 409),
        (StorageError("head failed", operation="head"), 502),
        (DispatchError("queue down"), 502),
        (RuntimeError("boom"), 500),
    ],
)
def test_confirm_error_mapping(client, mock_document_service, error, status_code):
    mock_document_service.confirm_upload.side_effect = error

    response = client.post(f"/api/v1/projects/{uuid4()}/documents/confirm", json={"storage_key": "k"})

    assert response.status_code == status_code


def test_confirm_returns_queued_document(client, mock_document_service):
    project_id = uuid4()
    mock_document_service.confirm_upload.return_value = make_document(
        project_id=project_id, status=ProcessingStatus.QUEUED, progress=11
    )

    response = client.post(f"/api/v1/projects/{project_id}/documents/confirm", json={"storage_key": "k"})

    assert response.status_code == 200
    assert response.json()["processing_status"] == "queued"
    mock_document_service.confirm_upload.assert_called_once_with(project_id, "k")


def test_list_documents(client, mock_document_service):
    project_id = uuid4()
    documents = [make_document(project_id=project_id), make_document(project_id=project_id)]
    mock_document_service.list_documents.return_value = DocumentListResponse(documents=documents, total=2)

    response = client.get(f"/api/v1/projects/{project_id}/documents")

    assert response.status_code == 200
    assert response.json()["total"] == 2


def test_get_document_with_stages(client, mock_document_service):
    project_id = uuid4()
    detail = make_detail(make_document(project_id=project_id, status=ProcessingStatus.CHUNKING))
    mock_document_service.get_document.return_value = detail

    response = client.get(f"/api/v1/projects/{project_id}/documents/{detail.id}")

    assert response.status_code == 200
    stages = response.json()["stages"]
    assert len(stages) == 9
    assert stages[5]["stage"] == "chunking"
    assert stages[5]["status"] == "processing"


def test_get_unknown_document(client, mock_document_service):
    document_id = uuid4()
    mock_document_service.get_document.side_effect = DocumentNotFoundError(str(document_id))

    response = client.get(f"/api/v1/projects/{uuid4()}/documents/{document_id}")

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "DocumentNotFoundError"


def test_delete_document(client, mock_document_service):
    project_id = uuid4()
    document_id = uuid4()
    mock_document_service.delete_document.return_value = None

    response = client.delete(f"/api/v1/projects/{project_id}/documents/{document_id}")

    assert response.status_code == 204
    mock_document_service.delete_document.assert_called_once_with(project_id, document_id)


def test_chunks_not_ready_is_409(client, mock_document_service):
    document_id = uuid4()
    mock_document_service.list_chunks.side_effect = NotReady(str(document_id), "embedding")

    response = client.get(f"/api/v1/projects/{uuid4()}/documents/{document_id}/chunks")

    assert response.status_code == 409
    assert response.json()["detail"]["details"]["status"] == "embedding"


def test_list_chunks(client, mock_document_service):
    document_id = uuid4()
    chunks = [make_chunk(document_id, 0, "alpha"), make_chunk(document_id, 1, "beta")]
    mock_document_service.list_chunks.return_value = ChunkListResponse(document_id=document_id, chunks=chunks, total=2)

    response = client.get(f"/api/v1/projects/{uuid4()}/documents/{document_id}/chunks")

    assert response.status_code == 200
    assert [c["index"] for c in response.json()["chunks"]] == [0, 1]


def test_stage_event(client, mock_pipeline_service):
    project_id = uuid4()
    detail = make_detail(make_document(project_id=project_id, status=ProcessingStatus.ANALYSIS))
    mock_pipeline_service.record_stage_event.return_value = detail

    response = client.post(
        f"/api/v1/projects/{project_id}/documents/{detail.id}/stages",
        json={"stage": "analysis", "progress": 25},
    )

    assert response.status_code == 200
    event = mock_pipeline_service.record_stage_event.call_args.args[2]
    assert event.stage is ProcessingStatus.ANALYSIS
    assert event.progress == 25


def test_stage_order_violation_is_409(client, mock_pipeline_service):
    mock_pipeline_service.record_stage_event.side_effect = StageOrderViolation("Cannot move from 'queued' to 'chunking'")

    response = client.post(
        f"/api/v1/projects/{uuid4()}/documents/{uuid4()}/stages",
        json={"stage": "chunking"},
    )

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "StageOrderViolation"


def test_invalid_stage_progress_is_422(client):
    response = client.post(
        f"/api/v1/projects/{uuid4()}/documents/{uuid4()}/stages",
        json={"stage": "analysis", "progress": 120},
    )

    assert response.status_code == 422


def test_store_chunks(client, mock_pipeline_service):
    document_id = uuid4()
    mock_pipeline_service.store_chunks.return_value = 2

    response = client.post(
        f"/api/v1/projects/{uuid4()}/documents/{document_id}/chunks",
        json={
            "chunks": [
                {"type": "text", "content": "alpha", "page": 1, "index": 0},
                {"type": "image", "content": "figure", "page": 1, "index": 1},
            ]
        },
    )

    assert response.status_code == 201
    assert response.json() == {"document_id": str(document_id), "stored": 2}


def test_duplicate_chunk_indexes_are_422(client):
    response = client.post(
        f"/api/v1/projects/{uuid4()}/documents/{uuid4()}/chunks",
        json={
            "chunks": [
                {"type": "text", "content": "a", "page": 1, "index": 0},
                {"type": "text", "content": "b", "page": 1, "index": 0},
            ]
        },
    )

    assert response.status_code == 422


def test_correlation_id_is_echoed(client, mock_document_service):
    mock_document_service.list_documents.return_value = DocumentListResponse(documents=[], total=0)

    response = client.get(f"/api/v1/projects/{uuid4()}/documents", headers={CORRELATION_HEADER: "req-123"})

    assert response.headers[CORRELATION_HEADER] == "req-123"
