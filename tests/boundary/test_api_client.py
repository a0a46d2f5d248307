"""
Tests for the REST client against an httpx.MockTransport service.
"""

import json
import uuid

import httpx
import pytest

from ragdesk.boundary.http.api_client import PRINCIPAL_HEADER, KnowledgeBaseApiClient
from ragdesk.core.exceptions import ApiClientError
from ragdesk.core.pipeline import ProcessingStatus
from ragdesk.models import ChunkType, RagStrategy, RetrievalSettings, RetrievalSettingsUpdate, StrategyTier
from tests.factories import make_chunk, make_detail, make_document

BASE_URL = "http://ragdesk.test"


def _settings_payload(project_id, **overrides):
    payload = {
        "project_id": str(project_id),
        "embedding_model": "text-embedding-3-large",
        "rag_strategy": "basic",
        "chunks_per_search": 20,
        "final_context_size": 5,
        "similarity_threshold": 0.8,
        "number_of_queries": None,
        "reranking_enabled": False,
        "reranking_model": "ms-marco-MiniLM-L-12-v2",
        "vector_weight": 0.7,
        "keyword_weight": 0.3,
        "embedding_model_locked": False,
    }
    payload.update(overrides)
    return payload


class RecordingService:
    """Mock transport handler that records requests and answers from a route table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"detail": {"error": "DocumentNotFoundError", "message": "nope"}})
        return handler(request)


def _client(service: RecordingService) -> KnowledgeBaseApiClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(service))
    return KnowledgeBaseApiClient(BASE_URL, "user-42", http_client=http_client)


class TestRegistration:
    @pytest.mark.asyncio
    async def test_request_upload_slot(self, project_id):
        document = make_document(project_id=project_id)

        def upload_url(request):
            body = json.loads(request.content)
            assert body == {"filename": "report.pdf", "file_size": 2048, "content_type": "application/pdf"}
            return httpx.Response(
                200,
                json={
                    "upload_url": "https://bucket.s3.amazonaws.com/key?sig=1",
                    "storage_key": document.storage_key,
                    "expires_at": "2030-01-01T00:00:00+00:00",
                    "document": document.model_dump(mode="json"),
                },
            )

        service = RecordingService({("POST", f"/api/v1/projects/{project_id}/documents/upload-url"): upload_url})

        async with _client(service) as client:
            slot = await client.request_upload_slot(project_id, "report.pdf", 2048, "application/pdf")

        assert slot.document.id == document.id
        assert slot.storage_key == document.storage_key
        assert service.requests[0].headers[PRINCIPAL_HEADER] == "user-42"

    @pytest.mark.asyncio
    async def test_confirm_upload(self, project_id):
        queued = make_document(project_id=project_id, status=ProcessingStatus.QUEUED)
        service = RecordingService(
            {
                ("POST", f"/api/v1/projects/{project_id}/documents/confirm"): lambda r: httpx.Response(
                    200, json=queued.model_dump(mode="json")
                )
            }
        )

        async with _client(service) as client:
            document = await client.confirm_upload(project_id, queued.storage_key)

        assert document.processing_status is ProcessingStatus.QUEUED
        assert json.loads(service.requests[0].content) == {"storage_key": queued.storage_key}

    @pytest.mark.asyncio
    async def test_delete_document(self, project_id):
        document_id = uuid.uuid4()
        service = RecordingService(
            {("DELETE", f"/api/v1/projects/{project_id}/documents/{document_id}"): lambda r: httpx.Response(204)}
        )

        async with _client(service) as client:
            await client.delete_document(project_id, document_id)

        assert service.requests[0].method == "DELETE"


class TestErrors:
    @pytest.mark.asyncio
    async def test_error_status_carries_code_and_message(self, project_id):
        service = RecordingService(
            {
                ("GET", f"/api/v1/projects/{project_id}/documents"): lambda r: httpx.Response(
                    502, json={"detail": {"error": "StorageError", "message": "S3 unavailable"}}
                )
            }
        )

        async with _client(service) as client:
            with pytest.raises(ApiClientError) as exc_info:
                await client.list_documents(project_id)

        assert exc_info.value.status_code == 502
        assert "S3 unavailable" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_not_found(self, project_id):
        async with _client(RecordingService({})) as client:
            with pytest.raises(ApiClientError) as exc_info:
                await client.get_document(project_id, uuid.uuid4())

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_transport_error_has_no_status(self, project_id):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
        client = KnowledgeBaseApiClient(BASE_URL, "user-42", http_client=http_client)

        with pytest.raises(ApiClientError) as exc_info:
            await client.list_documents(project_id)

        assert exc_info.value.status_code is None
        await http_client.aclose()


class TestTransfer:
    @pytest.mark.asyncio
    async def test_upload_puts_bytes_without_principal(self):
        service = RecordingService({("PUT", "/bucket/key"): lambda r: httpx.Response(200)})

        async with _client(service) as client:
            await client.upload("https://s3.test/bucket/key?X-Amz-Signature=abc", b"%PDF", "application/pdf")

        request = service.requests[0]
        assert request.content == b"%PDF"
        assert request.headers["Content-Type"] == "application/pdf"
        assert PRINCIPAL_HEADER not in request.headers

    @pytest.mark.asyncio
    async def test_storage_rejection(self):
        service = RecordingService({("PUT", "/bucket/key"): lambda r: httpx.Response(403, text="SignatureDoesNotMatch")})

        async with _client(service) as client:
            with pytest.raises(ApiClientError) as exc_info:
                await client.upload("https://s3.test/bucket/key", b"x", "text/plain")

        assert exc_info.value.status_code == 403


class TestReads:
    @pytest.mark.asyncio
    async def test_get_document_includes_stages(self, project_id):
        detail = make_detail(make_document(project_id=project_id, status=ProcessingStatus.EMBEDDING))
        service = RecordingService(
            {
                ("GET", f"/api/v1/projects/{project_id}/documents/{detail.id}"): lambda r: httpx.Response(
                    200, json=detail.model_dump(mode="json")
                )
            }
        )

        async with _client(service) as client:
            fetched = await client.get_document(project_id, detail.id)

        assert fetched.processing_status is ProcessingStatus.EMBEDDING
        assert len(fetched.stages) == len(detail.stages)

    @pytest.mark.asyncio
    async def test_list_chunks(self, project_id):
        document_id = uuid.uuid4()
        chunks = [make_chunk(document_id, 0, "alpha"), make_chunk(document_id, 1, "table", ChunkType.TABLE)]
        payload = {
            "document_id": str(document_id),
            "chunks": [c.model_dump(mode="json") for c in chunks],
            "total": 2,
        }
        service = RecordingService(
            {
                ("GET", f"/api/v1/projects/{project_id}/documents/{document_id}/chunks"): lambda r: httpx.Response(
                    200, json=payload
                )
            }
        )

        async with _client(service) as client:
            fetched = await client.list_chunks(project_id, document_id)

        assert [c.type for c in fetched] == [ChunkType.TEXT, ChunkType.TABLE]


class TestSettings:
    @pytest.mark.asyncio
    async def test_get_settings_restores_default_queries(self, project_id):
        service = RecordingService(
            {
                ("GET", f"/api/v1/projects/{project_id}/settings"): lambda r: httpx.Response(
                    200, json=_settings_payload(project_id)
                )
            }
        )

        async with _client(service) as client:
            settings = await client.get_settings(project_id)

        assert settings.number_of_queries == 5
        assert settings.keyword_weight == pytest.approx(0.3)

    @pytest.mark.asyncio
    async def test_put_settings_sends_only_set_fields(self, project_id):
        def put(request):
            assert json.loads(request.content) == {"rag_strategy": "hybrid"}
            return httpx.Response(200, json=_settings_payload(project_id, rag_strategy="hybrid"))

        service = RecordingService({("PUT", f"/api/v1/projects/{project_id}/settings"): put})

        async with _client(service) as client:
            settings = await client.put_settings(project_id, RetrievalSettingsUpdate(rag_strategy=RagStrategy.HYBRID))

        assert settings.rag_strategy is RagStrategy.HYBRID

    @pytest.mark.asyncio
    async def test_estimate(self, project_id):
        def estimate(request):
            body = json.loads(request.content)
            assert "keyword_weight" not in body
            return httpx.Response(
                200,
                json={
                    "total_chunks": 100,
                    "after_dedupe": 70,
                    "estimated_latency_ms": 2200,
                    "strategy_tier": "Advanced",
                },
            )

        service = RecordingService({("POST", f"/api/v1/projects/{project_id}/settings/estimate"): estimate})

        async with _client(service) as client:
            result = await client.estimate(project_id, RetrievalSettings())

        assert result.strategy_tier is StrategyTier.ADVANCED
        assert result.after_dedupe == 70
