"""
Tests for stage event application and chunk storage.
"""

import uuid

import pytest

from ragdesk.application.services.pipeline_service import apply_stage_event
from ragdesk.core.exceptions import DocumentNotFoundError, DocumentStateError, StageOrderViolation
from ragdesk.core.pipeline import PipelineRun, ProcessingStatus, StageStatus
from ragdesk.models import ChunkBatch, ChunkCreate, ChunkType, StageEvent


def _batch(*indexes: int) -> ChunkBatch:
    return ChunkBatch(
        chunks=[ChunkCreate(type=ChunkType.TEXT, content=f"chunk {i}", page=1, index=i) for i in indexes]
    )


async def _advance(pipeline_service, project_id, document_id, *stages):
    detail = None
    for stage in stages:
        detail = await pipeline_service.record_stage_event(project_id, document_id, StageEvent(stage=stage))
    return detail


class TestApplyStageEvent:
    def _queued_run(self) -> PipelineRun:
        run = PipelineRun()
        run.advance_to(ProcessingStatus.QUEUED)
        return run

    def test_next_stage_with_progress(self):
        run = self._queued_run()

        apply_stage_event(run, StageEvent(stage=ProcessingStatus.ANALYSIS, progress=30))

        assert run.status is ProcessingStatus.ANALYSIS
        assert run.stages[2].progress == 30

    def test_progress_within_current_stage(self):
        run = self._queued_run()

        apply_stage_event(run, StageEvent(stage=ProcessingStatus.QUEUED, progress=50))

        assert run.status is ProcessingStatus.QUEUED
        assert run.stages[1].progress == 50

    def test_failure_uses_default_message(self):
        run = self._queued_run()

        apply_stage_event(run, StageEvent(stage=ProcessingStatus.FAILED))

        assert run.status is ProcessingStatus.FAILED
        assert run.error_message == "Processing failed"

    def test_skipping_a_stage_is_rejected(self):
        run = self._queued_run()

        with pytest.raises(StageOrderViolation):
            apply_stage_event(run, StageEvent(stage=ProcessingStatus.CHUNKING))


class TestRecordStageEvent:
    @pytest.mark.asyncio
    async def test_progress_is_persisted(self, pipeline_service, document_service, project_id, queued_document):
        await pipeline_service.record_stage_event(
            project_id, queued_document.id, StageEvent(stage=ProcessingStatus.ANALYSIS, progress=40)
        )

        detail = await document_service.get_document(project_id, queued_document.id)
        assert detail.processing_status is ProcessingStatus.ANALYSIS
        assert detail.stages[2].status is StageStatus.PROCESSING
        assert detail.stages[2].progress == 40
        assert detail.progress_percentage == (2 * 100 + 40) // 9

    @pytest.mark.asyncio
    async def test_failure_freezes_progress(self, pipeline_service, project_id, queued_document):
        before = await _advance(pipeline_service, project_id, queued_document.id, ProcessingStatus.ANALYSIS)

        failed = await pipeline_service.record_stage_event(
            project_id,
            queued_document.id,
            StageEvent(stage=ProcessingStatus.FAILED, error_message="Unreadable PDF"),
        )

        assert failed.processing_status is ProcessingStatus.FAILED
        assert failed.error_message == "Unreadable PDF"
        assert failed.progress_percentage == before.progress_percentage
        assert all(s.status is StageStatus.PENDING for s in failed.stages[3:])

    @pytest.mark.asyncio
    async def test_event_after_terminal_rejected(self, pipeline_service, project_id, queued_document):
        await pipeline_service.record_stage_event(
            project_id, queued_document.id, StageEvent(stage=ProcessingStatus.FAILED)
        )

        with pytest.raises(StageOrderViolation):
            await pipeline_service.record_stage_event(
                project_id, queued_document.id, StageEvent(stage=ProcessingStatus.ANALYSIS)
            )

    @pytest.mark.asyncio
    async def test_progress_regression_rejected(self, pipeline_service, project_id, queued_document):
        await pipeline_service.record_stage_event(
            project_id, queued_document.id, StageEvent(stage=ProcessingStatus.ANALYSIS, progress=60)
        )

        with pytest.raises(StageOrderViolation):
            await pipeline_service.record_stage_event(
                project_id, queued_document.id, StageEvent(stage=ProcessingStatus.ANALYSIS, progress=20)
            )

    @pytest.mark.asyncio
    async def test_events_rejected_before_confirmation(
        self, pipeline_service, document_service, project_id, slot_request
    ):
        slot = await document_service.request_upload_slot(project_id, "user-1", slot_request)

        with pytest.raises(DocumentStateError):
            await pipeline_service.record_stage_event(
                project_id, slot.document.id, StageEvent(stage=ProcessingStatus.QUEUED)
            )

    @pytest.mark.asyncio
    async def test_unknown_document(self, pipeline_service, project_id):
        with pytest.raises(DocumentNotFoundError):
            await pipeline_service.record_stage_event(
                project_id, uuid.uuid4(), StageEvent(stage=ProcessingStatus.ANALYSIS)
            )


class TestStoreChunks:
    @pytest.mark.asyncio
    async def test_rejected_before_chunking(self, pipeline_service, project_id, queued_document):
        await _advance(pipeline_service, project_id, queued_document.id, ProcessingStatus.ANALYSIS)

        with pytest.raises(DocumentStateError):
            await pipeline_service.store_chunks(project_id, queued_document.id, _batch(0))

    @pytest.mark.asyncio
    async def test_batches_accumulate_across_stages(self, pipeline_service, project_id, queued_document):
        await _advance(
            pipeline_service,
            project_id,
            queued_document.id,
            ProcessingStatus.ANALYSIS,
            ProcessingStatus.PARTITIONING,
            ProcessingStatus.ENRICHMENT,
            ProcessingStatus.CHUNKING,
        )
        assert await pipeline_service.store_chunks(project_id, queued_document.id, _batch(0, 1)) == 2

        await _advance(pipeline_service, project_id, queued_document.id, ProcessingStatus.EMBEDDING)
        assert await pipeline_service.store_chunks(project_id, queued_document.id, _batch(2)) == 1

    @pytest.mark.asyncio
    async def test_duplicate_ordinal_conflicts(self, pipeline_service, project_id, queued_document):
        await _advance(
            pipeline_service,
            project_id,
            queued_document.id,
            ProcessingStatus.ANALYSIS,
            ProcessingStatus.PARTITIONING,
            ProcessingStatus.ENRICHMENT,
            ProcessingStatus.CHUNKING,
        )
        await pipeline_service.store_chunks(project_id, queued_document.id, _batch(0))

        with pytest.raises(DocumentStateError):
            await pipeline_service.store_chunks(project_id, queued_document.id, _batch(0))
