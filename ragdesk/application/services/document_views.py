"""Mapping from document rows to API schemas."""

from ragdesk.boundary.db.models.document_model import DocumentModel
from ragdesk.core.pipeline import PipelineRun
from ragdesk.models.document import DocumentDetail, ProjectDocument
from ragdesk.models.pipeline import StageRecordSchema


def to_document(model: DocumentModel) -> ProjectDocument:
    return ProjectDocument.model_validate(model)


def to_detail(model: DocumentModel) -> DocumentDetail:
    """Document with stage records rebuilt from its pipeline snapshot."""
    run = PipelineRun.from_snapshot(model.pipeline)
    document = ProjectDocument.model_validate(model)
    return DocumentDetail(
        **document.model_dump(),
        stages=[StageRecordSchema.from_record(record) for record in run.stages],
    )
