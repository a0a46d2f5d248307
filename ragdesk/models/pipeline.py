"""
Pipeline stage schemas.

Stage records exposed to consumers and stage events reported by the
processing worker.

Dependencies: pydantic, ragdesk.core.pipeline
System role: Stage status API contracts
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ragdesk.core.pipeline import ProcessingStatus, StageRecord, StageStatus, get_stage_definition


class StageRecordSchema(BaseModel):
    """One stage of a document's pipeline run."""

    model_config = ConfigDict(from_attributes=True)

    stage: ProcessingStatus
    status: StageStatus
    progress: int = Field(default=0, ge=0, le=100)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    name: str = ""
    description: str = ""

    @classmethod
    def from_record(cls, record: StageRecord) -> "StageRecordSchema":
        """Build schema from an engine record, attaching display metadata."""
        definition = get_stage_definition(record.stage)
        return cls(
            stage=record.stage,
            status=record.status,
            progress=record.progress,
            started_at=record.started_at,
            completed_at=record.completed_at,
            name=definition.name,
            description=definition.description,
        )


class StageEvent(BaseModel):
    """
    Stage report from the processing worker.

    stage == current stage: progress update
    stage == next stage: previous stage finished, this one started
    stage == completed: last stage finished
    stage == failed: current stage failed with error_message
    """

    stage: ProcessingStatus = Field(description="Stage the event refers to")
    progress: int = Field(default=0, ge=0, le=100, description="Progress within the stage")
    error_message: str | None = Field(default=None, max_length=2000)
