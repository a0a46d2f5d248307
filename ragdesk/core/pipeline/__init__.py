"""
Pipeline stage engine.

Exports:
  - ProcessingStatus, StageStatus: Stage identifiers and per-stage states
  - PIPELINE_STAGES, STAGE_ORDER: Ordered stage catalogue
  - PipelineRun, StageRecord: Run state machine and its records
"""

from ragdesk.core.pipeline.run import PipelineRun, StageRecord
from ragdesk.core.pipeline.stages import (
    CHUNK_PRODUCING_STAGES,
    PIPELINE_STAGES,
    STAGE_ORDER,
    TERMINAL_STATUSES,
    ProcessingStatus,
    StageDefinition,
    StageStatus,
    get_stage_definition,
)

__all__ = [
    "CHUNK_PRODUCING_STAGES",
    "PIPELINE_STAGES",
    "STAGE_ORDER",
    "TERMINAL_STATUSES",
    "PipelineRun",
    "ProcessingStatus",
    "StageDefinition",
    "StageRecord",
    "StageStatus",
    "get_stage_definition",
]
