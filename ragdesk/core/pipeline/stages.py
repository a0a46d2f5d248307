"""
Pipeline stage catalogue.

Declares the totally ordered stage identifiers a document passes through,
the per-stage status values and the display metadata shown to operators.

Dependencies: None (pure domain layer)
System role: Stage vocabulary shared by the engine, persistence and API
"""

import enum
from dataclasses import dataclass


class ProcessingStatus(str, enum.Enum):
    """
    Document processing status, one value per pipeline stage plus terminals.

    The declaration order is the processing order. COMPLETED and FAILED are
    terminal; FAILED may follow any non-terminal stage.
    """

    UPLOADING = "uploading"
    QUEUED = "queued"
    ANALYSIS = "analysis"
    PARTITIONING = "partitioning"
    ENRICHMENT = "enrichment"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    STORAGE = "storage"
    INDEXING = "indexing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """True for COMPLETED and FAILED."""
        return self in TERMINAL_STATUSES


class StageStatus(str, enum.Enum):
    """
    Observable state of one stage within a run.

    PENDING: Not reached yet; not inspectable
    PROCESSING: Current stage; partial progress visible
    COMPLETED: Done; results inspectable
    FAILED: The stage that was current when the run failed
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class StageDefinition:
    """Display metadata for one pipeline stage."""

    stage: ProcessingStatus
    name: str
    description: str


PIPELINE_STAGES: tuple[StageDefinition, ...] = (
    StageDefinition(
        ProcessingStatus.UPLOADING,
        "Upload to S3",
        "Uploading file to secure cloud storage",
    ),
    StageDefinition(
        ProcessingStatus.QUEUED,
        "Queued",
        "File queued for processing",
    ),
    StageDefinition(
        ProcessingStatus.ANALYSIS,
        "Document Analysis",
        "Analyzing document structure and metadata",
    ),
    StageDefinition(
        ProcessingStatus.PARTITIONING,
        "Partitioning",
        "Processing and extracting text, images, and tables",
    ),
    StageDefinition(
        ProcessingStatus.ENRICHMENT,
        "AI Enrichment",
        "Enhancing images and tables with AI descriptions",
    ),
    StageDefinition(
        ProcessingStatus.CHUNKING,
        "Text Chunking",
        "Creating semantic text chunks",
    ),
    StageDefinition(
        ProcessingStatus.EMBEDDING,
        "Embedding Generation",
        "Generating vector embeddings",
    ),
    StageDefinition(
        ProcessingStatus.STORAGE,
        "Vector Storage",
        "Storing vectors in database",
    ),
    StageDefinition(
        ProcessingStatus.INDEXING,
        "Index Building",
        "Building search indexes",
    ),
)

STAGE_ORDER: tuple[ProcessingStatus, ...] = tuple(d.stage for d in PIPELINE_STAGES)

TERMINAL_STATUSES = frozenset({ProcessingStatus.COMPLETED, ProcessingStatus.FAILED})

# Stages during which the worker may write chunks for a document
CHUNK_PRODUCING_STAGES = frozenset(
    {
        ProcessingStatus.CHUNKING,
        ProcessingStatus.EMBEDDING,
        ProcessingStatus.STORAGE,
        ProcessingStatus.INDEXING,
    }
)

_DEFINITIONS = {d.stage: d for d in PIPELINE_STAGES}


def get_stage_definition(stage: ProcessingStatus) -> StageDefinition:
    """
    Look up display metadata for a pipeline stage.

    Args:
        stage: Non-terminal processing status

    Returns:
        StageDefinition: Name and description

    Raises:
        KeyError: If stage is terminal
    """
    return _DEFINITIONS[stage]
