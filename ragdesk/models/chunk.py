"""
Chunk domain model.

Represents a retrievable unit of document content produced by the pipeline:
a text span, or a derived description of an image or table.

Dependencies: pydantic
System role: Document chunk data structure
"""

import enum
import uuid

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ChunkType(str, enum.Enum):
    """Kind of content a chunk holds."""

    TEXT = "text"
    IMAGE = "image"
    TABLE = "table"


class ChunkTypeFilter(str, enum.Enum):
    """Type filter for chunk listings; ALL disables filtering."""

    ALL = "all"
    TEXT = "text"
    IMAGE = "image"
    TABLE = "table"


class Chunk(BaseModel):
    """Document chunk as returned to consumers."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str = Field(description="Deterministic chunk identifier (hash)")
    document_id: uuid.UUID
    type: ChunkType
    content: str = Field(description="Text, or derived description for image/table")
    page: int = Field(ge=0, description="Source page number")
    index: int = Field(ge=0, description="Ordinal within the document")
    char_length: int = Field(default=0, ge=0, description="Character count (text only)")


class ChunkCreate(BaseModel):
    """Chunk submitted by the processing worker."""

    type: ChunkType
    content: str
    page: int = Field(ge=0)
    index: int = Field(ge=0)
    char_length: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _derive_char_length(self) -> "ChunkCreate":
        """Text chunks count characters; image and table chunks carry 0."""
        self.char_length = len(self.content) if self.type is ChunkType.TEXT else 0
        return self


class ChunkBatch(BaseModel):
    """Bulk chunk submission."""

    chunks: list[ChunkCreate] = Field(min_length=1)

    @model_validator(mode="after")
    def _unique_indexes(self) -> "ChunkBatch":
        indexes = [chunk.index for chunk in self.chunks]
        if len(set(indexes)) != len(indexes):
            raise ValueError("Chunk indexes must be unique within a batch")
        return self


class ChunkListResponse(BaseModel):
    """Chunks of one completed document."""

    document_id: uuid.UUID
    chunks: list[Chunk]
    total: int
