"""
Document domain models and schemas.

Request/response schemas for the upload slot, confirmation and status contracts,
plus the in-memory file description used by the upload coordinator.

Dependencies: pydantic
System role: Document API contracts
"""

import mimetypes
import uuid
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ragdesk.core.pipeline import ProcessingStatus
from ragdesk.models.pipeline import StageRecordSchema


class ProjectDocument(BaseModel):
    """Document record as seen by consumers."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_id: uuid.UUID
    owner_id: str
    original_filename: str
    file_size: int = Field(ge=0)
    file_type: str
    storage_key: str = ""
    processing_status: ProcessingStatus
    progress_percentage: int = Field(default=0, ge=0, le=100)
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_terminal(self) -> bool:
        return self.processing_status.is_terminal


class DocumentDetail(ProjectDocument):
    """Document with its per-stage pipeline records."""

    stages: list[StageRecordSchema] = Field(default_factory=list)


class DocumentListResponse(BaseModel):
    """Document list response."""

    documents: list[ProjectDocument]
    total: int


class UploadSlotRequest(BaseModel):
    """Request schema for reserving an upload slot."""

    filename: str = Field(description="Original filename from user")
    file_size: int = Field(ge=0, description="Declared size in bytes")
    content_type: str = Field(
        default="application/octet-stream",
        description="MIME type of the file",
    )


class UploadSlot(BaseModel):
    """Upload slot: where to PUT the bytes and the document created for them."""

    upload_url: str = Field(description="Presigned URL for uploading file to storage")
    storage_key: str = Field(description="Object key (needed for upload confirmation)")
    expires_at: str = Field(description="ISO timestamp when URL expires")
    document: ProjectDocument


class UploadConfirmation(BaseModel):
    """Request schema for confirming that the binary transfer finished."""

    storage_key: str = Field(description="Object key from the upload slot")


class UploadFile(BaseModel):
    """A file selected for upload, held in memory."""

    name: str
    size: int = Field(ge=0)
    mime_type: str
    content: bytes = Field(repr=False)

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> "UploadFile":
        """
        Read a local file into an UploadFile.

        Args:
            path: File to read
            mime_type: Explicit MIME type; guessed from the extension when omitted

        Returns:
            UploadFile: File name, size, type and bytes
        """
        file_path = Path(path)
        content = file_path.read_bytes()
        guessed = mime_type or _guess_mime_type(file_path.name)
        return cls(name=file_path.name, size=len(content), mime_type=guessed, content=content)


_EXTENSION_TYPES = {
    ".md": "text/markdown",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def _guess_mime_type(filename: str) -> str:
    suffix = Path(filename).suffix.lower()
    if suffix in _EXTENSION_TYPES:
        return _EXTENSION_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size: int) -> str:
    """
    Human-readable file size with 1024-based units.

    Examples:
        0 -> "0 Bytes", 1536 -> "1.5 KB", 52428800 -> "50 MB"
    """
    if size <= 0:
        return "0 Bytes"
    exponent = 0
    while size >= 1024 ** (exponent + 1) and exponent < len(_SIZE_UNITS) - 1:
        exponent += 1
    value = round(size / 1024**exponent, 2)
    return f"{value:g} {_SIZE_UNITS[exponent]}"
