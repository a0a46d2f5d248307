"""
Upload allow-list and size limit.

Checked client-side before any network call and again server-side when an
upload slot is requested.

Dependencies: ragdesk.core.exceptions
System role: File acceptance rules
"""

from dataclasses import dataclass, field
from pathlib import PurePath

from ragdesk.core.exceptions import UploadRejected

MAX_UPLOAD_BYTES = 50 * 1024 * 1024

ALLOWED_FILE_TYPES: dict[str, str] = {
    "application/pdf": ".pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
    "text/plain": ".txt",
    "text/markdown": ".md",
}


@dataclass(frozen=True)
class UploadPolicy:
    """
    File acceptance rules.

    A file is accepted when its MIME type or its extension is on the
    allow-list, and its size is between 1 byte and max_bytes.
    """

    allowed_types: dict[str, str] = field(default_factory=lambda: dict(ALLOWED_FILE_TYPES))
    max_bytes: int = MAX_UPLOAD_BYTES

    @property
    def allowed_extensions(self) -> frozenset[str]:
        return frozenset(self.allowed_types.values())

    def is_allowed_type(self, filename: str, mime_type: str | None) -> bool:
        if mime_type and mime_type.split(";")[0].strip().lower() in self.allowed_types:
            return True
        return PurePath(filename).suffix.lower() in self.allowed_extensions

    def validate(self, filename: str, size: int, mime_type: str | None) -> None:
        """
        Reject files outside the allow-list or size limit.

        Args:
            filename: Original filename
            size: Size in bytes
            mime_type: Declared MIME type

        Raises:
            UploadRejected: Unsupported type, empty file or file too large
        """
        if not self.is_allowed_type(filename, mime_type):
            raise UploadRejected(
                f"Unsupported file type for '{filename}'",
                filename=filename,
                details={"mime_type": mime_type},
            )
        if size <= 0:
            raise UploadRejected(f"File '{filename}' is empty", filename=filename)
        if size > self.max_bytes:
            raise UploadRejected(
                f"File '{filename}' exceeds the {self.max_bytes // (1024 * 1024)} MB limit",
                filename=filename,
                details={"size": size, "max_bytes": self.max_bytes},
            )
