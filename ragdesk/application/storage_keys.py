"""
Storage key utilities.

Filename validation and object key generation for document uploads.

Dependencies: None
System role: Upload slot request validation
"""

import uuid

from ragdesk.core.exceptions import ValidationError

MAX_FILENAME_LENGTH = 255


def validate_filename(filename: str) -> None:
    """
    Validate filename for length and path traversal.

    Args:
        filename: Original filename from user

    Raises:
        ValidationError: If filename is invalid
    """
    if not filename or len(filename) > MAX_FILENAME_LENGTH:
        raise ValidationError("Invalid filename length", field="filename")

    # Block path traversal attacks
    if ".." in filename or "/" in filename or "\\" in filename:
        raise ValidationError("Invalid filename: path traversal detected", field="filename")

    if "." not in filename.strip("."):
        raise ValidationError("File must have an extension", field="filename")


def generate_storage_key(project_id: str, filename: str) -> str:
    """
    Generate unique object key to prevent collisions.

    Format: projects/{project_id}/documents/{unique_id}-{sanitized_name}.{ext}

    Args:
        project_id: Project UUID as string
        filename: Original filename from user

    Returns:
        str: Safe object key
    """
    file_ext = ""
    if "." in filename:
        file_ext = "." + filename.rsplit(".", 1)[-1].lower()

    # Sanitize filename (only alphanumeric, hyphens, underscores)
    base_name = filename.rsplit(".", 1)[0] if "." in filename else filename
    safe_name = "".join(c for c in base_name if c.isalnum() or c in "-_")
    if not safe_name:
        safe_name = "document"

    unique_id = uuid.uuid4().hex[:8]

    return f"projects/{project_id}/documents/{unique_id}-{safe_name}{file_ext}"
