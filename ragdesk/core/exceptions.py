"""
Exception hierarchy for the ragdesk ingestion core.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class RagdeskError(Exception):
    """Base exception for all ragdesk errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(RagdeskError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class UploadRejected(ValidationError):
    """Raised when a file falls outside the upload allow-list or size limit."""

    def __init__(
        self,
        message: str,
        filename: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["filename"] = filename
        self.filename = filename
        super().__init__(message, details=details)


class EmbeddingModelLocked(ValidationError):
    """Raised when the embedding model changes after documents exist."""

    def __init__(self, project_id: str, current: str, requested: str) -> None:
        super().__init__(
            f"Embedding model is locked to '{current}' once documents exist",
            field="embedding_model",
            details={"project_id": project_id, "requested": requested},
        )


class CleanupFailed(RagdeskError):
    """
    Raised when compensating deletion of a half-created document fails.

    Never surfaced alone: attached as ``cleanup_error`` to the upload error
    that triggered the cleanup.
    """

    def __init__(self, document_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["document_id"] = document_id
        self.document_id = document_id
        super().__init__(f"Cleanup of document {document_id} failed", details)


class UploadError(RagdeskError):
    """Base exception for per-file upload failures."""

    step = "upload"

    def __init__(
        self,
        message: str,
        filename: str,
        document_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize upload error.

        Args:
            message: Error message
            filename: File whose upload failed
            document_id: Document created by registration, if any
            details: Additional context
        """
        details = details or {}
        details["filename"] = filename
        details["step"] = self.step
        if document_id:
            details["document_id"] = document_id
        self.filename = filename
        self.document_id = document_id
        self.cleanup_error: CleanupFailed | None = None
        super().__init__(message, details)


class RegistrationFailed(UploadError):
    """Raised when the upload slot cannot be obtained."""

    step = "registration"


class TransferFailed(UploadError):
    """Raised when the binary transfer to storage fails."""

    step = "transfer"


class ConfirmationFailed(UploadError):
    """Raised when the upload cannot be confirmed."""

    step = "confirmation"


class NotReady(RagdeskError):
    """Raised when chunks are requested before the document run completed."""

    def __init__(self, document_id: str, status: str) -> None:
        self.document_id = document_id
        self.status = status
        super().__init__(
            f"Document {document_id} is not ready (status: {status})",
            {"document_id": document_id, "status": status},
        )


class DocumentStateError(RagdeskError):
    """Raised when an operation does not fit the document's current status."""

    def __init__(self, message: str, document_id: str, status: str) -> None:
        self.document_id = document_id
        self.status = status
        super().__init__(message, {"document_id": document_id, "status": status})


class StageOrderViolation(RagdeskError):
    """
    Raised when a pipeline run would break stage ordering.

    Indicates a bug in the caller or a corrupt status report; never corrected silently.
    """

    pass


class PollDiscarded(RagdeskError):
    """Signals a poll result that outlived its subscription. Benign."""

    def __init__(self, document_id: str) -> None:
        self.document_id = document_id
        super().__init__(
            f"Poll result for document {document_id} discarded",
            {"document_id": document_id},
        )


class DocumentNotFoundError(RagdeskError):
    """Raised when a document cannot be found in the requested project."""

    def __init__(self, document_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["document_id"] = document_id
        self.document_id = document_id
        super().__init__(f"Document not found: {document_id}", details)


class StorageError(RagdeskError):
    """Raised when object storage operations fail."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize storage error.

        Args:
            message: Error message
            operation: Operation that failed (presign, head, delete)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class DispatchError(RagdeskError):
    """Raised when a processing job cannot be enqueued."""

    pass


class ApiClientError(RagdeskError):
    """Raised when a REST call to the ragdesk service fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        self.status_code = status_code
        super().__init__(message, details)
