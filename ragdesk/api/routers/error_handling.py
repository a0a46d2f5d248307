"""
Error handling for ragdesk API endpoints.

Provides a decorator that maps domain exceptions to HTTPExceptions with a
uniform detail payload: {"error": <exception class>, "message": ..., "details": {...}}.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import HTTPException, status
from pydantic import ValidationError as PydanticValidationError

from ragdesk.core.exceptions import (
    DispatchError,
    DocumentNotFoundError,
    DocumentStateError,
    EmbeddingModelLocked,
    NotReady,
    RagdeskError,
    StageOrderViolation,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Type for the decorated function
F = TypeVar("F", bound=Callable[..., Any])


def error_detail(error: RagdeskError) -> dict[str, Any]:
    return {
        "error": type(error).__name__,
        "message": error.message,
        "details": {key: str(value) for key, value in error.details.items()},
    }


def handle_document_errors(func: F) -> F:
    """
    Decorator to transform domain errors into HTTPExceptions.

    - DocumentNotFoundError -> 404
    - NotReady, StageOrderViolation, EmbeddingModelLocked, DocumentStateError -> 409
    - ValidationError (incl. UploadRejected) -> 400
    - StorageError, DispatchError -> 502
    - anything else -> 500
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except HTTPException:
            raise

        except DocumentNotFoundError as e:
            logger.warning("Document not found", extra={"document_id": e.document_id})
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error_detail(e))

        except (NotReady, StageOrderViolation, EmbeddingModelLocked, DocumentStateError) as e:
            logger.warning("Conflicting request", extra={"error": str(e), "error_type": type(e).__name__})
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error_detail(e))

        except ValidationError as e:
            logger.warning("Invalid request", extra={"error": str(e)})
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error_detail(e))

        except (StorageError, DispatchError) as e:
            logger.error("Upstream failure", extra={"error": str(e), "error_type": type(e).__name__})
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=error_detail(e))

        except PydanticValidationError as e:
            logger.warning("Pydantic validation error", extra={"error": str(e)})
            raise HTTPException(
                status_code=422,
                detail=e.errors(include_url=False, include_context=False),
            )

        except Exception as e:
            logger.exception("Unexpected failure", extra={"error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="An internal error occurred",
            )

    return wrapper  # type: ignore
