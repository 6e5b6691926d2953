"""
Service-level error taxonomy.

Every error a caller can act on is a `ServiceError` with a stable `code` and
the HTTP `status_code` the API renders it with. Store races
(`DuplicateKeyError`) never reach this layer: they are resolved by
`services.idempotent_insert`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID


class ServiceError(Exception):
    """Base exception for all errors surfaced to API callers."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON error body."""
        body: Dict[str, Any] = {"success": False, "error": self.message, "code": self.code}
        body.update(self.details)
        return body


class InvalidInputError(ServiceError):
    status_code = 400
    code = "INVALID_INPUT"

    def __init__(self, message: str = "Invalid input", field: Optional[str] = None):
        super().__init__(message, details={"field": field} if field else None)


class ConsentRequiredError(ServiceError):
    status_code = 400
    code = "CONSENT_REQUIRED"

    def __init__(self, message: str = "LGPD consent is required"):
        super().__init__(message)


class InvalidPhotoError(ServiceError):
    status_code = 400
    code = "INVALID_PHOTO"

    def __init__(self, message: str = "A valid photo URL is required"):
        super().__init__(message)


class NotFoundError(ServiceError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class LeadNotFoundError(NotFoundError):
    code = "LEAD_NOT_FOUND"

    def __init__(self, message: str = "Lead not found"):
        super().__init__(message)


class TemplateNotFoundError(NotFoundError):
    code = "TEMPLATE_NOT_FOUND"

    def __init__(self, message: str = "Template not found or inactive"):
        super().__init__(message)


class GenerationNotFoundError(NotFoundError):
    """404 when the row is missing; 400 when the id is not a UUID."""

    code = "GENERATION_NOT_FOUND"

    def __init__(self, message: str = "Generation not found", *, malformed: bool = False):
        super().__init__(message)
        if malformed:
            self.status_code = 400


class GenerationLimitError(ServiceError):
    status_code = 429
    code = "GENERATION_LIMIT"

    def __init__(self, limit: int):
        super().__init__(
            f"Generation limit reached ({limit} per lead)",
            details={"limit": limit},
        )


class AiServiceError(ServiceError):
    """The image API failed every variant of a request."""

    status_code = 502
    code = "AI_ERROR"

    def __init__(
        self,
        message: str = "AI photo generation failed, please try again",
        generation_id: Optional[UUID] = None,
    ):
        super().__init__(
            message,
            details={"generation_id": str(generation_id)} if generation_id else None,
        )


class InternalError(ServiceError):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal server error", generation_id: Optional[UUID] = None):
        super().__init__(
            message,
            details={"generation_id": str(generation_id)} if generation_id else None,
        )


__all__ = [
    "ServiceError",
    "InvalidInputError",
    "ConsentRequiredError",
    "InvalidPhotoError",
    "NotFoundError",
    "LeadNotFoundError",
    "TemplateNotFoundError",
    "GenerationNotFoundError",
    "GenerationLimitError",
    "AiServiceError",
    "InternalError",
]
