"""Exception hierarchy for the Refresh API.

Every error a handler can raise maps onto one of these classes, which carry
a machine-readable code, a human message, the HTTP status to answer with
and optional structured details.

Usage:
    from refresh.core.exceptions import WorkNotFoundError

    raise WorkNotFoundError(work_id="a1B2c3D4e5")
"""

from typing import Any


class RefreshError(Exception):
    """Base exception for all Refresh errors.

    Attributes:
        code: Machine-readable error code (e.g., "WORK_NOT_FOUND")
        message: Human-readable error message
        status_code: HTTP status code to return
        details: Additional error details (optional)
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        if message:
            self.message = message
        if code:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self, request_id: str | None = None) -> dict[str, Any]:
        """Convert exception to API error response format.

        Args:
            request_id: Request correlation ID

        Returns:
            Error response dictionary
        """
        error: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if request_id:
            error["request_id"] = request_id
        if self.details:
            error["details"] = self.details
        return {"error": error}


# =============================================================================
# Resource Not Found Errors (404)
# =============================================================================


class NotFoundError(RefreshError):
    """Base class for resource not found errors."""

    code: str = "NOT_FOUND"
    message: str = "Resource not found"
    status_code: int = 404


class WorkNotFoundError(NotFoundError):
    """Raised when a work is absent or soft-deleted."""

    code: str = "WORK_NOT_FOUND"
    message: str = "Work not found"

    def __init__(self, work_id: str | None = None, message: str | None = None) -> None:
        details: dict[str, Any] = {}
        if work_id:
            details["work_id"] = work_id
            if not message:
                message = f"Work with ID {work_id} not found"

        super().__init__(message=message, details=details if details else None)


# =============================================================================
# Authorization Errors (403)
# =============================================================================


class ForbiddenError(RefreshError):
    """Raised when the caller has no identity or lacks permission."""

    code: str = "FORBIDDEN"
    message: str = "You do not have permission to perform this action"
    status_code: int = 403


# =============================================================================
# Validation Errors (400)
# =============================================================================


class ValidationError(RefreshError):
    """Raised when input validation fails."""

    code: str = "VALIDATION_ERROR"
    message: str = "Validation error"
    status_code: int = 400

    def __init__(
        self,
        message: str | None = None,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        if details is None:
            details = {}
        if field:
            details["field"] = field
        super().__init__(message=message, details=details if details else None)


class RequestValidationFailedError(ValidationError):
    """Raised when a payload does not match its schema.

    ``details["errors"]`` lists every violation as ``{"field", "message"}``.
    """

    code: str = "INVALID_PAYLOAD"
    message: str = "The request payload is invalid"

    def __init__(self, errors: list[dict[str, str]], message: str | None = None) -> None:
        self.errors = errors
        super().__init__(message=message, details={"errors": errors})

    @classmethod
    def from_pydantic(cls, errors: list[dict[str, Any]]) -> "RequestValidationFailedError":
        """Build from ``pydantic.ValidationError.errors()`` output."""
        items = []
        for error in errors:
            location = [str(part) for part in error.get("loc", ()) if part != "body"]
            items.append(
                {
                    "field": ".".join(location) or "body",
                    "message": str(error.get("msg", "Invalid value")),
                }
            )
        return cls(items)


class ForbiddenOwnershipError(ValidationError):
    """Raised when a non-staff caller submits a work for another artist."""

    code: str = "OWNERSHIP_MISMATCH"
    message: str = "Works can only be submitted by their artist"

    def __init__(self, artist_id: str | None = None) -> None:
        super().__init__(field="artistId", details={"artist_id": artist_id} if artist_id else None)


class DuplicateWorkError(ValidationError):
    """Raised when the same artist resubmits identical items as a new work."""

    code: str = "WORK_ALREADY_EXISTS"
    message: str = "This work already exists"

    def __init__(self, work_id: str | None = None) -> None:
        details: dict[str, Any] = {}
        message = None
        if work_id:
            details["work_id"] = work_id
            message = f"Work {work_id} already exists"
        super().__init__(message=message, details=details)


class UploadRejectedError(ValidationError):
    """Raised when an upload request fails the size or extension checks."""

    code: str = "UPLOAD_REJECTED"
    message: str = "The file cannot be uploaded"


# =============================================================================
# Integrity Faults (500)
# =============================================================================


class IntegrityFault(RefreshError):
    """Base class for invariant breaches that need operator attention."""

    code: str = "INTEGRITY_FAULT"
    message: str = "A stored index is inconsistent"
    status_code: int = 500


class WorkIdCollisionError(IntegrityFault):
    """Raised when a freshly derived ID belongs to another artist's work."""

    code: str = "WORK_ID_COLLISION"
    message: str = "Collision error! This requires developer intervention."

    def __init__(self, work_id: str, artist_id: str, existing_artist_id: str) -> None:
        super().__init__(
            details={
                "work_id": work_id,
                "artist_id": artist_id,
                "existing_artist_id": existing_artist_id,
            }
        )


class ModerationTargetMissingError(IntegrityFault):
    """Raised when a moderation batch names a work with no stored record."""

    code: str = "MODERATION_TARGET_MISSING"
    message: str = "A moderated work does not exist"

    def __init__(self, work_id: str, processed: list[str] | None = None) -> None:
        super().__init__(
            message=f"Moderated work {work_id} does not exist",
            details={"work_id": work_id, "processed": processed or []},
        )


# =============================================================================
# External Service Errors (502)
# =============================================================================


class ExternalServiceError(RefreshError):
    """Base class for external service errors."""

    code: str = "EXTERNAL_SERVICE_ERROR"
    message: str = "External service error"
    status_code: int = 502


class AnnouncementServiceError(ExternalServiceError):
    """Raised when the Discord API call fails."""

    code: str = "ANNOUNCEMENT_SERVICE_ERROR"
    message: str = "Failed to post the work announcement"


class ThumbnailServiceError(ExternalServiceError):
    """Raised when the thumbnail pipeline fails."""

    code: str = "THUMBNAIL_SERVICE_ERROR"
    message: str = "Failed to generate thumbnails"


class UploadServiceError(ExternalServiceError):
    """Raised when a pre-signed upload URL cannot be issued."""

    code: str = "UPLOAD_SERVICE_ERROR"
    message: str = "Failed to issue an upload URL"
