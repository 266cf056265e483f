"""Common Pydantic schemas used across the API.

This module provides shared schemas for:
- The camelCase wire format shared by every stored document
- Error responses (consistent error format)
- Health checks
"""

from typing import Annotated
from urllib.parse import urlparse

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# =============================================================================
# Base Configuration
# =============================================================================


class BaseSchema(BaseModel):
    """Base schema for documents stored in the key-value store.

    Python attributes are snake_case; JSON keys are camelCase, matching what
    the web client sends and what already lives in the store.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,  # Allow both alias and field name
        str_strip_whitespace=True,  # Strip whitespace from strings
    )

    def to_store(self) -> dict:
        """Serialize to the JSON-compatible dict written to the store."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def check_absolute_uri(value: str) -> str:
    """Reject relative or scheme-less URIs."""
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError("must be an absolute URI")
    return value


def check_optional_uri(value: str | None) -> str | None:
    """Like :func:`check_absolute_uri` but allow ``None`` and empty strings."""
    if value is None or value == "":
        return value
    return check_absolute_uri(value)


def check_alphanumeric(value: str | None) -> str | None:
    if value and not value.isalnum():
        raise ValueError("must only contain alpha-numeric characters")
    return value


AbsoluteUri = Annotated[str, Field(min_length=1), AfterValidator(check_absolute_uri)]
OptionalUri = Annotated[str | None, AfterValidator(check_optional_uri)]
Snowflake = Annotated[str, Field(max_length=64), AfterValidator(check_alphanumeric)]


# =============================================================================
# Error Schemas
# =============================================================================


class FieldError(BaseModel):
    """One itemized validation failure."""

    field: str = Field(..., description="Dotted path of the offending field")
    message: str = Field(..., description="Human-readable description")


class ErrorDetail(BaseModel):
    """Details of an error response.

    Attributes:
        code: Machine-readable error code (e.g., "WORK_NOT_FOUND")
        message: Human-readable error description
        request_id: Correlation ID for tracing (optional)
        details: Additional error context (optional)
    """

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    request_id: str | None = Field(
        None, description="Request correlation ID for tracing"
    )
    details: dict[str, str | int | bool | list[FieldError] | list[str] | None] | None = Field(
        None, description="Additional error context"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "code": "INVALID_PAYLOAD",
                "message": "The request payload is invalid",
                "request_id": "abc-123-def-456",
                "details": {
                    "errors": [{"field": "title", "message": "Field required"}]
                },
            }
        }
    )


class ErrorResponse(BaseModel):
    """Standard error response wrapper."""

    error: ErrorDetail


# =============================================================================
# Health Check Schemas
# =============================================================================


class HealthCheckResponse(BaseModel):
    """Health check endpoint response.

    Attributes:
        status: Overall health status
        checks: Individual service health checks
    """

    status: str = Field(..., pattern="^(ok|degraded|error)$")
    checks: dict[str, str] = Field(
        default_factory=dict, description="Individual service checks"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "ok",
                "checks": {"redis": "ok"},
            }
        }
    )
