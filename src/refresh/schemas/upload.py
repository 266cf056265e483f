"""Upload request/response schemas."""

from pydantic import Field

from refresh.schemas.common import BaseSchema


class UploadRequest(BaseSchema):
    """Request body for a pre-signed upload URL.

    The upload must later send exactly ``contentLength`` bytes.
    """

    filename: str = Field(..., min_length=1, max_length=256)
    content_length: int = Field(..., ge=1)


class UploadUrl(BaseSchema):
    url: str


class UploadResponse(BaseSchema):
    data: UploadUrl
