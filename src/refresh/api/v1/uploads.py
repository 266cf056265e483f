"""Upload endpoints.

Artists never send files through the API. They ask for a pre-signed URL and
upload straight to storage.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from refresh.core.logging import get_logger
from refresh.dependencies import IdentityDep, get_upload_service
from refresh.schemas.common import ErrorResponse
from refresh.schemas.upload import UploadRequest, UploadResponse, UploadUrl
from refresh.services.uploads import UploadService

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_200_OK,
    summary="Request an upload URL",
    description=(
        "Returns a short-lived pre-signed PUT URL. The upload must send exactly "
        "`contentLength` bytes."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "File type or size not allowed"},
        403: {"model": ErrorResponse, "description": "Not a registered artist"},
        502: {"model": ErrorResponse, "description": "Storage signing failed"},
    },
)
async def create_upload(
    request: UploadRequest,
    uploads: Annotated[UploadService, Depends(get_upload_service)],
    identity: IdentityDep,
) -> UploadResponse:
    """Sign an upload URL for the calling artist."""
    logger.info(
        "upload_url_request",
        filename=request.filename,
        content_length=request.content_length,
    )
    url = await uploads.create_upload_url(identity, request)
    return UploadResponse(data=UploadUrl(url=url))
