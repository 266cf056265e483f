"""Pre-signed upload URLs for artist assets.

Artists upload files straight to S3-compatible storage. This service checks
who is asking and what they want to upload, then signs a short-lived PUT URL.
The upload must send exactly the declared ``Content-Length``.
"""

import uuid
from typing import Any

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from refresh.config import Settings, get_settings
from refresh.core.exceptions import ForbiddenError, UploadRejectedError, UploadServiceError
from refresh.schemas.upload import UploadRequest
from refresh.services.kv import KeyValueStore

logger = structlog.get_logger(__name__)


class UploadService:
    """Issues pre-signed upload URLs to registered artists."""

    def __init__(
        self,
        store: KeyValueStore,
        settings: Settings | None = None,
        s3_client: Any | None = None,
    ) -> None:
        self.store = store
        self._settings = settings or get_settings()
        self._s3 = s3_client

    @property
    def s3(self) -> Any:
        if self._s3 is None:
            secret = self._settings.aws_secret_access_key
            self._s3 = boto3.client(
                "s3",
                endpoint_url=self._settings.s3_endpoint_url,
                region_name=self._settings.s3_region,
                aws_access_key_id=self._settings.aws_access_key_id,
                aws_secret_access_key=secret.get_secret_value() if secret else None,
                config=Config(signature_version="s3v4"),
            )
        return self._s3

    def _extension(self, filename: str) -> str:
        parts = filename.rsplit(".", 1)
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise UploadRejectedError(message="The file has no extension.", field="filename")

        extension = parts[1].lower()
        if extension not in self._settings.allowed_upload_extensions:
            raise UploadRejectedError(
                message=f"Files of type .{extension} cannot be uploaded.",
                field="filename",
            )
        return extension

    async def create_upload_url(self, identity: str | None, request: UploadRequest) -> str:
        """Sign a PUT URL for one upload.

        Args:
            identity: Caller ID; must be an artist of the active year
            request: Filename and exact content length of the upload

        Returns:
            The pre-signed URL

        Raises:
            ForbiddenError: Caller is anonymous or not a registered artist
            UploadRejectedError: Bad extension or file too large
            UploadServiceError: Signing failed
        """
        if not identity:
            raise ForbiddenError()

        artists = await self.store.get_json(
            KeyValueStore.artists_key(self._settings.active_year), {}
        )
        if identity not in artists:
            raise ForbiddenError(message="Only registered artists can upload files")

        extension = self._extension(request.filename)

        if request.content_length > self._settings.maximum_content_length:
            raise UploadRejectedError(
                message="File to be uploaded is too large.",
                field="contentLength",
            )

        object_key = f"ugc/{identity}/{uuid.uuid4()}.{extension}"
        try:
            url = self.s3.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": self._settings.s3_bucket,
                    "Key": object_key,
                    "ContentLength": request.content_length,
                },
                ExpiresIn=self._settings.upload_expiry_seconds,
                HttpMethod="PUT",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("upload_url_failed", object_key=object_key, error=str(e))
            raise UploadServiceError(details={"error": str(e)}) from e

        logger.info(
            "upload_url_issued",
            object_key=object_key,
            content_length=request.content_length,
        )
        return url
