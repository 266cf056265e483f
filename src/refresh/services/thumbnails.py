"""Thumbnail pipeline client.

Thumbnails are produced by a separate worker; this service only classifies
item URLs and asks the worker for a small/hi-DPI pair. Every work shows a
thumbnail pair per item:

    - uploaded assets on our CDN are resized directly
    - audio gets a fixed placeholder pair
    - direct links to external images are mirrored
    - other external links are scraped for their meta image, which is then
      mirrored
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from urllib.parse import urlparse

import httpx
import structlog

from refresh.config import Settings, get_settings
from refresh.core.exceptions import ThumbnailServiceError
from refresh.schemas.work import UrlItem

logger = structlog.get_logger(__name__)


class ItemKind(str, Enum):
    """What an item URL points at."""

    CDN_ASSET = "cdn_asset"
    AUDIO = "audio"
    EXTERNAL_IMAGE = "external_image"
    EXTERNAL_LINK = "external_link"


@dataclass(frozen=True)
class ThumbnailPair:
    small: str
    hi_dpi: str


def _extension(url: str) -> str:
    return PurePosixPath(urlparse(url).path).suffix.lower().lstrip(".")


class ThumbnailService:
    """Async client for the thumbnail pipeline.

    Usage:
        ```python
        service = ThumbnailService(settings)
        item = await service.thumbnails_for(item)
        await service.close()
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._client: httpx.AsyncClient | None = None

    @property
    def placeholder(self) -> ThumbnailPair:
        return ThumbnailPair(
            small=self._settings.placeholder_small_thumbnail_url,
            hi_dpi=self._settings.placeholder_hi_dpi_thumbnail_url,
        )

    def is_placeholder(self, url: str | None) -> bool:
        return url in (self.placeholder.small, self.placeholder.hi_dpi)

    def classify(self, url: str) -> ItemKind:
        extension = _extension(url)
        if extension in self._settings.audio_extensions:
            return ItemKind.AUDIO
        if url.startswith(self._settings.cdn_base_url):
            return ItemKind.CDN_ASSET
        if extension in self._settings.image_extensions:
            return ItemKind.EXTERNAL_IMAGE
        return ItemKind.EXTERNAL_LINK

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._settings.thumbnail_service_url,
                timeout=self._settings.thumbnail_timeout,
                headers={"User-Agent": f"{self._settings.app_name}/{self._settings.app_version}"},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _post(self, path: str, url: str) -> dict:
        client = await self._get_client()
        try:
            response = await client.post(path, json={"url": url})
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise ThumbnailServiceError(
                details={"url": url, "status_code": e.response.status_code}
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ThumbnailServiceError(details={"url": url, "error": str(e)}) from e

    @staticmethod
    def _parse_pair(data: dict, url: str) -> ThumbnailPair:
        small = data.get("smallThumbnail")
        hi_dpi = data.get("hiDpiThumbnail")
        if not small or not hi_dpi:
            raise ThumbnailServiceError(
                message="Thumbnail pipeline returned an incomplete pair",
                details={"url": url},
            )
        return ThumbnailPair(small=small, hi_dpi=hi_dpi)

    async def upload_thumbnails(self, url: str) -> ThumbnailPair:
        """Resize an asset already uploaded to the CDN.

        Raises:
            ThumbnailServiceError: On pipeline errors
        """
        return self._parse_pair(await self._post("/thumbnails", url), url)

    async def scrape_thumbnail(self, url: str) -> str | None:
        """Find the meta image of an external page, if it has one.

        Raises:
            ThumbnailServiceError: On pipeline errors
        """
        data = await self._post("/scrape", url)
        return data.get("meta") or None

    async def upload_scraped_thumbnail(self, url: str) -> ThumbnailPair:
        """Mirror and resize an external image.

        Raises:
            ThumbnailServiceError: On pipeline errors
        """
        return self._parse_pair(await self._post("/thumbnails/scraped", url), url)

    async def thumbnails_for(self, item: UrlItem) -> UrlItem:
        """Return a copy of ``item`` with its thumbnail pair filled in.

        Raises:
            ThumbnailServiceError: On pipeline errors
        """
        kind = self.classify(item.url)
        meta = item.meta

        if kind is ItemKind.AUDIO:
            pair: ThumbnailPair | None = self.placeholder
        elif kind is ItemKind.CDN_ASSET:
            pair = await self.upload_thumbnails(item.url)
        else:
            if kind is ItemKind.EXTERNAL_IMAGE:
                meta = item.url
            else:
                meta = await self.scrape_thumbnail(item.url)
            pair = await self.upload_scraped_thumbnail(meta) if meta else None

        logger.debug("item_thumbnails_derived", url=item.url, kind=kind.value, found=pair is not None)

        if pair is None:
            return item.model_copy(update={"meta": meta})
        return item.model_copy(
            update={"meta": meta, "small_thumbnail": pair.small, "hi_dpi_thumbnail": pair.hi_dpi}
        )
