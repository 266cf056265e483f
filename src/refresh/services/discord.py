"""Discord announcement client.

Each submitted work gets a companion message in the event channel. The
message is created on first submission and edited on later ones; the
message ID is kept on the work as ``discordId``.

See: https://discord.com/developers/docs/resources/message
"""

from typing import Any

import httpx
import structlog

from refresh.config import Settings, get_settings
from refresh.core.exceptions import AnnouncementServiceError
from refresh.schemas.work import Work

logger = structlog.get_logger(__name__)

EMBED_DESCRIPTION_LIMIT = 4096


class AnnouncementService:
    """Async client posting work announcements through the Discord REST API.

    Usage:
        ```python
        service = AnnouncementService(settings)
        discord_id = await service.post_or_edit_work(work)
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._client: httpx.AsyncClient | None = None

    @property
    def enabled(self) -> bool:
        return self._settings.discord_enabled and bool(self._settings.discord_channel_id)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            token = self._settings.discord_bot_token.get_secret_value()
            self._client = httpx.AsyncClient(
                base_url=self._settings.discord_api_url,
                timeout=self._settings.discord_timeout,
                headers={"Authorization": f"Bot {token}"},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def build_message(self, work: Work) -> dict[str, Any]:
        """Render the announcement for a work."""
        link = f"{self._settings.site_url.rstrip('/')}/works/{work.id}"
        embed: dict[str, Any] = {
            "title": work.title,
            "url": link,
            "description": work.description[:EMBED_DESCRIPTION_LIMIT],
            "fields": [
                {
                    "name": "Week" if len(work.week_numbers) == 1 else "Weeks",
                    "value": ", ".join(str(week) for week in sorted(work.week_numbers)),
                    "inline": True,
                }
            ],
        }
        if work.medium:
            embed["fields"].append({"name": "Medium", "value": work.medium, "inline": True})
        if work.thumbnail_url:
            embed["image"] = {"url": work.thumbnail_url}

        heading = "Updated submission" if work.discord_id else "New submission"
        return {
            "content": f"{heading} by <@{work.artist_id}>",
            "embeds": [embed],
            "allowed_mentions": {"parse": []},
        }

    async def post_or_edit_work(self, work: Work) -> str | None:
        """Create or edit the announcement for ``work``.

        Edits when the work already has a ``discordId``, creates otherwise.

        Returns:
            The message ID, or None when announcements are disabled

        Raises:
            AnnouncementServiceError: On Discord API errors
        """
        if not self.enabled:
            logger.debug("announcement_skipped", work_id=work.id)
            return None

        client = await self._get_client()
        channel = self._settings.discord_channel_id
        message = self.build_message(work)

        try:
            if work.discord_id:
                response = await client.patch(
                    f"/channels/{channel}/messages/{work.discord_id}", json=message
                )
            else:
                response = await client.post(f"/channels/{channel}/messages", json=message)
            response.raise_for_status()
            message_id = str(response.json()["id"])
        except httpx.HTTPStatusError as e:
            raise AnnouncementServiceError(
                details={"work_id": work.id, "status_code": e.response.status_code}
            ) from e
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise AnnouncementServiceError(details={"work_id": work.id, "error": str(e)}) from e

        logger.info(
            "announcement_posted",
            work_id=work.id,
            discord_id=message_id,
            edited=bool(work.discord_id),
        )
        return message_id
