"""FastAPI dependency injection container.

This module provides dependency injection functions for use with FastAPI's
Depends() pattern. Every service is built per request from these functions so
tests can swap any of them through ``app.dependency_overrides``.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request

from refresh.config import Settings, get_settings
from refresh.core.logging import set_identity
from refresh.services.discord import AnnouncementService
from refresh.services.kv import KeyValueStore, get_kv_store
from refresh.services.thumbnails import ThumbnailService
from refresh.services.uploads import UploadService
from refresh.services.weeks import WeekService
from refresh.services.works import WorkService


# ========================================
# Settings Dependencies
# ========================================
def get_settings_from_request(request: Request) -> Settings:
    """Get settings from app state (set by the app factory).

    Falls back to the cached environment settings.

    Args:
        request: The current request

    Returns:
        Settings: Application settings
    """
    return getattr(request.app.state, "settings", None) or get_settings()


SettingsDep = Annotated[Settings, Depends(get_settings_from_request)]
StoreDep = Annotated[KeyValueStore, Depends(get_kv_store)]


# ========================================
# Auth Dependencies
# ========================================
async def get_identity(request: Request, settings: SettingsDep) -> str | None:
    """Return the caller ID verified by the auth gateway, if any.

    Tokens are checked upstream; the gateway forwards the resulting ID in
    ``settings.identity_header``.
    """
    identity = request.headers.get(settings.identity_header, "").strip() or None
    set_identity(identity)
    return identity


IdentityDep = Annotated[str | None, Depends(get_identity)]


# ========================================
# Service Dependencies
# ========================================
async def get_thumbnail_service(
    settings: SettingsDep,
) -> AsyncGenerator[ThumbnailService, None]:
    """Yield a thumbnail pipeline client, closed after the request."""
    service = ThumbnailService(settings)
    try:
        yield service
    finally:
        await service.close()


async def get_announcement_service(
    settings: SettingsDep,
) -> AsyncGenerator[AnnouncementService, None]:
    """Yield a Discord client, closed after the request."""
    service = AnnouncementService(settings)
    try:
        yield service
    finally:
        await service.close()


def get_week_service(store: StoreDep, settings: SettingsDep) -> WeekService:
    return WeekService(store, settings)


def get_work_service(
    store: StoreDep,
    settings: SettingsDep,
    thumbnails: Annotated[ThumbnailService, Depends(get_thumbnail_service)],
    announcements: Annotated[AnnouncementService, Depends(get_announcement_service)],
    weeks: Annotated[WeekService, Depends(get_week_service)],
) -> WorkService:
    """Build the work service with its collaborators."""
    return WorkService(
        store,
        thumbnails=thumbnails,
        announcements=announcements,
        weeks=weeks,
        settings=settings,
    )


def get_upload_service(store: StoreDep, settings: SettingsDep) -> UploadService:
    return UploadService(store, settings)
