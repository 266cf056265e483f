"""Pytest configuration and fixtures for Refresh tests.

This module provides reusable fixtures for:
- Settings overrides
- A dict-backed mock Redis and the store on top of it
- Thumbnail and announcement services that never leave the process
- Async test client
"""

from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from refresh.config import Settings
from refresh.dependencies import get_announcement_service, get_thumbnail_service
from refresh.main import create_app
from refresh.schemas.work import UrlItem
from refresh.services.discord import AnnouncementService
from refresh.services.kv import KeyValueStore, set_redis_client
from refresh.services.thumbnails import ThumbnailService

ARTIST_ID = "artist1"
OTHER_ARTIST_ID = "artist2"
STAFF_ID = "staff1"


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Create test-specific settings."""
    return Settings(
        app_env="development",  # type: ignore[arg-type]
        debug=True,
        log_level="DEBUG",  # type: ignore[arg-type]
        log_format="console",  # type: ignore[arg-type]
        redis_url="redis://localhost:6379/15",
        active_year=2024,
        last_active_week=6,
        editors=[STAFF_ID],
        cdn_base_url="https://cdn.refresh.example/ugc/",
        discord_enabled=False,
        s3_bucket="refresh-test",
    )


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def redis_data() -> dict[str, str]:
    """Raw values held by the mock Redis, keyed by Redis key."""
    return {}


@pytest.fixture
def mock_redis(redis_data: dict[str, str]) -> MagicMock:
    """Create a mock Redis client backed by ``redis_data``."""

    def _get(key: str) -> str | None:
        return redis_data.get(key)

    def _set(key: str, value: str) -> bool:
        redis_data[key] = value
        return True

    redis = MagicMock()
    redis.get = AsyncMock(side_effect=_get)
    redis.set = AsyncMock(side_effect=_set)
    redis.ping = AsyncMock(return_value=True)
    return redis


@pytest.fixture
def store(mock_redis: MagicMock) -> KeyValueStore:
    """Create a KeyValueStore over the mock Redis."""
    return KeyValueStore(mock_redis)


# =============================================================================
# Work Fixtures
# =============================================================================


@pytest.fixture
def make_work_payload() -> Callable[..., dict[str, Any]]:
    """Build a submission body as the web client sends it.

    Usage:
        payload = make_work_payload(title="Dusk", weekNumbers=[2])
    """

    def _make(**overrides: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": "noop",
            "year": 2024,
            "weekNumbers": [1],
            "artistId": ARTIST_ID,
            "title": "Sunrise",
            "medium": "Digital",
            "description": "A painting of the first sunrise of the year.",
            "items": [{"url": "https://cdn.refresh.example/ugc/artist1/sunrise.png"}],
        }
        payload.update(overrides)
        return payload

    return _make


# =============================================================================
# Mock Service Fixtures
# =============================================================================


def _fake_thumbnails_for(item: UrlItem) -> UrlItem:
    return item.model_copy(
        update={
            "small_thumbnail": f"{item.url}?size=small",
            "hi_dpi_thumbnail": f"{item.url}?size=hidpi",
        }
    )


@pytest.fixture
def thumbnail_service(test_settings: Settings) -> ThumbnailService:
    """Create a ThumbnailService whose pipeline calls never leave the process.

    Every item gets ``?size=small`` / ``?size=hidpi`` variants of its URL.
    """
    service = ThumbnailService(test_settings)
    service.thumbnails_for = AsyncMock(side_effect=_fake_thumbnails_for)  # type: ignore[method-assign]
    return service


@pytest.fixture
def announcement_service(test_settings: Settings) -> AnnouncementService:
    """Create an AnnouncementService that never posts."""
    service = AnnouncementService(test_settings)
    service.post_or_edit_work = AsyncMock(return_value=None)  # type: ignore[method-assign]
    return service


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def app(
    test_settings: Settings,
    mock_redis: MagicMock,
    thumbnail_service: ThumbnailService,
    announcement_service: AnnouncementService,
) -> Generator[FastAPI, None, None]:
    """Create a test FastAPI application over the mock Redis."""
    app = create_app(settings=test_settings)
    set_redis_client(mock_redis)
    app.dependency_overrides[get_thumbnail_service] = lambda: thumbnail_service
    app.dependency_overrides[get_announcement_service] = lambda: announcement_service

    yield app

    app.dependency_overrides.clear()
    set_redis_client(None)


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing.

    Usage:
        async def test_endpoint(async_client: AsyncClient):
            response = await async_client.get("/health/live")
            assert response.status_code == 200
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def as_identity(test_settings: Settings) -> Callable[[str], dict[str, str]]:
    """Headers the auth gateway adds for a verified caller."""

    def _headers(identity: str) -> dict[str, str]:
        return {test_settings.identity_header: identity}

    return _headers
