"""KeyValueStore - JSON documents on Redis.

Every index the API serves lives under a single Redis key holding one JSON
document. The store offers single-key get/put only: there are no
transactions and no multi-key atomicity, so callers recompute and overwrite
whole documents.

Unlike a cache, a failed read or write here is a real failure and propagates
to the caller.

Key Types:
    - WORKS_WITH_ID_INDEX/{id} - a single work
    - WORKS_WITH_ARTIST_INDEX/{artistId} - works of an artist keyed by ID
    - WORKS_WITH_WEEK_INDEX/{year}/{week} - works of a week keyed by ID
    - WORKS_WITHOUT_INDEX - every work, newest first
    - WEEKS/{year} - weeks keyed by week number
    - ARTISTS/{year} - artists keyed by ID
"""

import json
from typing import Any

import structlog
from redis.asyncio import Redis

logger = structlog.get_logger(__name__)

WORKS_WITH_ID_INDEX = "WORKS_WITH_ID_INDEX"
WORKS_WITH_ARTIST_INDEX = "WORKS_WITH_ARTIST_INDEX"
WORKS_WITH_WEEK_INDEX = "WORKS_WITH_WEEK_INDEX"
WORKS_WITHOUT_INDEX = "WORKS_WITHOUT_INDEX"
WEEKS = "WEEKS"
ARTISTS = "ARTISTS"


class KeyValueStore:
    """JSON get/put over a Redis client.

    Usage with FastAPI:
        ```python
        from refresh.services.kv import KeyValueStore, get_kv_store

        @router.get("/works/{work_id}")
        async def get_work(store: KeyValueStore = Depends(get_kv_store)):
            ...
        ```
    """

    def __init__(self, redis: Redis) -> None:
        """Initialize the store.

        Args:
            redis: Async Redis client
        """
        self.redis = redis

    async def get_json(self, key: str, default: Any = None) -> Any:
        """Read and decode the document under ``key``.

        Args:
            key: Store key
            default: Returned when the key is absent or empty

        Returns:
            The decoded document, or ``default``
        """
        raw = await self.redis.get(key)
        if not raw:
            return default
        return json.loads(raw)

    async def put_json(self, key: str, value: Any) -> None:
        """Overwrite the document under ``key``.

        Args:
            key: Store key
            value: JSON-serializable document
        """
        await self.redis.set(key, json.dumps(value, separators=(",", ":")))
        logger.debug("kv_put", key=key)

    async def ping(self) -> bool:
        """Check connectivity; never raises."""
        try:
            return bool(await self.redis.ping())
        except Exception as e:
            logger.warning("kv_ping_failed", error=str(e))
            return False

    # -------------------------------------------------------------------------
    # Key Generators
    # -------------------------------------------------------------------------

    @staticmethod
    def work_key(work_id: str) -> str:
        """Key of the by-ID entry (e.g., "WORKS_WITH_ID_INDEX/a1B2c3D4e5")."""
        return f"{WORKS_WITH_ID_INDEX}/{work_id}"

    @staticmethod
    def artist_works_key(artist_id: str) -> str:
        return f"{WORKS_WITH_ARTIST_INDEX}/{artist_id}"

    @staticmethod
    def week_works_key(year: int | str, week: int | str) -> str:
        """Key of a by-week map (e.g., "WORKS_WITH_WEEK_INDEX/2024/3")."""
        return f"{WORKS_WITH_WEEK_INDEX}/{year}/{week}"

    @staticmethod
    def works_list_key() -> str:
        return WORKS_WITHOUT_INDEX

    @staticmethod
    def weeks_key(year: int | str) -> str:
        return f"{WEEKS}/{year}"

    @staticmethod
    def artists_key(year: int | str) -> str:
        return f"{ARTISTS}/{year}"


# Global Redis client (set during app startup)
_redis_client: Redis | None = None


def set_redis_client(redis: Redis | None) -> None:
    """Set the global Redis client during app startup.

    Call this in the FastAPI lifespan:
        ```python
        redis = Redis.from_url(settings.redis_url, decode_responses=True)
        set_redis_client(redis)
        ```
    """
    global _redis_client
    _redis_client = redis


def get_kv_store() -> KeyValueStore:
    """FastAPI dependency for KeyValueStore."""
    if _redis_client is None:
        raise RuntimeError("Redis client not initialized. Call set_redis_client first.")
    return KeyValueStore(_redis_client)
