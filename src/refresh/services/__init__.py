"""Services package for Refresh.

This module exports service classes for business logic.
"""

from refresh.services.discord import AnnouncementService
from refresh.services.ids import determine_short_id
from refresh.services.indices import IndexMaintainer
from refresh.services.kv import KeyValueStore, get_kv_store, set_redis_client
from refresh.services.thumbnails import ItemKind, ThumbnailPair, ThumbnailService
from refresh.services.uploads import UploadService
from refresh.services.weeks import WeekService
from refresh.services.works import WorkService

__all__ = [
    # Store
    "KeyValueStore",
    "get_kv_store",
    "set_redis_client",
    # Works
    "IndexMaintainer",
    "WorkService",
    "determine_short_id",
    # Collaborators
    "AnnouncementService",
    "ItemKind",
    "ThumbnailPair",
    "ThumbnailService",
    "UploadService",
    "WeekService",
]
