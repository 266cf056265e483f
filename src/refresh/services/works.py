"""Work service - submissions, moderation and retrieval of works.

This is where every invariant of the work indices is enforced:
- callers can never set ``isApproved``, ``isSoftDeleted`` or ``discordId``
- only the artist (or staff) may write a work, and staff never change its
  artist
- new works get an ID derived from their content, so identical
  resubmissions are rejected rather than duplicated
- every check runs before the first store write

External enrichment (thumbnails, the Discord announcement) is best effort:
failures are logged and the work is stored without it.

We are not concerned about two requests editing the same work at once; the
last write wins.
"""

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from refresh.config import Settings, get_settings
from refresh.core.exceptions import (
    AnnouncementServiceError,
    DuplicateWorkError,
    ForbiddenError,
    ForbiddenOwnershipError,
    ModerationTargetMissingError,
    RequestValidationFailedError,
    ThumbnailServiceError,
    WorkIdCollisionError,
    WorkNotFoundError,
)
from refresh.core.logging import log_context
from refresh.schemas.work import ModerationTransition, UrlItem, Work, is_placeholder_id
from refresh.services.discord import AnnouncementService
from refresh.services.ids import IdAllocator, determine_short_id
from refresh.services.indices import IndexMaintainer
from refresh.services.kv import KeyValueStore
from refresh.services.thumbnails import ThumbnailService
from refresh.services.weeks import WeekService

logger = structlog.get_logger(__name__)


class WorkService:
    """Service for reading and writing works.

    Usage:
        ```python
        service = WorkService(store, thumbnails=thumbnails, announcements=announcements)
        work = await service.put_work(payload, identity="disc123")
        ```
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        thumbnails: ThumbnailService,
        announcements: AnnouncementService,
        indices: IndexMaintainer | None = None,
        weeks: WeekService | None = None,
        settings: Settings | None = None,
        id_allocator: IdAllocator = determine_short_id,
    ) -> None:
        """Initialize the service.

        Args:
            store: Key-value store holding the indices
            thumbnails: Thumbnail pipeline client
            announcements: Discord announcement client
            indices: Index maintainer (defaults to one over ``store``)
            weeks: Week service used for publication checks
            settings: Application settings
            id_allocator: Derives IDs for new works
        """
        self.store = store
        self.thumbnails = thumbnails
        self.announcements = announcements
        self._settings = settings or get_settings()
        self.indices = indices or IndexMaintainer(store)
        self.weeks = weeks or WeekService(store, self._settings)
        self._allocate = id_allocator

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def _load(self, work_id: str) -> Work | None:
        raw = await self.store.get_json(KeyValueStore.work_key(work_id))
        if not raw:
            return None
        return Work.model_validate(raw)

    async def get_work(self, work_id: str) -> Work:
        """Return a single work.

        Raises:
            WorkNotFoundError: Absent or soft-deleted
        """
        work = None if is_placeholder_id(work_id) else await self._load(work_id)
        if work is None or work.is_soft_deleted:
            raise WorkNotFoundError(work_id=work_id)
        return work

    async def get_works(
        self,
        identity: str | None,
        *,
        year: int | None = None,
        week: int | None = None,
        artist_id: str | None = None,
        is_unapproved: bool = False,
    ) -> dict[str, Work]:
        """Return works matching the most selective filter given.

        An artist filter beats a week filter, which beats no filter (the
        whole list). Sorting and searching are left to the client.

        Args:
            identity: Caller ID, if any
            year: Year of the week filter (defaults to the active year)
            week: Week number filter
            artist_id: Artist filter
            is_unapproved: Only return works awaiting approval. Staff see
                all of them; artists only see their own.

        Returns:
            Works keyed by ID, never including soft-deleted works
        """
        is_staff = self._settings.is_staff(identity)

        documents: Iterable[dict[str, Any]]
        if artist_id:
            documents = (await self.store.get_json(KeyValueStore.artist_works_key(artist_id), {})).values()
        elif week is not None:
            week_year = year or self._settings.active_year
            if not is_staff and await self.weeks.is_unpublished(week_year, week):
                return {}
            documents = (await self.store.get_json(KeyValueStore.week_works_key(week_year, week), {})).values()
        else:
            documents = await self.store.get_json(KeyValueStore.works_list_key(), [])

        results: dict[str, Work] = {}
        for document in documents:
            work = Work.model_validate(document)
            if work.is_soft_deleted:
                continue
            if year is not None and work.year != year:
                continue
            if is_unapproved:
                if work.is_approved or (not is_staff and work.artist_id != identity):
                    continue
            elif not is_staff and not work.is_approved:
                continue
            results[work.id] = work

        return results

    # -------------------------------------------------------------------------
    # Create / Update
    # -------------------------------------------------------------------------

    async def put_work(self, payload: Any, identity: str | None) -> Work:
        """Create or update a work.

        The ID in the payload only selects an existing work. When no work
        exists under it, the ID is ignored and derived from the content.

        Args:
            payload: Decoded JSON body
            identity: Caller ID, if any

        Returns:
            The work as stored

        Raises:
            ForbiddenError: No identity, or the ID names someone else's work
            RequestValidationFailedError: Payload fails validation
            ForbiddenOwnershipError: Non-staff caller submitting for another artist
            DuplicateWorkError: The same content was already submitted
            WorkIdCollisionError: Derived ID belongs to another artist
        """
        if not identity:
            raise ForbiddenError()

        try:
            work = Work.model_validate(
                payload, context={"last_active_week": self._settings.last_active_week}
            )
        except PydanticValidationError as e:
            raise RequestValidationFailedError.from_pydantic(e.errors()) from e

        # Important: none of these may ever come from the caller.
        work = work.model_copy(
            update={"is_approved": False, "is_soft_deleted": False, "discord_id": None}
        )

        is_staff = self._settings.is_staff(identity)
        if not is_staff and work.artist_id != identity:
            raise ForbiddenOwnershipError(artist_id=work.artist_id)

        existing = None if work.has_placeholder_id else await self._load(work.id)
        if existing is not None and existing.has_placeholder_id:
            existing = None

        if existing is not None:
            if existing.id != work.id:
                raise ForbiddenError(message="The work ID does not match the stored work")
            if not is_staff and existing.artist_id != identity:
                raise ForbiddenError(message="Works can only be edited by their artist")

            carried: dict[str, Any] = {
                "discord_id": existing.discord_id,
                "submitted_timestamp": existing.submitted_timestamp,
                "first_seen_artist_info": work.first_seen_artist_info
                or existing.first_seen_artist_info,
            }
            if is_staff:
                carried["artist_id"] = existing.artist_id
            work = work.model_copy(update=carried)
        else:
            work = work.model_copy(
                update={
                    "id": await self._allocate_id(work),
                    "submitted_timestamp": datetime.now(UTC).isoformat(),
                }
            )

        creating = existing is None
        items_changed = creating or work.items_signature() != existing.items_signature()
        if items_changed:
            work = work.model_copy(update={"items": await self._derive_item_thumbnails(work.items)})
            # A thumbnail echoed back from the old items is stale; one the caller chose is kept.
            if not creating and work.thumbnail_url == existing.thumbnail_url:
                work = work.model_copy(update={"thumbnail_url": None, "small_thumbnail_url": None})

        if not work.thumbnail_url:
            small, hi_dpi = self._select_post_thumbnail(work.items)
            work = work.model_copy(update={"thumbnail_url": hi_dpi, "small_thumbnail_url": small})

        work = await self._sync_announcement(work)

        await self.indices.place_work(work, is_new_post=creating)

        logger.info(
            "work_saved",
            work_id=work.id,
            artist_id=work.artist_id,
            created=creating,
            by_staff=is_staff,
        )
        return work

    async def _allocate_id(self, work: Work) -> str:
        new_id = self._allocate(work.artist_id, [item.url for item in work.items])

        clashing = await self.store.get_json(KeyValueStore.work_key(new_id))
        if clashing:
            if clashing.get("artistId") == work.artist_id:
                logger.info("work_duplicate_rejected", work_id=new_id, artist_id=work.artist_id)
                raise DuplicateWorkError(work_id=new_id)
            # This isn't recoverable; we never expect two artists to share an ID.
            raise WorkIdCollisionError(
                work_id=new_id,
                artist_id=work.artist_id,
                existing_artist_id=str(clashing.get("artistId")),
            )
        return new_id

    async def _derive_item_thumbnails(self, items: Sequence[UrlItem]) -> list[UrlItem]:
        derived = []
        for item in items:
            try:
                item = await self.thumbnails.thumbnails_for(item)
            except ThumbnailServiceError as e:
                logger.warning("item_thumbnails_failed", url=item.url, error=e.message, details=e.details)
            derived.append(item)
        return derived

    def _select_post_thumbnail(self, items: Sequence[UrlItem]) -> tuple[str, str]:
        """Pick the (small, hi-DPI) thumbnail pair shown for the whole work."""
        chosen = items[0]
        if len(items) > 1:
            for item in items:
                if item.hi_dpi_thumbnail and not self.thumbnails.is_placeholder(item.hi_dpi_thumbnail):
                    chosen = item
                    break

        placeholder = self.thumbnails.placeholder
        hi_dpi = chosen.hi_dpi_thumbnail or chosen.small_thumbnail or chosen.meta or placeholder.hi_dpi
        small = chosen.small_thumbnail or chosen.hi_dpi_thumbnail or chosen.meta or placeholder.small
        return small, hi_dpi

    async def _sync_announcement(self, work: Work) -> Work:
        try:
            discord_id = await self.announcements.post_or_edit_work(work)
        except AnnouncementServiceError as e:
            logger.warning("announcement_failed", work_id=work.id, error=e.message, details=e.details)
            return work

        if discord_id:
            return work.model_copy(update={"discord_id": discord_id})
        return work

    # -------------------------------------------------------------------------
    # Moderation
    # -------------------------------------------------------------------------

    async def make_privileged_state_change(
        self,
        ids: Sequence[str],
        transition: ModerationTransition,
        identity: str | None,
    ) -> dict[str, Work]:
        """Apply a moderation transition to many works.

        Works are processed one at a time in request order. Each gets its
        by-ID, artist and week entries rewritten; the unfiltered list is
        rewritten once at the end with every mutated work merged in.

        A missing work aborts the batch: works already processed keep their
        new state in the per-work indices, and the list catches up on their
        next write.

        Returns:
            The mutated works keyed by ID

        Raises:
            ForbiddenError: Caller is not staff
            ModerationTargetMissingError: An ID has no stored work
        """
        if not self._settings.is_staff(identity):
            raise ForbiddenError()

        mutated: dict[str, Work] = {}
        with log_context(transition=transition.value):
            for work_id in ids:
                work = await self._load(work_id)
                if work is None:
                    logger.error("moderation_target_missing", work_id=work_id, processed=len(mutated))
                    raise ModerationTargetMissingError(work_id, processed=list(mutated))

                work = transition.apply(work)
                await self.indices.place_work(work, is_new_post=False, update_list_index=False)
                mutated[work.id] = work

            await self.indices.merge_into_list(mutated.values())

            logger.info("works_moderated", count=len(ids), distinct=len(mutated))
        return mutated
