"""IndexMaintainer - keeps the denormalized work indices in step.

A work is stored four times:
    - its by-ID entry
    - a slot in its artist's map
    - a slot in the map of each week it was submitted for
    - an element of the unfiltered list

The store has no multi-key transactions, so every write recomputes the
work's slot in each index from the work's current value and overwrites the
whole document. A crash between two sub-writes leaves the indices out of
step until the next full write of that work, which repairs them.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

import structlog

from refresh.schemas.work import Work
from refresh.services.kv import KeyValueStore

logger = structlog.get_logger(__name__)

_OLDEST = datetime.min.replace(tzinfo=UTC)


def _submitted_at(document: dict[str, Any]) -> datetime:
    raw = document.get("submittedTimestamp")
    if not raw:
        return _OLDEST
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return _OLDEST
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def sort_newest_first(documents: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Order stored works by ``submittedTimestamp``, newest first."""
    return sorted(documents, key=_submitted_at, reverse=True)


class IndexMaintainer:
    """Writes every index entry that represents a work.

    Usage:
        ```python
        indices = IndexMaintainer(store)
        await indices.place_work(work, is_new_post=True)
        ```
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    async def place_work(
        self,
        work: Work,
        is_new_post: bool,
        *,
        update_id_index: bool = True,
        update_artist_and_week_indices: bool = True,
        update_list_index: bool = True,
    ) -> None:
        """Write ``work`` into the requested indices.

        Args:
            work: The work in its final state
            is_new_post: Whether this is the first time the work is stored;
                bumps the artist's ``worksCount``
            update_id_index: Rewrite the by-ID entry
            update_artist_and_week_indices: Rewrite the artist and week maps
            update_list_index: Rewrite the unfiltered list. Batches turn this
                off and call :meth:`merge_into_list` once at the end.
        """
        document = work.to_store()

        previous: dict[str, Any] | None = None
        if update_artist_and_week_indices:
            previous = await self.store.get_json(KeyValueStore.work_key(work.id))

        if update_id_index:
            await self.store.put_json(KeyValueStore.work_key(work.id), document)

        if update_artist_and_week_indices:
            await self._put_slot(KeyValueStore.artist_works_key(work.artist_id), work.id, document)

            current_weeks = {(work.year, week) for week in work.week_numbers}
            for year, week in sorted(current_weeks):
                await self._put_slot(KeyValueStore.week_works_key(year, week), work.id, document)

            for year, week in sorted(self._previous_weeks(previous) - current_weeks):
                await self._evict_slot(KeyValueStore.week_works_key(year, week), work.id)

        if update_list_index:
            await self.merge_into_list([work])

        if is_new_post:
            await self._increment_works_count(work)

        logger.debug(
            "work_placed",
            work_id=work.id,
            artist_id=work.artist_id,
            weeks=work.week_numbers,
            list_updated=update_list_index,
        )

    async def merge_into_list(self, works: Iterable[Work]) -> None:
        """Merge works into the unfiltered list with a single rewrite.

        Works replace existing elements with the same ID; when the same ID
        appears more than once, the last one wins.
        """
        documents = await self.store.get_json(KeyValueStore.works_list_key(), [])
        by_id: dict[str, dict[str, Any]] = {doc["id"]: doc for doc in documents}
        merged = 0
        for work in works:
            by_id[work.id] = work.to_store()
            merged += 1

        await self.store.put_json(KeyValueStore.works_list_key(), sort_newest_first(by_id.values()))
        logger.debug("works_list_merged", merged=merged, total=len(by_id))

    async def _put_slot(self, key: str, work_id: str, document: dict[str, Any]) -> None:
        works = await self.store.get_json(key, {})
        works[work_id] = document
        await self.store.put_json(key, works)

    async def _evict_slot(self, key: str, work_id: str) -> None:
        works = await self.store.get_json(key, {})
        if works.pop(work_id, None) is not None:
            await self.store.put_json(key, works)
            logger.info("work_evicted_from_week", key=key, work_id=work_id)

    @staticmethod
    def _previous_weeks(previous: dict[str, Any] | None) -> set[tuple[int, int]]:
        if not previous:
            return set()
        year = previous.get("year")
        return {(year, week) for week in previous.get("weekNumbers", [])}

    async def _increment_works_count(self, work: Work) -> None:
        key = KeyValueStore.artists_key(work.year)
        artists = await self.store.get_json(key, {})
        artist = artists.get(work.artist_id)
        if artist is None:
            logger.info("works_count_skipped", artist_id=work.artist_id, year=work.year)
            return

        artist["worksCount"] = int(artist.get("worksCount", 0)) + 1
        await self.store.put_json(key, artists)
