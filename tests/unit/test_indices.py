"""Tests for IndexMaintainer.

Every placed work must be visible in the by-ID, artist, week and list
indices with identical content.
"""

from unittest.mock import MagicMock

import pytest

from refresh.schemas.work import Work
from refresh.services.indices import IndexMaintainer, sort_newest_first
from refresh.services.kv import KeyValueStore

# =============================================================================
# Fixtures
# =============================================================================


def make_work(**overrides) -> Work:
    data = {
        "id": "a1B2c3D4e5",
        "year": 2024,
        "weekNumbers": [1],
        "artistId": "artist1",
        "title": "Sunrise",
        "description": "A painting of a sunrise.",
        "items": [{"url": "https://cdn.refresh.example/ugc/artist1/sunrise.png"}],
        "submittedTimestamp": "2024-01-08T10:00:00+00:00",
    }
    data.update(overrides)
    return Work.model_validate(data)


@pytest.fixture
def indices(store: KeyValueStore) -> IndexMaintainer:
    return IndexMaintainer(store)


def list_writes(mock_redis: MagicMock) -> int:
    return sum(
        1 for call in mock_redis.set.call_args_list if call.args[0] == KeyValueStore.works_list_key()
    )


# =============================================================================
# place_work Tests
# =============================================================================


class TestPlaceWork:
    """Tests for writing a work into every index."""

    @pytest.mark.asyncio
    async def test_writes_every_index(self, indices: IndexMaintainer, store: KeyValueStore) -> None:
        """The work appears identically in all four indices."""
        work = make_work(weekNumbers=[1, 3])
        await indices.place_work(work, is_new_post=True)

        document = work.to_store()
        assert await store.get_json(KeyValueStore.work_key(work.id)) == document
        assert (await store.get_json(KeyValueStore.artist_works_key("artist1")))[work.id] == document
        assert (await store.get_json(KeyValueStore.week_works_key(2024, 1)))[work.id] == document
        assert (await store.get_json(KeyValueStore.week_works_key(2024, 3)))[work.id] == document
        assert await store.get_json(KeyValueStore.works_list_key()) == [document]

    @pytest.mark.asyncio
    async def test_replaces_existing_slots(self, indices: IndexMaintainer, store: KeyValueStore) -> None:
        await indices.place_work(make_work(), is_new_post=True)
        updated = make_work(title="Sunset")
        await indices.place_work(updated, is_new_post=False)

        artist_works = await store.get_json(KeyValueStore.artist_works_key("artist1"))
        assert list(artist_works) == [updated.id]
        assert artist_works[updated.id]["title"] == "Sunset"

        works = await store.get_json(KeyValueStore.works_list_key())
        assert [doc["title"] for doc in works] == ["Sunset"]

    @pytest.mark.asyncio
    async def test_keeps_other_works_in_shared_maps(
        self, indices: IndexMaintainer, store: KeyValueStore
    ) -> None:
        first = make_work()
        second = make_work(id="f6G7h8I9j0", title="Noon")
        await indices.place_work(first, is_new_post=True)
        await indices.place_work(second, is_new_post=True)

        week = await store.get_json(KeyValueStore.week_works_key(2024, 1))
        assert set(week) == {first.id, second.id}

    @pytest.mark.asyncio
    async def test_evicts_dropped_weeks(self, indices: IndexMaintainer, store: KeyValueStore) -> None:
        """Moving a work to another week removes it from the old week."""
        await indices.place_work(make_work(weekNumbers=[1, 2]), is_new_post=True)
        await indices.place_work(make_work(weekNumbers=[2, 3]), is_new_post=False)

        assert await store.get_json(KeyValueStore.week_works_key(2024, 1)) == {}
        assert "a1B2c3D4e5" in await store.get_json(KeyValueStore.week_works_key(2024, 2))
        assert "a1B2c3D4e5" in await store.get_json(KeyValueStore.week_works_key(2024, 3))

    @pytest.mark.asyncio
    async def test_skips_list_when_disabled(
        self, indices: IndexMaintainer, store: KeyValueStore, mock_redis: MagicMock
    ) -> None:
        await indices.place_work(make_work(), is_new_post=False, update_list_index=False)

        assert list_writes(mock_redis) == 0
        assert await store.get_json(KeyValueStore.work_key("a1B2c3D4e5")) is not None

    @pytest.mark.asyncio
    async def test_skips_id_index_when_disabled(
        self, indices: IndexMaintainer, store: KeyValueStore
    ) -> None:
        await indices.place_work(make_work(), is_new_post=False, update_id_index=False)

        assert await store.get_json(KeyValueStore.work_key("a1B2c3D4e5")) is None
        assert await store.get_json(KeyValueStore.artist_works_key("artist1"))


# =============================================================================
# worksCount Tests
# =============================================================================


class TestWorksCount:
    """Tests for the artist works counter."""

    @pytest.mark.asyncio
    async def test_incremented_for_new_post(
        self, indices: IndexMaintainer, store: KeyValueStore
    ) -> None:
        await store.put_json(
            KeyValueStore.artists_key(2024),
            {"artist1": {"id": "artist1", "name": "Ada", "worksCount": 2}},
        )

        await indices.place_work(make_work(), is_new_post=True)

        artists = await store.get_json(KeyValueStore.artists_key(2024))
        assert artists["artist1"]["worksCount"] == 3

    @pytest.mark.asyncio
    async def test_unchanged_for_update(self, indices: IndexMaintainer, store: KeyValueStore) -> None:
        await store.put_json(
            KeyValueStore.artists_key(2024),
            {"artist1": {"id": "artist1", "name": "Ada", "worksCount": 2}},
        )

        await indices.place_work(make_work(), is_new_post=False)

        artists = await store.get_json(KeyValueStore.artists_key(2024))
        assert artists["artist1"]["worksCount"] == 2

    @pytest.mark.asyncio
    async def test_unknown_artist_is_skipped(
        self, indices: IndexMaintainer, store: KeyValueStore
    ) -> None:
        await indices.place_work(make_work(), is_new_post=True)
        assert await store.get_json(KeyValueStore.artists_key(2024)) is None


# =============================================================================
# List Merge Tests
# =============================================================================


class TestMergeIntoList:
    """Tests for the single-write list merge."""

    @pytest.mark.asyncio
    async def test_last_occurrence_wins(
        self, indices: IndexMaintainer, store: KeyValueStore, mock_redis: MagicMock
    ) -> None:
        await indices.merge_into_list(
            [make_work(title="First"), make_work(title="Second")]
        )

        works = await store.get_json(KeyValueStore.works_list_key())
        assert [doc["title"] for doc in works] == ["Second"]
        assert list_writes(mock_redis) == 1

    @pytest.mark.asyncio
    async def test_newest_first(self, indices: IndexMaintainer, store: KeyValueStore) -> None:
        older = make_work(id="old1", submittedTimestamp="2024-01-01T00:00:00+00:00")
        newer = make_work(id="new1", submittedTimestamp="2024-02-01T00:00:00+00:00")
        await indices.merge_into_list([older])
        await indices.merge_into_list([newer])

        works = await store.get_json(KeyValueStore.works_list_key())
        assert [doc["id"] for doc in works] == ["new1", "old1"]


class TestSortNewestFirst:
    def test_missing_and_invalid_timestamps_sort_last(self) -> None:
        documents = [
            {"id": "none"},
            {"id": "bad", "submittedTimestamp": "yesterday"},
            {"id": "naive", "submittedTimestamp": "2024-01-02T00:00:00"},
            {"id": "aware", "submittedTimestamp": "2024-01-03T00:00:00+00:00"},
        ]

        ordered = [doc["id"] for doc in sort_newest_first(documents)]
        assert ordered[:2] == ["aware", "naive"]
        assert set(ordered[2:]) == {"none", "bad"}
