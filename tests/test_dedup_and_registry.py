from __future__ import annotations

from typing import Any, Optional

from core.dedup import DedupStore
from core.favorites import FavoritesStore
from core.models import SearchFilter, TrackedSearch
from core.registry import TrackedSearchRegistry


class FakeStorage:
    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.writes = 0

    def get(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        self.writes += 1
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


def test_first_listing_is_always_new() -> None:
    dedup = DedupStore(FakeStorage())

    assert dedup.is_new("100", "42")
    assert dedup.last_seen("100") is None


def test_is_new_is_a_pure_read_until_record() -> None:
    storage = FakeStorage()
    dedup = DedupStore(storage)

    assert dedup.is_new("100", "42")
    assert dedup.is_new("100", "42")
    assert storage.writes == 0

    dedup.record("100", "42")

    assert not dedup.is_new("100", "42")
    assert dedup.is_new("100", "43")


def test_dedup_state_is_per_channel() -> None:
    dedup = DedupStore(FakeStorage())
    dedup.record("100", "42")

    assert dedup.is_new("200", "42")
    assert dedup.last_seen("100") == "42"


def test_record_normalizes_ids_to_strings() -> None:
    dedup = DedupStore(FakeStorage())
    dedup.record("100", 42)  # type: ignore[arg-type]

    assert not dedup.is_new("100", "42")


def test_registry_persists_searches_across_instances() -> None:
    storage = FakeStorage()
    search = TrackedSearch(channel_id="100", filter=SearchFilter(brand="RENAULT", departments=("75",)))
    TrackedSearchRegistry(storage).add(search)

    reloaded = TrackedSearchRegistry(storage)

    assert reloaded.get("100") == search
    assert reloaded.list_persisted() == [search]
    # The active set is in-memory only.
    assert not reloaded.is_active("100")


def test_registry_remove_deactivates_channel() -> None:
    registry = TrackedSearchRegistry(FakeStorage())
    registry.add(TrackedSearch(channel_id="100", filter=SearchFilter(brand="RENAULT")))
    registry.activate("100")

    assert registry.remove("100")
    assert not registry.is_active("100")
    assert registry.get("100") is None
    assert not registry.remove("100")


def test_favorites_are_unique_per_listing() -> None:
    favorites = FavoritesStore(FakeStorage())

    first = favorites.add("42", "100", "7")
    duplicate = favorites.add("42", "200", "8")

    assert first is not None
    assert first.favorite_id.startswith("fav-")
    assert duplicate is None
    assert [fav.listing_id for fav in favorites.all()] == ["42"]


def test_favorites_remove_and_paginate() -> None:
    favorites = FavoritesStore(FakeStorage())
    added = [favorites.add(str(listing_id), "100", "7") for listing_id in range(12)]

    assert favorites.remove(added[0].favorite_id)
    assert not favorites.remove("fav-missing")

    first_page = favorites.page(0, per_page=10)
    last_page = favorites.page(5, per_page=10)

    assert first_page.total_pages == 2
    assert len(first_page.items) == 10
    assert last_page.page == 1
    assert [fav.listing_id for fav in last_page.items] == ["11"]


def test_empty_favorites_has_one_page() -> None:
    page = FavoritesStore(FakeStorage()).page(0)

    assert page.items == []
    assert page.total_pages == 1
