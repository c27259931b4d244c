from __future__ import annotations

import asyncio
from typing import Any, Optional

import pytest

from core.config import MarketplaceConfig
from core.control import TrackingController
from core.errors import ConfigError
from core.favorites import FavoritesStore
from core.models import SearchFilter, TrackedSearch
from core.registry import TrackedSearchRegistry

MARKETPLACE = MarketplaceConfig(base_url="https://www.leboncoin.fr/recherche", category="2")


class FakeStorage:
    def __init__(self) -> None:
        self.data: dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FakePoller:
    def __init__(self) -> None:
        self.started: list[TrackedSearch] = []

    def start(self, search: TrackedSearch) -> None:
        self.started.append(search)


def _controller(storage: Optional[FakeStorage] = None):
    storage = storage or FakeStorage()
    registry = TrackedSearchRegistry(storage)
    poller = FakePoller()
    controller = TrackingController(
        registry=registry,
        favorites=FavoritesStore(storage),
        poller=poller,  # type: ignore[arg-type]
        marketplace=MARKETPLACE,
        favorites_per_page=2,
    )
    return controller, registry, poller, storage


def test_start_tracking_persists_activates_and_starts() -> None:
    controller, registry, poller, _ = _controller()

    search = controller.start_tracking("100", {"brand": "renault", "sort": "time"})

    assert search.filter == SearchFilter(brand="RENAULT", sort="time")
    assert registry.is_active("100")
    assert registry.get("100") == search
    assert poller.started == [search]
    assert controller.list_tracked() == [search]


def test_malformed_filter_is_rejected_before_anything_starts() -> None:
    controller, registry, poller, storage = _controller()

    with pytest.raises(ConfigError):
        controller.start_tracking("100", {"model": "Clio"})

    assert not registry.is_active("100")
    assert storage.data == {}
    assert poller.started == []


def test_tracking_a_tracked_channel_twice_is_rejected() -> None:
    controller, _, poller, _ = _controller()
    controller.start_tracking("100", {"brand": "RENAULT"})

    with pytest.raises(ConfigError):
        controller.start_tracking("100", {"brand": "PEUGEOT"})

    assert len(poller.started) == 1


def test_stop_tracking_removes_registry_and_active_entry() -> None:
    controller, registry, _, _ = _controller()
    controller.start_tracking("100", {"brand": "RENAULT"})

    assert controller.stop_tracking("100")
    assert not registry.is_active("100")
    assert registry.list_persisted() == []
    assert controller.list_tracked() == []
    assert not controller.stop_tracking("100")


def test_restore_resumes_existing_channels_and_drops_missing_ones() -> None:
    storage = FakeStorage()
    seed = TrackedSearchRegistry(storage)
    kept = TrackedSearch(channel_id="100", filter=SearchFilter(brand="RENAULT"))
    gone = TrackedSearch(channel_id="200", filter=SearchFilter(brand="FIAT"))
    broken = TrackedSearch(channel_id="300", filter=SearchFilter(brand="", model="Clio"))
    for search in (kept, gone, broken):
        seed.add(search)

    controller, registry, poller, _ = _controller(storage)

    async def is_available(channel_id: str) -> bool:
        return channel_id != "200"

    restored = asyncio.run(controller.restore(is_available))

    assert restored == 1
    assert poller.started == [kept]
    assert registry.active_channels() == {"100"}
    assert registry.get("200") is None
    assert registry.get("300") is not None


def test_restore_keeps_channels_whose_check_fails() -> None:
    storage = FakeStorage()
    seed = TrackedSearchRegistry(storage)
    flaky = TrackedSearch(channel_id="100", filter=SearchFilter(brand="RENAULT"))
    healthy = TrackedSearch(channel_id="200", filter=SearchFilter(brand="FIAT"))
    for search in (flaky, healthy):
        seed.add(search)

    controller, registry, poller, _ = _controller(storage)

    async def is_available(channel_id: str) -> bool:
        if channel_id == "100":
            raise ConnectionError("telegram unreachable")
        return True

    restored = asyncio.run(controller.restore(is_available))

    assert restored == 1
    assert poller.started == [healthy]
    assert registry.active_channels() == {"200"}
    assert registry.get("100") == flaky


def test_favorites_through_controller() -> None:
    controller, _, _, _ = _controller()

    first = controller.add_favorite("42", "100", "7")
    assert controller.add_favorite("42", "100", "7") is None
    controller.add_favorite("43", "100", "7")
    controller.add_favorite("44", "100", "7")

    page = controller.list_favorites(1)
    assert page.total_pages == 2
    assert [fav.listing_id for fav in page.items] == ["44"]

    assert controller.remove_favorite(first.favorite_id)
    assert controller.list_favorites(0).total_pages == 1
