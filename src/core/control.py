"""Tracking control operations behind the bot commands.

The controller is the only writer of the registry and the active set; the
polling loops just observe them.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

from core.config import MarketplaceConfig
from core.errors import ConfigError
from core.favorites import FavoritesStore
from core.filter_encoder import build_filter, encode_filter
from core.models import Favorite, FavoritesPage, TrackedSearch
from core.poller import ListingPoller
from core.registry import TrackedSearchRegistry

LOGGER = logging.getLogger(__name__)

ChannelCheck = Callable[[str], Awaitable[bool]]


class TrackingController:
    """Start/stop tracked searches and manage favorites."""

    def __init__(
        self,
        registry: TrackedSearchRegistry,
        favorites: FavoritesStore,
        poller: ListingPoller,
        marketplace: MarketplaceConfig,
        favorites_per_page: int = 10,
    ) -> None:
        self._registry = registry
        self._favorites = favorites
        self._poller = poller
        self._marketplace = marketplace
        self._favorites_per_page = favorites_per_page

    def start_tracking(self, channel_id: str, params: Mapping[str, Any]) -> TrackedSearch:
        """Validate the filter, persist it and start the channel's loop.

        Raises ConfigError for a malformed filter or an already tracked
        channel; nothing is persisted in that case.
        """

        if self._registry.is_active(channel_id):
            raise ConfigError(f"Channel {channel_id} is already tracked, stop it first")

        search_filter = build_filter(params)
        # Encoding here keeps malformed filters away from the network layer.
        url = encode_filter(search_filter, self._marketplace)

        search = TrackedSearch(channel_id=channel_id, filter=search_filter)
        self._registry.add(search)
        self._registry.activate(channel_id)
        self._poller.start(search)
        LOGGER.info("Tracking started for %s: %s", channel_id, url)
        return search

    def stop_tracking(self, channel_id: str) -> bool:
        removed = self._registry.remove(channel_id)
        if removed:
            LOGGER.info("Tracking stopped for %s", channel_id)
        return removed

    def list_tracked(self) -> list[TrackedSearch]:
        active = self._registry.active_channels()
        return [search for search in self._registry.list_persisted() if search.channel_id in active]

    async def restore(self, is_available: ChannelCheck) -> int:
        """Resume persisted searches whose channel still exists."""

        restored = 0
        for search in self._registry.list_persisted():
            try:
                available = await is_available(search.channel_id)
            except Exception:
                LOGGER.exception("Could not check channel %s, keeping it for the next start", search.channel_id)
                continue
            if not available:
                LOGGER.warning("Channel %s not found, removing from tracked searches", search.channel_id)
                self._registry.remove(search.channel_id)
                continue
            try:
                encode_filter(search.filter, self._marketplace)
            except ConfigError as exc:
                LOGGER.warning("Skipping tracked search for %s: %s", search.channel_id, exc)
                continue
            self._registry.activate(search.channel_id)
            self._poller.start(search)
            restored += 1
        LOGGER.info("Restored %s tracked searches", restored)
        return restored

    def add_favorite(self, listing_id: str, channel_id: str, user_id: str) -> Optional[Favorite]:
        return self._favorites.add(listing_id, channel_id, user_id)

    def list_favorites(self, page: int = 0) -> FavoritesPage:
        return self._favorites.page(page, self._favorites_per_page)

    def remove_favorite(self, favorite_id: str) -> bool:
        return self._favorites.remove(favorite_id)
