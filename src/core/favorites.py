"""Favorited listings (core domain)."""

from __future__ import annotations

import math
import uuid
from typing import Optional

from core.models import Favorite, FavoritesPage
from core.ports import KeyValueStorePort

FAVORITES_KEY = "favorites"


def _new_favorite_id() -> str:
    return f"fav-{uuid.uuid4().hex[:9]}"


class FavoritesStore:
    """Persisted list of favorites, unique per listing id."""

    def __init__(self, store: KeyValueStorePort) -> None:
        self._store = store

    def all(self) -> list[Favorite]:
        raw = self._store.get(FAVORITES_KEY) or []
        return [Favorite(**item) for item in raw]

    def _save(self, favorites: list[Favorite]) -> None:
        self._store.set(
            FAVORITES_KEY,
            [
                {
                    "favorite_id": fav.favorite_id,
                    "listing_id": fav.listing_id,
                    "channel_id": fav.channel_id,
                    "user_id": fav.user_id,
                }
                for fav in favorites
            ],
        )

    def add(self, listing_id: str, channel_id: str, user_id: str) -> Optional[Favorite]:
        """Add a favorite; return None if the listing is already one."""

        favorites = self.all()
        if any(fav.listing_id == listing_id for fav in favorites):
            return None
        favorite = Favorite(
            favorite_id=_new_favorite_id(),
            listing_id=listing_id,
            channel_id=channel_id,
            user_id=user_id,
        )
        favorites.append(favorite)
        self._save(favorites)
        return favorite

    def remove(self, favorite_id: str) -> bool:
        favorites = self.all()
        kept = [fav for fav in favorites if fav.favorite_id != favorite_id]
        if len(kept) == len(favorites):
            return False
        self._save(kept)
        return True

    def page(self, index: int, per_page: int = 10) -> FavoritesPage:
        """Return one page of favorites, clamping index to the valid range."""

        favorites = self.all()
        total_pages = max(1, math.ceil(len(favorites) / per_page))
        index = min(max(index, 0), total_pages - 1)
        start = index * per_page
        return FavoritesPage(
            items=favorites[start : start + per_page],
            page=index,
            total_pages=total_pages,
        )
