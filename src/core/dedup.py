"""Deduplication of announced listings (core domain)."""

from __future__ import annotations

from typing import Optional

from core.ports import KeyValueStorePort

KEY_PREFIX = "latest_listing:"


def dedup_key(channel_id: str) -> str:
    return f"{KEY_PREFIX}{channel_id}"


class DedupStore:
    """Persisted last-announced listing id, one value per channel."""

    def __init__(self, store: KeyValueStorePort) -> None:
        self._store = store

    def last_seen(self, channel_id: str) -> Optional[str]:
        value = self._store.get(dedup_key(channel_id))
        return None if value is None else str(value)

    def is_new(self, channel_id: str, listing_id: str) -> bool:
        """Return True unless listing_id is the channel's last announced id."""

        return self.last_seen(channel_id) != str(listing_id)

    def record(self, channel_id: str, listing_id: str) -> None:
        """Overwrite the last announced id for a channel."""

        self._store.set(dedup_key(channel_id), str(listing_id))
