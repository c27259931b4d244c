"""Tracked search registry and active set (core domain).

The registry persists channel -> filter so searches survive restarts. The
active set lives in memory only: a channel's presence there is what allows
its polling loop to keep running, and removing it is the only way to stop
that loop.
"""

from __future__ import annotations

from typing import Optional

from core.models import SearchFilter, TrackedSearch
from core.ports import KeyValueStorePort

REGISTRY_KEY = "tracked_searches"


class TrackedSearchRegistry:
    """Persisted tracked searches plus the in-memory active set."""

    def __init__(self, store: KeyValueStorePort) -> None:
        self._store = store
        self._active: set[str] = set()

    def _load(self) -> dict[str, dict]:
        data = self._store.get(REGISTRY_KEY)
        return dict(data) if isinstance(data, dict) else {}

    # Each mutation is a single synchronous read-modify-write, so coroutines
    # sharing the event loop never interleave inside it.
    def add(self, search: TrackedSearch) -> None:
        data = self._load()
        data[search.channel_id] = search.filter.to_dict()
        self._store.set(REGISTRY_KEY, data)

    def remove(self, channel_id: str) -> bool:
        """Forget a tracked search and deactivate its loop."""

        self.deactivate(channel_id)
        data = self._load()
        if channel_id not in data:
            return False
        del data[channel_id]
        self._store.set(REGISTRY_KEY, data)
        return True

    def get(self, channel_id: str) -> Optional[TrackedSearch]:
        raw = self._load().get(channel_id)
        if raw is None:
            return None
        return TrackedSearch(channel_id=channel_id, filter=SearchFilter.from_dict(raw))

    def list_persisted(self) -> list[TrackedSearch]:
        return [
            TrackedSearch(channel_id=channel_id, filter=SearchFilter.from_dict(raw))
            for channel_id, raw in self._load().items()
        ]

    def activate(self, channel_id: str) -> None:
        self._active.add(channel_id)

    def deactivate(self, channel_id: str) -> None:
        self._active.discard(channel_id)

    def is_active(self, channel_id: str) -> bool:
        return channel_id in self._active

    def active_channels(self) -> set[str]:
        return set(self._active)
