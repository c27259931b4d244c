"""Ports (interfaces) used by the core polling engine.

Ports define the minimal contracts for storage, fetching, enrichment and
notification adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from core.models import Listing, Proximity, SearchFilter


class KeyValueStorePort(Protocol):
    """Key-value persistence over namespaced string keys."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class ListingSourcePort(Protocol):
    """Fetch listings for a filter, newest first. Empty on failure."""

    async def fetch(self, search_filter: SearchFilter) -> Sequence[Listing]:
        ...


class EnricherPort(Protocol):
    """Best-effort distance lookup between two places."""

    async def enrich(self, origin: str, destination: str) -> Proximity:
        ...


class NotifierPort(Protocol):
    """Notification operations required by the polling engine."""

    async def send(
        self,
        channel_id: str,
        listing: Listing,
        display_price: str,
        proximity: Proximity,
        search_filter: SearchFilter,
    ) -> None:
        ...
