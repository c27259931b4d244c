"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

LISTING_URL = "https://www.leboncoin.fr/ad/voitures/{listing_id}"
REPLY_URL = "https://www.leboncoin.fr/reply/{listing_id}"
NOT_SPECIFIED = "Not specified"


@dataclass(frozen=True)
class SearchFilter:
    """Structured search descriptor for one tracked search.

    A model is meaningless without a brand; the encoder rejects that shape.
    """

    brand: str
    model: Optional[str] = None
    sort: Optional[str] = None
    departments: tuple[str, ...] = ()
    price: Optional[str] = None
    mileage: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "brand": self.brand,
            "model": self.model,
            "sort": self.sort,
            "departments": list(self.departments),
            "price": self.price,
            "mileage": self.mileage,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchFilter":
        return cls(
            brand=data.get("brand") or "",
            model=data.get("model") or None,
            sort=data.get("sort") or None,
            departments=tuple(str(code) for code in data.get("departments") or ()),
            price=data.get("price") or None,
            mileage=data.get("mileage") or None,
        )

    def describe(self) -> str:
        """Return a one-line human summary of the filter."""

        parts = [f"Tracking {self.brand}"]
        if self.model:
            parts.append(f"model: {self.model}")
        if self.sort:
            parts.append(f"sort: {self.sort}")
        if self.departments:
            parts.append(f"departments: {', '.join(self.departments)}")
        if self.price:
            parts.append(f"price: {self.price}")
        if self.mileage:
            parts.append(f"mileage: {self.mileage}")
        return ", ".join(parts)


@dataclass(frozen=True)
class TrackedSearch:
    """A standing request to watch a filter and announce to a channel."""

    channel_id: str
    filter: SearchFilter


@dataclass(frozen=True)
class Listing:
    """A single marketplace ad as returned by the listing source."""

    listing_id: str
    title: str
    body: str = ""
    posted_at: Optional[datetime] = None
    price: Optional[int] = None
    city: str = ""
    city_label: str = ""
    image_urls: tuple[str, ...] = ()
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def url(self) -> str:
        return LISTING_URL.format(listing_id=self.listing_id)

    @property
    def reply_url(self) -> str:
        return REPLY_URL.format(listing_id=self.listing_id)

    def attribute(self, key: str) -> str:
        return self.attributes.get(key) or NOT_SPECIFIED


@dataclass(frozen=True)
class Proximity:
    """Human-readable distance and travel time from the origin."""

    distance: str
    duration: str


UNAVAILABLE_PROXIMITY = Proximity(distance="N/A", duration="N/A")


@dataclass(frozen=True)
class Favorite:
    """A listing bookmarked from a notification."""

    favorite_id: str
    listing_id: str
    channel_id: str
    user_id: str


@dataclass(frozen=True)
class FavoritesPage:
    """One page of favorites for paginated display."""

    items: list[Favorite]
    page: int
    total_pages: int


def format_price(price: Optional[int]) -> str:
    """Return the display price with space-separated thousands."""

    if price is None:
        return "N/A"
    return f"{price:,}".replace(",", " ") + " €"
