"""Shared notification formatting helpers.

Keeping formatting here keeps the Telegram adapter thin and the card layout
testable without a client.
"""

from __future__ import annotations

import html
from typing import Optional

from core.models import Listing, Proximity, SearchFilter

DIVIDER = "──────────────"

# (attribute key, label) pairs shown on every card, in display order.
CARD_ATTRIBUTES = (
    ("u_car_model", "Model"),
    ("regdate", "Model year"),
    ("mileage", "Mileage"),
    ("fuel", "Fuel"),
)


def format_posted_at(listing: Listing) -> str:
    if listing.posted_at is None:
        return "Unknown"
    return listing.posted_at.strftime("%H:%M %d-%m-%Y")


def format_proximity(proximity: Proximity) -> str:
    return f"{proximity.distance} ({proximity.duration})"


def format_listing_card(
    listing: Listing,
    display_price: str,
    proximity: Proximity,
    search_filter: Optional[SearchFilter] = None,
) -> str:
    """Create the HTML card body announced for a new listing."""

    title = html.escape(listing.title or f"Listing {listing.listing_id}")
    safe_url = html.escape(listing.url)

    parts = [
        f"<b><a href=\"{safe_url}\">{title}</a></b>",
        DIVIDER,
        f"<b>Price:</b> {html.escape(display_price)}",
        f"<b>City:</b> {html.escape(listing.city_label or listing.city or 'Unknown')}",
    ]
    for key, label in CARD_ATTRIBUTES:
        parts.append(f"<b>{label}:</b> {html.escape(listing.attribute(key))}")
    parts.extend(
        [
            f"<b>Posted:</b> {html.escape(format_posted_at(listing))}",
            f"<b>Distance:</b> {html.escape(format_proximity(proximity))}",
        ]
    )
    if search_filter is not None:
        parts.extend([DIVIDER, f"<i>{html.escape(search_filter.describe())}</i>"])
    return "\n".join(parts)
