"""Telegram bot notification adapter.

Announces a listing to the tracked chat: an album of up to five photos
carrying the card, followed by the action buttons (albums cannot carry
buttons themselves).
"""

from __future__ import annotations

from telethon import Button

from adapters.notification_formatting import format_listing_card
from core.models import Listing, Proximity, SearchFilter

FAVORITE_PREFIX = "favorite_"


def build_buttons(listing: Listing) -> list[list]:
    return [
        [
            Button.url("📩 Contact seller", listing.reply_url),
            Button.url("🔎 Open listing", listing.url),
        ],
        [Button.inline("⭐ Add to favorites", data=f"{FAVORITE_PREFIX}{listing.listing_id}".encode("utf-8"))],
    ]


class TelegramChannelNotifier:
    """NotifierPort adapter that posts listings with a Telethon bot client."""

    def __init__(self, client, max_images: int = 5) -> None:
        self._client = client
        self._max_images = max_images

    async def send(
        self,
        channel_id: str,
        listing: Listing,
        display_price: str,
        proximity: Proximity,
        search_filter: SearchFilter,
    ) -> None:
        """Send the formatted listing to the channel."""

        entity = int(channel_id)
        card = format_listing_card(listing, display_price, proximity, search_filter)
        buttons = build_buttons(listing)
        images = list(listing.image_urls[: self._max_images])

        if not images:
            await self._client.send_message(entity, card, parse_mode="html", buttons=buttons, link_preview=False)
            return

        await self._client.send_file(entity, images, caption=card, parse_mode="html")
        await self._client.send_message(entity, "Actions:", buttons=buttons)
