"""Telegram bot command bindings for the tracking controller.

Commands:
- /search brand=RENAULT sort=time departments=75,93 model=Clio price=1000-5000 mileage=min-100000
- /unsearch [channel_id]
- /listsearches
- /favorites
- /unfav <favorite_id>
"""

from __future__ import annotations

import logging
import shlex
from typing import Optional

from telethon import Button, events

from adapters.telegram_bot_notifier import FAVORITE_PREFIX
from core.control import TrackingController
from core.errors import ConfigError
from core.models import FavoritesPage, TrackedSearch

LOGGER = logging.getLogger(__name__)

FAVORITES_PAGE_PREFIX = "favpage_"
GENERIC_ERROR = "An error occurred while running the command."

SEARCH_KEYS = {"brand", "model", "sort", "departments", "price", "mileage"}


def parse_command_args(text: str) -> dict[str, str]:
    """Parse `key=value` tokens after the command name."""

    try:
        tokens = shlex.split(text)
    except ValueError as exc:
        raise ConfigError(f"Could not parse arguments: {exc}") from exc

    params: dict[str, str] = {}
    for token in tokens[1:]:
        key, sep, value = token.partition("=")
        key = key.strip().lower()
        if not sep or not key:
            raise ConfigError(f"Expected key=value, got {token!r}")
        if key not in SEARCH_KEYS:
            raise ConfigError(f"Unknown option {key!r}, use one of: {', '.join(sorted(SEARCH_KEYS))}")
        params[key] = value.strip()
    return params


def _command_argument(text: str) -> Optional[str]:
    parts = text.split(maxsplit=1)
    if len(parts) < 2:
        return None
    return parts[1].strip() or None


def format_tracked_list(searches: list[TrackedSearch]) -> str:
    if not searches:
        return "No searches are being tracked."
    lines = ["Tracked searches:"]
    for search in searches:
        lines.append(f"• {search.channel_id}: {search.filter.describe()}")
    return "\n".join(lines)


def format_favorites_page(page: FavoritesPage) -> str:
    if not page.items:
        return "No favorites yet."
    lines = ["📋 Favorites:"]
    for fav in page.items:
        lines.append(f"• {fav.listing_id} (id: {fav.favorite_id})")
    lines.append(f"Page {page.page + 1} of {page.total_pages}")
    return "\n".join(lines)


def favorites_buttons(page: FavoritesPage) -> Optional[list]:
    row = []
    if page.page > 0:
        row.append(Button.inline("◀️ Previous", data=f"{FAVORITES_PAGE_PREFIX}{page.page - 1}".encode("utf-8")))
    if page.page < page.total_pages - 1:
        row.append(Button.inline("▶️ Next", data=f"{FAVORITES_PAGE_PREFIX}{page.page + 1}".encode("utf-8")))
    return [row] if row else None


def register_handlers(client, controller: TrackingController) -> None:
    """Attach command and button handlers to a Telethon client."""

    @client.on(events.NewMessage(pattern=r"^/search(@\w+)?(\s|$)"))
    async def on_search(event) -> None:
        channel_id = str(event.chat_id)
        try:
            params = parse_command_args(event.raw_text)
            search = controller.start_tracking(channel_id, params)
        except ConfigError as exc:
            await event.reply(f"❌ {exc}")
            return
        except Exception:
            LOGGER.exception("Error while handling /search")
            await event.reply(GENERIC_ERROR)
            return
        await event.reply(f"✅ {search.filter.describe()}")

    @client.on(events.NewMessage(pattern=r"^/unsearch(@\w+)?(\s|$)"))
    async def on_unsearch(event) -> None:
        channel_id = _command_argument(event.raw_text) or str(event.chat_id)
        try:
            stopped = controller.stop_tracking(channel_id)
        except Exception:
            LOGGER.exception("Error while handling /unsearch")
            await event.reply(GENERIC_ERROR)
            return
        if stopped:
            await event.reply(f"Tracking stopped for {channel_id}")
        else:
            await event.reply(f"No tracked search found for {channel_id}")

    @client.on(events.NewMessage(pattern=r"^/listsearches(@\w+)?$"))
    async def on_list(event) -> None:
        try:
            text = format_tracked_list(controller.list_tracked())
        except Exception:
            LOGGER.exception("Error while handling /listsearches")
            await event.reply(GENERIC_ERROR)
            return
        await event.reply(text)

    @client.on(events.NewMessage(pattern=r"^/favorites(@\w+)?$"))
    async def on_favorites(event) -> None:
        try:
            page = controller.list_favorites(0)
        except Exception:
            LOGGER.exception("Error while handling /favorites")
            await event.reply(GENERIC_ERROR)
            return
        await event.reply(format_favorites_page(page), buttons=favorites_buttons(page))

    @client.on(events.NewMessage(pattern=r"^/unfav(@\w+)?(\s|$)"))
    async def on_unfav(event) -> None:
        favorite_id = _command_argument(event.raw_text)
        if not favorite_id:
            await event.reply("Usage: /unfav <favorite_id>")
            return
        try:
            removed = controller.remove_favorite(favorite_id)
        except Exception:
            LOGGER.exception("Error while handling /unfav")
            await event.reply(GENERIC_ERROR)
            return
        if removed:
            await event.reply(f"Favorite removed: {favorite_id}")
        else:
            await event.reply(f"No favorite found with id {favorite_id}")

    @client.on(events.CallbackQuery(pattern=f"^{FAVORITE_PREFIX}".encode("utf-8")))
    async def on_favorite_button(event) -> None:
        listing_id = event.data.decode("utf-8")[len(FAVORITE_PREFIX):]
        try:
            favorite = controller.add_favorite(listing_id, str(event.chat_id), str(event.sender_id))
        except Exception:
            LOGGER.exception("Error while adding listing %s to favorites", listing_id)
            await event.answer(GENERIC_ERROR, alert=True)
            return
        if favorite is None:
            await event.answer("❌ Listing already in favorites", alert=True)
        else:
            await event.answer("✅ Listing added to favorites", alert=True)

    @client.on(events.CallbackQuery(pattern=f"^{FAVORITES_PAGE_PREFIX}".encode("utf-8")))
    async def on_favorites_page(event) -> None:
        raw_page = event.data.decode("utf-8")[len(FAVORITES_PAGE_PREFIX):]
        try:
            index = int(raw_page)
        except ValueError:
            await event.answer()
            return
        try:
            page = controller.list_favorites(index)
        except Exception:
            LOGGER.exception("Error while paging favorites")
            await event.answer(GENERIC_ERROR, alert=True)
            return
        await event.edit(format_favorites_page(page), buttons=favorites_buttons(page))
