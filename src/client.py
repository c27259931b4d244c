"""Telegram bot session for carscope.

The bot signs in with a bot token, so there is no interactive login and no
session bootstrap step: `start_bot` either returns a connected client or
raises before any polling loop is created.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv
from telethon import TelegramClient

LOGGER = logging.getLogger(__name__)

DEFAULT_SESSION = "carscope"


@dataclass(frozen=True)
class BotCredentials:
    api_id: int
    api_hash: str
    bot_token: str
    session_name: str = DEFAULT_SESSION


def read_credentials(environ: Optional[Mapping[str, str]] = None) -> BotCredentials:
    """Collect API_ID, API_HASH and BOT_TOKEN, reading .env when no mapping is given."""

    if environ is None:
        load_dotenv()
        environ = os.environ

    missing = [name for name in ("API_ID", "API_HASH", "BOT_TOKEN") if not environ.get(name)]
    if missing:
        raise RuntimeError(f"Missing {', '.join(missing)} in environment")
    try:
        api_id = int(environ["API_ID"])
    except ValueError as exc:
        raise RuntimeError("API_ID must be an integer") from exc

    return BotCredentials(
        api_id=api_id,
        api_hash=environ["API_HASH"],
        bot_token=environ["BOT_TOKEN"],
        session_name=environ.get("SESSION_NAME") or DEFAULT_SESSION,
    )


def start_bot(credentials: BotCredentials) -> TelegramClient:
    client = TelegramClient(credentials.session_name, credentials.api_id, credentials.api_hash)
    LOGGER.info("Signing in bot session %s", credentials.session_name)
    client.start(bot_token=credentials.bot_token)
    return client
