"""Application entry point for the carscope watcher."""

from __future__ import annotations

import argparse
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from telethon import errors

import settings
from adapters.distance_matrix import DistanceMatrixEnricher
from adapters.leboncoin_source import LeboncoinListingSource
from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_bot_notifier import TelegramChannelNotifier
from adapters.telegram_commands import register_handlers
from client import read_credentials, start_bot
from core.config import MarketplaceConfig, PollConfig
from core.control import TrackingController
from core.dedup import DedupStore
from core.favorites import FavoritesStore
from core.poller import ListingPoller
from core.registry import TrackedSearchRegistry

NAME = "CARSCOPE"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/carscope.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)
    # httpx logs every request at INFO, which drowns the polling logs.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _marketplace_config() -> MarketplaceConfig:
    return MarketplaceConfig(
        base_url=settings.MARKETPLACE_BASE_URL,
        category=settings.MARKETPLACE_CATEGORY,
    )


def _open_storage() -> SQLiteStorage:
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    return storage


async def _shutdown(poller: ListingPoller, source: LeboncoinListingSource, enricher: DistanceMatrixEnricher) -> None:
    await poller.stop_all()
    await source.aclose()
    await enricher.aclose()


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting carscope")
    load_dotenv()

    credentials = read_credentials()
    zyte_api_key = os.getenv("ZYTE_API_KEY")
    if not zyte_api_key:
        raise RuntimeError("ZYTE_API_KEY is required")
    google_api_key = os.getenv("GOOGLE_MAPS_API_KEY", "")
    if not google_api_key:
        logger.warning("GOOGLE_MAPS_API_KEY is not set, distances will be unavailable")

    storage = _open_storage()
    marketplace = _marketplace_config()

    client = start_bot(credentials)

    source = LeboncoinListingSource(
        api_key=zyte_api_key,
        marketplace=marketplace,
        endpoint=settings.EXTRACTION_ENDPOINT,
    )
    enricher = DistanceMatrixEnricher(api_key=google_api_key, endpoint=settings.DISTANCE_ENDPOINT)
    registry = TrackedSearchRegistry(storage)
    poller = ListingPoller(
        source=source,
        enricher=enricher,
        dedup=DedupStore(storage),
        notifier=TelegramChannelNotifier(client, max_images=settings.MAX_IMAGES),
        registry=registry,
        config=PollConfig(interval_seconds=settings.POLL_INTERVAL_SECONDS, origin=settings.ORIGIN),
    )
    controller = TrackingController(
        registry=registry,
        favorites=FavoritesStore(storage),
        poller=poller,
        marketplace=marketplace,
        favorites_per_page=settings.FAVORITES_PER_PAGE,
    )
    register_handlers(client, controller)

    async def channel_exists(channel_id: str) -> bool:
        try:
            await client.get_entity(int(channel_id))
        except (ValueError, errors.RPCError):
            return False
        return True

    # Resume loops for chats tracked before the restart; chats the bot can no
    # longer reach are dropped from the registry.
    client.loop.run_until_complete(controller.restore(channel_exists))

    logger.info("Bot connected. Listening for commands...")
    try:
        client.run_until_disconnected()
    finally:
        client.loop.run_until_complete(_shutdown(poller, source, enricher))


def _list() -> None:
    storage = _open_storage()
    registry = TrackedSearchRegistry(storage)
    dedup = DedupStore(storage)

    searches = registry.list_persisted()
    if not searches:
        print("No tracked searches.")
        return

    for index, search in enumerate(searches, start=1):
        last_seen = dedup.last_seen(search.channel_id) or "-"
        print(f"{index}. {search.channel_id} | {search.filter.describe()} | last listing: {last_seen}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="carscope")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot and the tracked search loops")
    subparsers.add_parser("list", help="Print persisted tracked searches and exit")

    args = parser.parse_args(argv)
    if args.command == "list":
        _list()
        return
    _run()


if __name__ == "__main__":
    main()
