"""Tracked-search polling loop.

Each tracked channel gets one asyncio task running a strict cycle:

1) Stop if the channel left the active set
2) Fetch listings for the filter (empty on any failure)
3) Compare the newest listing id with the dedup store
4) On a new listing: enrich with distance, record the id, notify
5) Wait a fixed interval, then loop

Cancellation is cooperative: removing a channel from the active set never
interrupts a running cycle, it only prevents the next one from starting.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable, Optional

from core.config import PollConfig
from core.dedup import DedupStore
from core.models import UNAVAILABLE_PROXIMITY, Listing, Proximity, TrackedSearch, format_price
from core.ports import EnricherPort, ListingSourcePort, NotifierPort
from core.registry import TrackedSearchRegistry

LOGGER = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class CycleOutcome(enum.Enum):
    NO_DATA = "no_data"
    UNCHANGED = "unchanged"
    NOTIFIED = "notified"


class ListingPoller:
    """Runs and supervises one polling loop per tracked channel."""

    def __init__(
        self,
        source: ListingSourcePort,
        enricher: EnricherPort,
        dedup: DedupStore,
        notifier: NotifierPort,
        registry: TrackedSearchRegistry,
        config: PollConfig,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._source = source
        self._enricher = enricher
        self._dedup = dedup
        self._notifier = notifier
        self._registry = registry
        self._config = config
        self._sleep = sleep
        self._tasks: dict[str, asyncio.Task] = {}
        self._searches: dict[str, TrackedSearch] = {}
        # Loops superseded by a new filter, kept until they finish.
        self._replaced: set[asyncio.Task] = set()

    def start(self, search: TrackedSearch) -> asyncio.Task:
        """Spawn the loop for a channel, or return the one already running.

        Starting a channel with a different filter replaces its loop: the new
        loop waits until the old one leaves at its next cycle boundary.
        """

        channel_id = search.channel_id
        previous = self._tasks.get(channel_id)
        if previous is not None and not previous.done() and self._searches.get(channel_id) == search:
            return previous

        if previous is not None and not previous.done():
            self._replaced.add(previous)
            previous.add_done_callback(self._replaced.discard)

        self._searches[channel_id] = search
        task = asyncio.create_task(self._run_after(previous, search), name=f"poll:{channel_id}")
        self._tasks[channel_id] = task
        task.add_done_callback(lambda done, key=channel_id: self._forget(key, done))
        return task

    def _forget(self, channel_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(channel_id) is task:
            del self._tasks[channel_id]
            self._searches.pop(channel_id, None)

    async def _run_after(self, previous: Optional[asyncio.Task], search: TrackedSearch) -> None:
        # A replaced loop exits at its next cycle boundary; cycles for one
        # channel never overlap.
        if previous is not None and not previous.done():
            try:
                await asyncio.wait([previous])
            except asyncio.CancelledError:
                previous.cancel()
                raise
        await self.run(search)

    def running_channels(self) -> set[str]:
        return {channel_id for channel_id, task in self._tasks.items() if not task.done()}

    async def stop_all(self) -> None:
        """Cancel every loop, used on shutdown."""

        tasks = list(self._tasks.values()) + list(self._replaced)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _should_continue(self, search: TrackedSearch) -> bool:
        channel_id = search.channel_id
        if not self._registry.is_active(channel_id):
            return False
        owner = self._searches.get(channel_id)
        return owner is None or owner is search

    async def run(self, search: TrackedSearch) -> None:
        """Poll until the channel leaves the active set."""

        channel_id = search.channel_id
        LOGGER.info("Polling started for %s (%s)", channel_id, search.filter.describe())
        while self._should_continue(search):
            try:
                await self.run_cycle(search)
            except Exception:
                LOGGER.exception("Polling cycle failed for %s", channel_id)
            await self._sleep(self._config.interval_seconds)
        LOGGER.info("Polling stopped for %s", channel_id)

    async def run_cycle(self, search: TrackedSearch) -> CycleOutcome:
        """Run a single fetch/compare/notify cycle for one channel."""

        channel_id = search.channel_id
        listings = await self._source.fetch(search.filter)
        if not listings:
            LOGGER.debug("No listings for %s this cycle", channel_id)
            return CycleOutcome.NO_DATA

        # Listings come newest-first; only the head is ever announced.
        newest = listings[0]
        if not self._dedup.is_new(channel_id, newest.listing_id):
            return CycleOutcome.UNCHANGED

        proximity = await self._enrich(newest)

        # Recorded before delivery; a crash in between skips this listing.
        self._dedup.record(channel_id, newest.listing_id)
        try:
            await self._notifier.send(
                channel_id,
                newest,
                format_price(newest.price),
                proximity,
                search.filter,
            )
        except Exception:
            LOGGER.exception("Delivery of listing %s to %s failed", newest.listing_id, channel_id)
        else:
            LOGGER.info("Announced listing %s to %s", newest.listing_id, channel_id)
        return CycleOutcome.NOTIFIED

    async def _enrich(self, listing: Listing) -> Proximity:
        try:
            return await self._enricher.enrich(self._config.origin, listing.city)
        except Exception:
            LOGGER.warning("Distance lookup failed for listing %s", listing.listing_id, exc_info=True)
            return UNAVAILABLE_PROXIMITY
