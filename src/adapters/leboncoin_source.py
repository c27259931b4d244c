"""Leboncoin listing source backed by an extraction service.

The extraction service fetches the search page on our behalf and returns the
raw body base64-encoded. Leboncoin is a Next.js site: the page's data model
sits as JSON inside <script id="__NEXT_DATA__">, so we read listings from
there instead of scraping the rendered cards.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from datetime import datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo

import httpx
from bs4 import BeautifulSoup

from core.config import MarketplaceConfig
from core.errors import ParseError, TransportError
from core.filter_encoder import encode_filter
from core.models import Listing, SearchFilter

LOGGER = logging.getLogger(__name__)

MARKETPLACE_TZ = ZoneInfo("Europe/Paris")
DATA_ISLAND_ID = "__NEXT_DATA__"


def extract_data_island(html: str) -> dict[str, Any]:
    """Return the JSON data model embedded in a Next.js page."""

    soup = BeautifulSoup(html, "html.parser")
    script = soup.find("script", id=DATA_ISLAND_ID)
    if script is None or not script.string:
        raise ParseError(f"<script id='{DATA_ISLAND_ID}'> not found in page")
    try:
        data = json.loads(script.string)
    except ValueError as exc:
        raise ParseError(f"{DATA_ISLAND_ID} is not valid JSON") from exc
    if not isinstance(data, dict):
        raise ParseError(f"{DATA_ISLAND_ID} is not a JSON object")
    return data


def _parse_index_date(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=MARKETPLACE_TZ)
    return parsed


def _parse_price(value: Any) -> Optional[int]:
    # Leboncoin sends price as a one-element list.
    if isinstance(value, list):
        value = value[0] if value else None
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def decode_ad(ad: dict[str, Any]) -> Optional[Listing]:
    """Decode one raw ad into a Listing, or None when it has no id."""

    list_id = ad.get("list_id")
    if list_id in (None, ""):
        return None

    location = _as_dict(ad.get("location"))
    images = _as_dict(ad.get("images"))
    urls = images.get("urls")
    raw_attributes = ad.get("attributes")
    attributes: dict[str, str] = {}
    for attr in raw_attributes if isinstance(raw_attributes, list) else []:
        if not isinstance(attr, dict) or not attr.get("key"):
            continue
        label = attr.get("value_label") or attr.get("value")
        if label is not None:
            attributes[str(attr["key"])] = str(label)

    return Listing(
        listing_id=str(list_id),
        title=str(ad.get("subject") or ""),
        body=str(ad.get("body") or ""),
        posted_at=_parse_index_date(ad.get("index_date")),
        price=_parse_price(ad.get("price")),
        city=str(location.get("city") or ""),
        city_label=str(location.get("city_label") or location.get("city") or ""),
        image_urls=tuple(str(url) for url in urls if url) if isinstance(urls, list) else (),
        attributes=attributes,
    )


def decode_listings(data: dict[str, Any]) -> list[Listing]:
    """Decode props.pageProps.searchData.ads, keeping the API order."""

    try:
        ads = data["props"]["pageProps"]["searchData"]["ads"]
    except (KeyError, TypeError) as exc:
        raise ParseError("searchData.ads missing from page data") from exc
    if not ads:
        return []
    if not isinstance(ads, list):
        raise ParseError(f"searchData.ads is not a list: {type(ads).__name__}")

    listings: list[Listing] = []
    for ad in ads:
        if not isinstance(ad, dict):
            continue
        try:
            listing = decode_ad(ad)
        except (AttributeError, TypeError) as exc:
            raise ParseError(f"Malformed ad in searchData.ads: {exc}") from exc
        if listing is not None:
            listings.append(listing)
    return listings


class LeboncoinListingSource:
    """ListingSourcePort adapter calling the Zyte extraction API."""

    def __init__(
        self,
        api_key: str,
        marketplace: MarketplaceConfig,
        endpoint: str = "https://api.zyte.com/v1/extract",
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = api_key
        self._marketplace = marketplace
        self._endpoint = endpoint
        self._client = client or httpx.AsyncClient(timeout=None)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _fetch_page(self, url: str) -> str:
        try:
            response = await self._client.post(
                self._endpoint,
                json={"url": url, "httpResponseBody": True},
                auth=(self._api_key, ""),
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise TransportError(f"Extraction request failed: {exc}") from exc
        except ValueError as exc:
            raise TransportError("Extraction response is not JSON") from exc

        body = payload.get("httpResponseBody") if isinstance(payload, dict) else None
        if not body or not isinstance(body, str):
            raise TransportError("Extraction response has no httpResponseBody string")
        try:
            return base64.b64decode(body).decode("utf-8", errors="replace")
        except (binascii.Error, TypeError, ValueError) as exc:
            raise TransportError("httpResponseBody is not valid base64") from exc

    async def fetch(self, search_filter: SearchFilter) -> list[Listing]:
        """Fetch listings newest-first; empty on any transport or parse failure."""

        url = encode_filter(search_filter, self._marketplace)
        try:
            html = await self._fetch_page(url)
            return decode_listings(extract_data_island(html))
        except TransportError as exc:
            LOGGER.warning("Fetch failed for %s: %s", url, exc)
        except ParseError as exc:
            LOGGER.warning("Could not read listings from %s: %s", url, exc)
        return []
