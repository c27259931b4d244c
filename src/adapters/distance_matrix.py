"""Google Distance Matrix enrichment adapter."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from core.errors import EnrichmentError
from core.models import UNAVAILABLE_PROXIMITY, Proximity

LOGGER = logging.getLogger(__name__)


def parse_distance_matrix(payload: Any) -> Proximity:
    """Read the first route's distance and duration labels."""

    try:
        element = payload["rows"][0]["elements"][0]
        status = element.get("status", "OK")
        if status != "OK":
            raise EnrichmentError(f"No route found (status {status})")
        return Proximity(
            distance=str(element["distance"]["text"]),
            duration=str(element["duration"]["text"]),
        )
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise EnrichmentError("Malformed distance matrix response") from exc


class DistanceMatrixEnricher:
    """EnricherPort adapter; any failure degrades to UNAVAILABLE_PROXIMITY."""

    def __init__(
        self,
        api_key: str,
        endpoint: str = "https://maps.googleapis.com/maps/api/distancematrix/json",
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = api_key
        self._endpoint = endpoint
        self._client = client or httpx.AsyncClient(timeout=None)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _lookup(self, origin: str, destination: str) -> Proximity:
        params = {
            "units": "metric",
            "origins": origin,
            "destinations": destination,
            "key": self._api_key,
        }
        try:
            response = await self._client.get(self._endpoint, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise EnrichmentError(f"Distance request failed: {exc}") from exc
        except ValueError as exc:
            raise EnrichmentError("Distance response is not JSON") from exc
        return parse_distance_matrix(payload)

    async def enrich(self, origin: str, destination: str) -> Proximity:
        if not origin or not destination:
            return UNAVAILABLE_PROXIMITY
        try:
            return await self._lookup(origin, destination)
        except EnrichmentError as exc:
            LOGGER.warning("Distance lookup %s -> %s failed: %s", origin, destination, exc)
            return UNAVAILABLE_PROXIMITY
