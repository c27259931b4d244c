"""Search filter validation and query encoding (core domain)."""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, Mapping, Optional
from urllib.parse import urlencode

from core.config import MarketplaceConfig
from core.errors import ConfigError
from core.models import SearchFilter

_DEPARTMENT_RE = re.compile(r"^[0-9A-Za-z]{1,3}$")
_RANGE_RE = re.compile(r"^(\d+|min)-(\d+|max)$")


def _normalize_departments(raw: Any) -> tuple[str, ...]:
    if raw is None or raw == "":
        return ()
    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith("["):
            try:
                raw = json.loads(text)
            except ValueError as exc:
                raise ConfigError(f"departments is not a valid list: {text}") from exc
        else:
            raw = [part for part in re.split(r"[\s,]+", text) if part]
    if not isinstance(raw, (list, tuple)):
        raise ConfigError("departments must be a list of codes")

    codes: list[str] = []
    for item in raw:
        code = str(item).strip().upper()
        if not _DEPARTMENT_RE.match(code):
            raise ConfigError(f"Invalid department code: {item!r}")
        if code not in codes:
            codes.append(code)
    return tuple(codes)


def _validate_range(name: str, value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    if not _RANGE_RE.match(value):
        raise ConfigError(f"{name} must look like min-max (e.g. 1000-5000), got {value!r}")
    return value


def validate_filter(search_filter: SearchFilter) -> None:
    """Raise ConfigError when the filter cannot be serialized."""

    if not search_filter.brand:
        if search_filter.model:
            raise ConfigError("model requires a brand")
        raise ConfigError("brand is required")
    for code in search_filter.departments:
        if not _DEPARTMENT_RE.match(code):
            raise ConfigError(f"Invalid department code: {code!r}")
    _validate_range("price", search_filter.price)
    _validate_range("mileage", search_filter.mileage)


def build_filter(params: Mapping[str, Any]) -> SearchFilter:
    """Build a validated SearchFilter from raw request parameters."""

    brand = str(params.get("brand") or "").strip().upper()
    model = str(params.get("model") or "").strip() or None
    sort = str(params.get("sort") or "").strip() or None

    search_filter = SearchFilter(
        brand=brand,
        model=model,
        sort=sort,
        departments=_normalize_departments(params.get("departments")),
        price=_validate_range("price", params.get("price")),
        mileage=_validate_range("mileage", params.get("mileage")),
    )
    validate_filter(search_filter)
    return search_filter


def _query_pairs(search_filter: SearchFilter, category: str) -> Iterable[tuple[str, str]]:
    # Field order is fixed so the same filter always yields the same query.
    yield "category", category
    if search_filter.departments:
        yield "locations", ",".join(f"d_{code}" for code in sorted(search_filter.departments))
    yield "u_car_brand", search_filter.brand
    if search_filter.model:
        yield "u_car_model", f"{search_filter.brand}_{search_filter.model}"
    if search_filter.sort:
        yield "sort", search_filter.sort
    if search_filter.price:
        yield "price", search_filter.price
    if search_filter.mileage:
        yield "mileage", search_filter.mileage


def encode_filter(search_filter: SearchFilter, marketplace: MarketplaceConfig) -> str:
    """Return the marketplace search URL for a filter."""

    validate_filter(search_filter)
    query = urlencode(list(_query_pairs(search_filter, marketplace.category)), safe=",")
    return f"{marketplace.base_url}?{query}"
