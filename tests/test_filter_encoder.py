from __future__ import annotations

import pytest

from core.config import MarketplaceConfig
from core.errors import ConfigError
from core.filter_encoder import build_filter, encode_filter
from core.models import SearchFilter

MARKETPLACE = MarketplaceConfig(base_url="https://www.leboncoin.fr/recherche", category="2")


def test_brand_and_sort_only() -> None:
    url = encode_filter(SearchFilter(brand="RENAULT", sort="time"), MARKETPLACE)

    assert "u_car_brand=RENAULT&sort=time" in url
    assert url.startswith("https://www.leboncoin.fr/recherche?category=2&")
    for term in ("locations=", "price=", "mileage=", "u_car_model="):
        assert term not in url


def test_full_filter_uses_fixed_field_order() -> None:
    search_filter = SearchFilter(
        brand="PEUGEOT",
        model="208",
        sort="price",
        departments=("93", "75"),
        price="1000-5000",
        mileage="min-100000",
    )

    url = encode_filter(search_filter, MARKETPLACE)

    assert url == (
        "https://www.leboncoin.fr/recherche?category=2&locations=d_75,d_93"
        "&u_car_brand=PEUGEOT&u_car_model=PEUGEOT_208&sort=price"
        "&price=1000-5000&mileage=min-100000"
    )


def test_department_order_does_not_change_query() -> None:
    first = encode_filter(SearchFilter(brand="FIAT", departments=("13", "2A", "06")), MARKETPLACE)
    second = encode_filter(SearchFilter(brand="FIAT", departments=("06", "13", "2A")), MARKETPLACE)

    assert first == second


def test_build_filter_normalizes_request_params() -> None:
    search_filter = build_filter(
        {"brand": "renault", "model": "Clio", "sort": "time", "departments": '["75", "93", "75"]'}
    )

    assert search_filter.brand == "RENAULT"
    assert search_filter.model == "Clio"
    assert search_filter.departments == ("75", "93")
    assert search_filter.price is None


def test_build_filter_accepts_comma_separated_departments() -> None:
    search_filter = build_filter({"brand": "BMW", "departments": "75, 92 93"})

    assert search_filter.departments == ("75", "92", "93")


@pytest.mark.parametrize(
    "params",
    [
        {"model": "Clio"},
        {"brand": ""},
        {"brand": "RENAULT", "departments": "[75,"},
        {"brand": "RENAULT", "departments": "75;93"},
        {"brand": "RENAULT", "price": "cheap"},
        {"brand": "RENAULT", "mileage": "10000"},
    ],
)
def test_build_filter_rejects_malformed_params(params: dict) -> None:
    with pytest.raises(ConfigError):
        build_filter(params)


def test_encode_rejects_model_without_brand() -> None:
    with pytest.raises(ConfigError):
        encode_filter(SearchFilter(brand="", model="Clio"), MARKETPLACE)
