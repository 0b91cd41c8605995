"""Tests for barcode product lookup and caching."""

import asyncio

import pytest

from food_capture.services.cache import InMemoryCache
from food_capture.services.products import ProductLookupService, product_to_nutrition
from tests.conftest import FakeClock, FakeProductClient, off_product


def test_product_is_scaled_to_serving() -> None:
    info = product_to_nutrition(off_product())

    ingredient = info.ingredients[0]
    assert ingredient.weight_grams == 150
    assert ingredient.calories == pytest.approx(145.5)
    assert ingredient.protein == pytest.approx(13.5)
    assert ingredient.sugar == pytest.approx(5.4)
    assert ingredient.sodium == pytest.approx(60.0)
    assert info.nutri_score == "b"
    assert info.allergens == ("milk",)
    assert info.total_calories == pytest.approx(145.5)


def test_missing_serving_defaults_to_100g_and_kj_fallback() -> None:
    product = {
        "product_name": "Crackers",
        "nutriments": {"energy_100g": 1841, "sodium_100g": 0.5},
    }

    info = product_to_nutrition(product)

    ingredient = info.ingredients[0]
    assert ingredient.weight_grams == 100
    assert ingredient.calories == pytest.approx(440.0, rel=1e-3)
    assert ingredient.sodium == pytest.approx(500.0)
    assert ingredient.protein == 0.0


def test_lookup_uses_cache() -> None:
    client = FakeProductClient()
    service = ProductLookupService(client, InMemoryCache())

    first = asyncio.run(service.get_by_code("5201054017807"))
    second = asyncio.run(service.get_by_code("5201054017807"))

    assert first == second
    assert client.lookups == ["5201054017807"]


def test_unknown_code_returns_none_and_is_not_cached() -> None:
    client = FakeProductClient()
    service = ProductLookupService(client, InMemoryCache())

    assert asyncio.run(service.get_by_code("1")) is None
    assert asyncio.run(service.get_by_code("1")) is None
    assert client.lookups == ["1", "1"]


def test_cache_entries_expire() -> None:
    clock = FakeClock()
    cache = InMemoryCache(clock=clock)

    cache.set("key", "value", ttl_seconds=60)
    assert cache.get("key") == "value"

    clock.advance(seconds=61)
    assert cache.get("key") is None
    assert len(cache) == 0


def test_non_positive_ttl_is_not_stored() -> None:
    cache = InMemoryCache()
    cache.set("key", "value", ttl_seconds=0)
    assert cache.get("key") is None
