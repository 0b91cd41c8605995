"""Barcode product lookup mapped onto meal records."""

import logging
from dataclasses import dataclass
from typing import Protocol

from food_capture.domain.nutrition import Ingredient, NutritionInfo
from food_capture.services.cache import Cache

DEFAULT_SERVING_GRAMS = 100.0
KJ_PER_KCAL = 4.184
SODIUM_MG_PER_SALT_G = 400.0

_logger = logging.getLogger(__name__)


class ProductLookupClient(Protocol):
    """Interface for barcode product databases."""

    async def get_product(self, code: str) -> dict[str, object] | None:
        """Return the raw product for a barcode, or None when unknown."""


@dataclass
class ProductLookupService:
    """Resolve barcodes into single-ingredient meals with caching."""

    client: ProductLookupClient
    cache: Cache
    ttl_seconds: int = 86400
    debug: bool = False

    async def get_by_code(self, code: str) -> NutritionInfo | None:
        """Return the product as a meal sized to one serving."""
        cache_key = f"off:product:{code}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, NutritionInfo):
            return cached

        product = await self.client.get_product(code)
        if product is None:
            if self.debug:
                _logger.info("Product lookup miss: code=%s", code)
            return None
        info = product_to_nutrition(product)
        self.cache.set(cache_key, info, ttl_seconds=self.ttl_seconds)
        if self.debug:
            _logger.info("Product lookup: code=%s name=%s", code, info.meal_name)
        return info


def product_to_nutrition(product: dict[str, object]) -> NutritionInfo:
    """Scale per-100g nutriments to the product serving size."""
    nutriments = product.get("nutriments") or {}
    if not isinstance(nutriments, dict):
        nutriments = {}
    name = str(
        product.get("product_name") or product.get("generic_name") or "Unknown Product"
    )
    serving = _to_float(product.get("serving_quantity"))
    serving_grams = serving if serving and serving > 0 else DEFAULT_SERVING_GRAMS
    scale = serving_grams / 100.0

    calories = _to_float(nutriments.get("energy-kcal_100g"))
    if calories is None:
        energy_kj = _to_float(nutriments.get("energy_100g"))
        calories = energy_kj / KJ_PER_KCAL if energy_kj is not None else None

    sodium_g = _to_float(nutriments.get("sodium_100g"))
    sodium_mg = sodium_g * 1000.0 if sodium_g is not None else None
    if sodium_mg is None:
        salt_g = _to_float(nutriments.get("salt_100g"))
        sodium_mg = salt_g * SODIUM_MG_PER_SALT_G if salt_g is not None else None

    def per_serving(value: float | None) -> float | None:
        return value * scale if value is not None else None

    ingredient = Ingredient(
        name=name,
        weight_grams=serving_grams,
        calories=(calories or 0.0) * scale,
        protein=(_to_float(nutriments.get("proteins_100g")) or 0.0) * scale,
        carbs=(_to_float(nutriments.get("carbohydrates_100g")) or 0.0) * scale,
        fat=(_to_float(nutriments.get("fat_100g")) or 0.0) * scale,
        sugar=per_serving(_to_float(nutriments.get("sugars_100g"))),
        fiber=per_serving(_to_float(nutriments.get("fiber_100g"))),
        sodium=per_serving(sodium_mg),
        image_url=_optional_str(
            product.get("image_front_small_url") or product.get("image_front_url")
        ),
    )
    allergen_tags = product.get("allergens_tags") or []
    allergens = tuple(
        str(tag).replace("en:", "").replace("-", " ")
        for tag in allergen_tags
        if isinstance(allergen_tags, list)
    )
    return NutritionInfo(
        meal_name=name,
        ingredients=(ingredient,),
        image_url=_optional_str(product.get("image_front_url")),
        nutri_score=_optional_str(product.get("nutriscore_grade")),
        eco_score=_optional_str(product.get("ecoscore_grade")),
        allergens=allergens,
        insight=f"Information retrieved from Open Food Facts for {name}.",
    )


def _to_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _optional_str(value: object) -> str | None:
    return str(value) if value else None
