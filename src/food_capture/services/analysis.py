"""Route normalized captures to the matching analysis operation."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from food_capture.domain.errors import AnalysisError
from food_capture.domain.nutrition import HealthMetricsReading, NutritionInfo, Recipe
from food_capture.domain.payloads import (
    HealthMetricsExtract,
    NutritionExtract,
    RecipesExtract,
)
from food_capture.services.images import NormalizedImage
from food_capture.services.products import ProductLookupService

_logger = logging.getLogger(__name__)


class CaptureMode(Enum):
    """Kinds of food information a user can capture."""

    MEAL_PHOTO = "meal-photo"
    BARCODE = "barcode"
    PANTRY_PHOTO = "pantry-photo"
    RESTAURANT_PHOTO = "restaurant-photo"
    FREE_TEXT_SEARCH = "free-text-search"
    VITALS_SCREENSHOT = "vitals-screenshot"

    @property
    def uses_camera(self) -> bool:
        return self in CAMERA_MODES


CAMERA_MODES = frozenset(
    {
        CaptureMode.MEAL_PHOTO,
        CaptureMode.PANTRY_PHOTO,
        CaptureMode.RESTAURANT_PHOTO,
        CaptureMode.VITALS_SCREENSHOT,
    }
)


@dataclass(frozen=True)
class CapturePayload:
    """What a finished capture hands to analysis."""

    mode: CaptureMode
    image: NormalizedImage | None = None
    text: str | None = None
    label: str | None = None


AnalysisResult = NutritionInfo | list[Recipe] | HealthMetricsReading


def _nullable(schema: dict[str, object]) -> dict[str, object]:
    return {"anyOf": [schema, {"type": "null"}]}


def _strict_object(properties: dict[str, object]) -> dict[str, object]:
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


_AMOUNT = {"type": "number", "minimum": 0.0}

INGREDIENT_SCHEMA = _strict_object(
    {
        "name": {"type": "string"},
        "weight_grams": _AMOUNT,
        "calories": _AMOUNT,
        "protein": _AMOUNT,
        "carbs": _AMOUNT,
        "fat": _AMOUNT,
        "sugar": _nullable(_AMOUNT),
        "fiber": _nullable(_AMOUNT),
        "sodium": _nullable(_AMOUNT),
        "potassium": _nullable(_AMOUNT),
        "magnesium": _nullable(_AMOUNT),
        "vitamin_d": _nullable(_AMOUNT),
        "calcium": _nullable(_AMOUNT),
    }
)

NUTRITION_SCHEMA = _strict_object(
    {
        "meal_name": {"type": "string"},
        "ingredients": {"type": "array", "items": INGREDIENT_SCHEMA},
        "allergens": {"type": "array", "items": {"type": "string"}},
        "insight": _nullable({"type": "string"}),
    }
)

RECIPES_SCHEMA = _strict_object(
    {
        "recipes": {
            "type": "array",
            "items": _strict_object(
                {
                    "recipe_name": {"type": "string"},
                    "description": {"type": "string"},
                    "ingredients": {
                        "type": "array",
                        "items": _strict_object(
                            {
                                "name": {"type": "string"},
                                "quantity": {"type": "string"},
                            }
                        ),
                    },
                    "instructions": {"type": "array", "items": {"type": "string"}},
                    "nutrition": _strict_object(
                        {
                            "total_calories": _AMOUNT,
                            "total_protein": _AMOUNT,
                            "total_carbs": _AMOUNT,
                            "total_fat": _AMOUNT,
                        }
                    ),
                }
            ),
        }
    }
)

HEALTH_METRICS_SCHEMA = _strict_object(
    {
        "steps": _nullable({"type": "integer", "minimum": 0}),
        "active_calories": _nullable(_AMOUNT),
        "resting_calories": _nullable(_AMOUNT),
        "sleep_minutes": _nullable({"type": "integer", "minimum": 0}),
        "hrv": _nullable(_AMOUNT),
        "resting_heart_rate": _nullable(_AMOUNT),
        "source_note": _nullable({"type": "string"}),
    }
)

MEAL_PROMPT = (
    "Analyze the meal in the image. Identify each ingredient, estimate its "
    "weight in grams and its calories, protein, carbs and fat for that weight. "
    "Include sugar, fiber and sodium (mg) and the micronutrients potassium, "
    "magnesium, vitamin D and calcium when they can be estimated, otherwise null. "
    "Give the meal a short name and a one-sentence health insight."
)
RESTAURANT_PROMPT = (
    "Analyze this restaurant dish. Restaurant portions are usually larger than "
    "home portions and contain hidden fats such as butter and oil; account for "
    "them. Identify each ingredient, estimate its weight in grams and its "
    "calories, protein, carbs and fat for that weight, with micronutrients when "
    "they can be estimated, otherwise null."
)
PANTRY_PROMPT = (
    "Identify the ingredients available in this pantry or fridge photo and "
    "suggest 3 healthy recipes that use mainly those ingredients. For each recipe "
    "give the ingredient quantities, step-by-step instructions and the estimated "
    "nutrition for one serving."
)
SEARCH_PROMPT = (
    "Provide a nutritional breakdown for the food described as: {query}. "
    "Assume a typical single serving unless a quantity is given. List each "
    "ingredient with its weight in grams and its calories, protein, carbs and fat, "
    "with micronutrients when they can be estimated, otherwise null."
)
VITALS_PROMPT = (
    "Read the health metrics visible in this screenshot of a health or fitness "
    "app: steps, active calories, resting calories, sleep duration in minutes, "
    "heart rate variability and resting heart rate. Use null for anything not shown."
)


class AnalysisClient(Protocol):
    """Interface for structured LLM analysis."""

    async def analyze(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
        image_data_url: str | None,
    ) -> dict[str, object]:
        """Return structured analysis data matching the schema."""


@dataclass
class AnalysisRouter:
    """Dispatch a capture payload to the operation for its mode.

    Nothing is retried: any failure surfaces as an AnalysisError naming the
    mode that failed.
    """

    client: AnalysisClient
    products: ProductLookupService
    model: str
    reasoning_effort: str | None
    store: bool

    def operation_for(
        self, mode: CaptureMode
    ) -> Callable[[CapturePayload], Awaitable[AnalysisResult]]:
        operations: dict[
            CaptureMode, Callable[[CapturePayload], Awaitable[AnalysisResult]]
        ] = {
            CaptureMode.MEAL_PHOTO: self._analyze_meal,
            CaptureMode.RESTAURANT_PHOTO: self._analyze_restaurant,
            CaptureMode.PANTRY_PHOTO: self._suggest_recipes,
            CaptureMode.BARCODE: self._lookup_barcode,
            CaptureMode.FREE_TEXT_SEARCH: self._search,
            CaptureMode.VITALS_SCREENSHOT: self._read_vitals,
        }
        return operations[mode]

    async def analyze(self, payload: CapturePayload) -> AnalysisResult:
        """Run the analysis for the payload's mode."""
        operation = self.operation_for(payload.mode)
        try:
            return await operation(payload)
        except AnalysisError:
            raise
        except Exception as exc:
            _logger.warning(
                "Analysis failed: mode=%s error=%s", payload.mode.value, exc
            )
            raise AnalysisError(payload.mode, exc) from exc

    async def _analyze_meal(self, payload: CapturePayload) -> NutritionInfo:
        raw = await self._call(payload, MEAL_PROMPT, "nutrition_info", NUTRITION_SCHEMA)
        return _parse_meal(raw)

    async def _analyze_restaurant(self, payload: CapturePayload) -> NutritionInfo:
        raw = await self._call(
            payload, RESTAURANT_PROMPT, "nutrition_info", NUTRITION_SCHEMA
        )
        return _parse_meal(raw)

    async def _suggest_recipes(self, payload: CapturePayload) -> list[Recipe]:
        raw = await self._call(payload, PANTRY_PROMPT, "recipes", RECIPES_SCHEMA)
        extract = RecipesExtract.model_validate(raw)
        return [recipe.to_domain() for recipe in extract.recipes]

    async def _lookup_barcode(self, payload: CapturePayload) -> NutritionInfo:
        code = (payload.text or "").strip()
        if not code:
            raise AnalysisError(payload.mode, "Missing barcode")
        info = await self.products.get_by_code(code)
        if info is None:
            raise AnalysisError(payload.mode, f"Product {code} not found")
        return info

    async def _search(self, payload: CapturePayload) -> NutritionInfo:
        query = (payload.text or "").strip()
        if not query:
            raise AnalysisError(payload.mode, "Missing search query")
        raw = await self.client.analyze(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            prompt=SEARCH_PROMPT.format(query=query),
            schema_name="nutrition_info",
            schema=NUTRITION_SCHEMA,
            image_data_url=None,
        )
        return _parse_meal(raw)

    async def _read_vitals(self, payload: CapturePayload) -> HealthMetricsReading:
        raw = await self._call(
            payload, VITALS_PROMPT, "health_metrics", HEALTH_METRICS_SCHEMA
        )
        reading = HealthMetricsExtract.model_validate(raw).to_domain()
        if reading.is_empty():
            raise AnalysisError(payload.mode, "No health metrics found in image")
        return reading

    async def _call(
        self,
        payload: CapturePayload,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        if payload.image is None:
            raise AnalysisError(payload.mode, "Missing image")
        return await self.client.analyze(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            prompt=_with_label(prompt, payload.label),
            schema_name=schema_name,
            schema=schema,
            image_data_url=payload.image.data_url,
        )


def _with_label(prompt: str, label: str | None) -> str:
    if label and label.strip():
        return f"{prompt}\nThe user labeled this food as: {label.strip()}."
    return prompt


def _parse_meal(raw: object) -> NutritionInfo:
    return NutritionExtract.model_validate(raw).to_domain()
