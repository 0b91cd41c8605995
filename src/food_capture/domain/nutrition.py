"""Nutrition domain models and the weight scaling rule."""

from dataclasses import dataclass, replace
from datetime import datetime

from food_capture.domain.errors import InvalidWeightError

MACRO_FIELDS = ("calories", "protein", "carbs", "fat")
MICRONUTRIENT_FIELDS = (
    "sugar",
    "fiber",
    "sodium",
    "potassium",
    "magnesium",
    "vitamin_d",
    "calcium",
)


@dataclass(frozen=True)
class Ingredient:
    """One food component of a meal."""

    name: str
    weight_grams: float
    calories: float
    protein: float
    carbs: float
    fat: float
    sugar: float | None = None
    fiber: float | None = None
    sodium: float | None = None
    potassium: float | None = None
    magnesium: float | None = None
    vitamin_d: float | None = None
    calcium: float | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class RecipeIngredient:
    """Recipe ingredient with a free-text quantity."""

    name: str
    quantity: str


@dataclass(frozen=True)
class RecipeNutrition:
    """Estimated nutrition for one serving of a recipe."""

    total_calories: float
    total_protein: float
    total_carbs: float
    total_fat: float


@dataclass(frozen=True)
class Recipe:
    """Recipe suggested from a pantry photo."""

    recipe_name: str
    description: str
    ingredients: tuple[RecipeIngredient, ...]
    instructions: tuple[str, ...]
    nutrition: RecipeNutrition

    def to_nutrition_info(self) -> "NutritionInfo":
        """Represent the recipe as a single-serving meal."""
        serving = Ingredient(
            name=self.recipe_name,
            weight_grams=0.0,
            calories=self.nutrition.total_calories,
            protein=self.nutrition.total_protein,
            carbs=self.nutrition.total_carbs,
            fat=self.nutrition.total_fat,
        )
        return NutritionInfo(
            meal_name=self.recipe_name,
            ingredients=(serving,),
            recipe=self,
        )


@dataclass(frozen=True)
class NutritionInfo:
    """An analyzed or hand-edited meal.

    Totals are always derived from the ingredients, so they can never be stale
    relative to an ingredient edit.
    """

    meal_name: str
    ingredients: tuple[Ingredient, ...]
    image_url: str | None = None
    recipe: Recipe | None = None
    nutri_score: str | None = None
    eco_score: str | None = None
    allergens: tuple[str, ...] = ()
    insight: str | None = None
    justification: str | None = None
    source: str | None = None

    @property
    def total_calories(self) -> float:
        return _sum_field(self.ingredients, "calories")

    @property
    def total_protein(self) -> float:
        return _sum_field(self.ingredients, "protein")

    @property
    def total_carbs(self) -> float:
        return _sum_field(self.ingredients, "carbs")

    @property
    def total_fat(self) -> float:
        return _sum_field(self.ingredients, "fat")

    @property
    def total_sugar(self) -> float | None:
        return _sum_optional(self.ingredients, "sugar")

    @property
    def total_fiber(self) -> float | None:
        return _sum_optional(self.ingredients, "fiber")

    @property
    def total_sodium(self) -> float | None:
        return _sum_optional(self.ingredients, "sodium")

    @property
    def total_potassium(self) -> float | None:
        return _sum_optional(self.ingredients, "potassium")

    @property
    def total_magnesium(self) -> float | None:
        return _sum_optional(self.ingredients, "magnesium")

    @property
    def total_vitamin_d(self) -> float | None:
        return _sum_optional(self.ingredients, "vitamin_d")

    @property
    def total_calcium(self) -> float | None:
        return _sum_optional(self.ingredients, "calcium")

    def with_ingredient(self, index: int, ingredient: Ingredient) -> "NutritionInfo":
        """Return a copy with one ingredient replaced."""
        if not 0 <= index < len(self.ingredients):
            raise IndexError(f"Ingredient index {index} out of range")
        ingredients = list(self.ingredients)
        ingredients[index] = ingredient
        return replace(self, ingredients=tuple(ingredients))


@dataclass(frozen=True)
class SavedMeal:
    """A meal persisted to the reusable library."""

    id: int
    meal: NutritionInfo


@dataclass(frozen=True)
class MealLogEntry:
    """A meal persisted to the dated history ledger."""

    id: int
    created_at: datetime
    meal: NutritionInfo
    has_image: bool = False


@dataclass(frozen=True)
class HealthMetricsReading:
    """Partial health metrics read from a vitals screenshot."""

    steps: int | None = None
    active_calories: float | None = None
    resting_calories: float | None = None
    sleep_minutes: int | None = None
    hrv: float | None = None
    resting_heart_rate: float | None = None
    source_note: str | None = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.steps,
                self.active_calories,
                self.resting_calories,
                self.sleep_minutes,
                self.hrv,
                self.resting_heart_rate,
            )
        )


@dataclass(frozen=True)
class HealthMetricsEntry:
    """Health metrics reading persisted by the store."""

    id: int
    recorded_at: datetime
    reading: HealthMetricsReading


def scale_ingredient(baseline: Ingredient, weight_grams: float) -> Ingredient:
    """Rescale every nutrient of a baseline ingredient to a new weight."""
    if weight_grams <= 0:
        raise InvalidWeightError(f"Weight must be positive, got {weight_grams}")
    if baseline.weight_grams <= 0:
        raise InvalidWeightError(f"{baseline.name} has no baseline weight to scale")
    multiplier = weight_grams / baseline.weight_grams
    scaled: dict[str, float | None] = {
        name: getattr(baseline, name) * multiplier for name in MACRO_FIELDS
    }
    for name in MICRONUTRIENT_FIELDS:
        value = getattr(baseline, name)
        scaled[name] = value * multiplier if value is not None else None
    return replace(baseline, weight_grams=weight_grams, **scaled)


def _sum_field(ingredients: tuple[Ingredient, ...], name: str) -> float:
    return sum((float(getattr(item, name)) for item in ingredients), 0.0)


def _sum_optional(ingredients: tuple[Ingredient, ...], name: str) -> float | None:
    values = [getattr(item, name) for item in ingredients]
    present = [float(value) for value in values if value is not None]
    if not present:
        return None
    return sum(present, 0.0)
