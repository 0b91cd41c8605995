"""Validated payload models for analysis output and stored records."""

from dataclasses import asdict

from pydantic import BaseModel, Field

from food_capture.domain.nutrition import (
    MICRONUTRIENT_FIELDS,
    HealthMetricsReading,
    Ingredient,
    NutritionInfo,
    Recipe,
    RecipeIngredient,
    RecipeNutrition,
)


class IngredientExtract(BaseModel):
    """Ingredient as returned by analysis or stored in a meal record."""

    name: str
    weight_grams: float = Field(ge=0.0)
    calories: float = Field(ge=0.0)
    protein: float = Field(ge=0.0)
    carbs: float = Field(ge=0.0)
    fat: float = Field(ge=0.0)
    sugar: float | None = Field(default=None, ge=0.0)
    fiber: float | None = Field(default=None, ge=0.0)
    sodium: float | None = Field(default=None, ge=0.0)
    potassium: float | None = Field(default=None, ge=0.0)
    magnesium: float | None = Field(default=None, ge=0.0)
    vitamin_d: float | None = Field(default=None, ge=0.0)
    calcium: float | None = Field(default=None, ge=0.0)
    image_url: str | None = None

    def to_domain(self) -> Ingredient:
        return Ingredient(**self.model_dump())


class RecipeIngredientExtract(BaseModel):
    name: str
    quantity: str


class RecipeNutritionExtract(BaseModel):
    total_calories: float = Field(ge=0.0)
    total_protein: float = Field(ge=0.0)
    total_carbs: float = Field(ge=0.0)
    total_fat: float = Field(ge=0.0)


class RecipeExtract(BaseModel):
    """Recipe suggestion returned by pantry analysis."""

    recipe_name: str
    description: str
    ingredients: list[RecipeIngredientExtract]
    instructions: list[str]
    nutrition: RecipeNutritionExtract

    def to_domain(self) -> Recipe:
        return Recipe(
            recipe_name=self.recipe_name,
            description=self.description,
            ingredients=tuple(
                RecipeIngredient(name=item.name, quantity=item.quantity)
                for item in self.ingredients
            ),
            instructions=tuple(self.instructions),
            nutrition=RecipeNutrition(**self.nutrition.model_dump()),
        )


class RecipesExtract(BaseModel):
    """Structured output for pantry analysis."""

    recipes: list[RecipeExtract] = Field(min_length=1)


class NutritionExtract(BaseModel):
    """Structured meal record, from analysis or from the store."""

    meal_name: str
    ingredients: list[IngredientExtract] = Field(min_length=1)
    image_url: str | None = None
    recipe: RecipeExtract | None = None
    nutri_score: str | None = None
    eco_score: str | None = None
    allergens: list[str] = Field(default_factory=list)
    insight: str | None = None
    justification: str | None = None
    source: str | None = None

    def to_domain(self) -> NutritionInfo:
        return NutritionInfo(
            meal_name=self.meal_name,
            ingredients=tuple(item.to_domain() for item in self.ingredients),
            image_url=self.image_url,
            recipe=self.recipe.to_domain() if self.recipe else None,
            nutri_score=self.nutri_score,
            eco_score=self.eco_score,
            allergens=tuple(self.allergens),
            insight=self.insight,
            justification=self.justification,
            source=self.source,
        )


class HealthMetricsExtract(BaseModel):
    """Structured output for vitals screenshot analysis."""

    steps: int | None = Field(default=None, ge=0)
    active_calories: float | None = Field(default=None, ge=0.0)
    resting_calories: float | None = Field(default=None, ge=0.0)
    sleep_minutes: int | None = Field(default=None, ge=0)
    hrv: float | None = Field(default=None, ge=0.0)
    resting_heart_rate: float | None = Field(default=None, ge=0.0)
    source_note: str | None = None

    def to_domain(self) -> HealthMetricsReading:
        return HealthMetricsReading(**self.model_dump())


def nutrition_payload(info: NutritionInfo) -> dict[str, object]:
    """Serialize a meal, including derived totals, for the store."""
    payload: dict[str, object] = {
        "meal_name": info.meal_name,
        "ingredients": [_ingredient_payload(item) for item in info.ingredients],
        "total_calories": info.total_calories,
        "total_protein": info.total_protein,
        "total_carbs": info.total_carbs,
        "total_fat": info.total_fat,
        "allergens": list(info.allergens),
    }
    for name in MICRONUTRIENT_FIELDS:
        total = getattr(info, f"total_{name}")
        if total is not None:
            payload[f"total_{name}"] = total
    optional = {
        "image_url": info.image_url,
        "nutri_score": info.nutri_score,
        "eco_score": info.eco_score,
        "insight": info.insight,
        "justification": info.justification,
        "source": info.source,
    }
    payload.update({key: value for key, value in optional.items() if value is not None})
    if info.recipe is not None:
        payload["recipe"] = _recipe_payload(info.recipe)
    return payload


def parse_nutrition(payload: object) -> NutritionInfo:
    """Validate a stored or analyzed meal payload into a domain model."""
    return NutritionExtract.model_validate(payload).to_domain()


def health_metrics_payload(reading: HealthMetricsReading) -> dict[str, object]:
    """Serialize the non-empty fields of a health metrics reading."""
    return {key: value for key, value in asdict(reading).items() if value is not None}


def _ingredient_payload(item: Ingredient) -> dict[str, object]:
    payload: dict[str, object] = {
        "name": item.name,
        "weight_grams": item.weight_grams,
        "calories": item.calories,
        "protein": item.protein,
        "carbs": item.carbs,
        "fat": item.fat,
    }
    for name in MICRONUTRIENT_FIELDS:
        value = getattr(item, name)
        if value is not None:
            payload[name] = value
    if item.image_url:
        payload["image_url"] = item.image_url
    return payload


def _recipe_payload(recipe: Recipe) -> dict[str, object]:
    return {
        "recipe_name": recipe.recipe_name,
        "description": recipe.description,
        "ingredients": [
            {"name": item.name, "quantity": item.quantity}
            for item in recipe.ingredients
        ],
        "instructions": list(recipe.instructions),
        "nutrition": {
            "total_calories": recipe.nutrition.total_calories,
            "total_protein": recipe.nutrition.total_protein,
            "total_carbs": recipe.nutrition.total_carbs,
            "total_fat": recipe.nutrition.total_fat,
        },
    }
