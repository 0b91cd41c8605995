"""Persistence interface for the reusable meal library."""

from typing import Protocol
from uuid import UUID

from food_capture.domain.nutrition import NutritionInfo, SavedMeal


class SavedMealRepository(Protocol):
    """Library of meals saved for reuse. Duplicates are allowed."""

    def save_meal(self, user_id: UUID, meal: NutritionInfo) -> SavedMeal:
        """Persist a meal and return it with its store id."""

    def delete_meal(self, user_id: UUID, saved_meal_id: int) -> None:
        """Remove a saved meal."""

    def list_meals(self, user_id: UUID) -> list[SavedMeal]:
        """Return every saved meal."""
