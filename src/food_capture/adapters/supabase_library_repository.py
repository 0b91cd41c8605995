"""Supabase implementation for the saved meal library."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from food_capture.domain.nutrition import NutritionInfo, SavedMeal
from food_capture.domain.payloads import nutrition_payload, parse_nutrition
from food_capture.services.library import SavedMealRepository


@dataclass
class SupabaseSavedMealRepository(SavedMealRepository):
    """Supabase-backed repository for saved meals."""

    client: Client

    def save_meal(self, user_id: UUID, meal: NutritionInfo) -> SavedMeal:
        """Insert a saved meal and return it."""
        response = (
            self.client.table("saved_meals")
            .insert({"user_id": str(user_id), "meal": nutrition_payload(meal)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save meal")
        return parse_saved_meal(response.data[0])

    def delete_meal(self, user_id: UUID, saved_meal_id: int) -> None:
        """Delete a saved meal owned by the user."""
        (
            self.client.table("saved_meals")
            .delete()
            .eq("id", saved_meal_id)
            .eq("user_id", str(user_id))
            .execute()
        )

    def list_meals(self, user_id: UUID) -> list[SavedMeal]:
        """Return saved meals, newest first."""
        response = (
            self.client.table("saved_meals")
            .select("id, meal")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .execute()
        )
        return [parse_saved_meal(row) for row in response.data or []]


def parse_saved_meal(row: dict[str, object]) -> SavedMeal:
    """Parse a saved meal row into a domain model."""
    return SavedMeal(id=int(row["id"]), meal=parse_nutrition(row.get("meal")))
