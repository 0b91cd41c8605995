"""Supabase repository for the meal history ledger."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from food_capture.domain.nutrition import MealLogEntry, NutritionInfo
from food_capture.domain.payloads import nutrition_payload, parse_nutrition
from food_capture.services.history import MealHistoryRepository


@dataclass
class SupabaseMealHistoryRepository(MealHistoryRepository):
    """Supabase implementation for meal history."""

    client: Client

    def add_entry(
        self, user_id: UUID, meal: NutritionInfo, image_base64: str | None
    ) -> MealLogEntry:
        """Insert a meal log row and return it."""
        response = (
            self.client.table("meal_log")
            .insert(
                {
                    "user_id": str(user_id),
                    "meal": nutrition_payload(meal),
                    "image_base64": image_base64,
                    "has_image": image_base64 is not None,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal log entry")
        return _parse_entry(response.data[0])

    def list_entries(self, user_id: UUID, limit: int) -> list[MealLogEntry]:
        """Return recent meal log rows without image payloads."""
        response = (
            self.client.table("meal_log")
            .select("id, created_at, meal, has_image")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]


def _parse_entry(row: dict[str, object]) -> MealLogEntry:
    return MealLogEntry(
        id=int(row["id"]),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        meal=parse_nutrition(row.get("meal")),
        has_image=bool(row.get("has_image", False)),
    )
