"""Persistence interface for the dated meal history."""

from typing import Protocol
from uuid import UUID

from food_capture.domain.nutrition import MealLogEntry, NutritionInfo


class MealHistoryRepository(Protocol):
    """Append-only ledger of eaten meals."""

    def add_entry(
        self, user_id: UUID, meal: NutritionInfo, image_base64: str | None
    ) -> MealLogEntry:
        """Insert a meal; the store assigns id and timestamp."""

    def list_entries(self, user_id: UUID, limit: int) -> list[MealLogEntry]:
        """Return the most recent entries, newest first."""
