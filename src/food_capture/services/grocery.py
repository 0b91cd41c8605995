"""Persistence interface for grocery lists."""

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from food_capture.domain.grocery import GroceryItem, GroceryList
from food_capture.domain.nutrition import NutritionInfo


def grocery_names(meals: Iterable[NutritionInfo]) -> list[str]:
    """Return the unique ingredient names of the meals, sorted."""
    names = {
        ingredient.name.strip()
        for meal in meals
        for ingredient in meal.ingredients
        if ingredient.name.strip()
    }
    return sorted(names)


class GroceryRepository(Protocol):
    """Grocery lists, their items, and import from meal plans."""

    def list_lists(self, user_id: UUID) -> list[GroceryList]:
        """Return every list with its items."""

    def create_list(self, user_id: UUID, name: str) -> GroceryList:
        """Create an empty, inactive list."""

    def set_active(self, user_id: UUID, list_id: int) -> None:
        """Make one list active and every other list inactive."""

    def add_item(self, user_id: UUID, list_id: int, name: str) -> GroceryItem:
        """Append an unchecked item to a list."""

    def set_checked(self, user_id: UUID, item_id: int, checked: bool) -> GroceryItem:
        """Mark an item as bought or not."""

    def remove_item(self, user_id: UUID, item_id: int) -> None:
        """Delete an item."""

    def delete_list(self, user_id: UUID, list_id: int) -> None:
        """Delete a list together with its items."""

    def import_from_plans(
        self, user_id: UUID, list_id: int, plan_ids: list[int]
    ) -> list[GroceryItem]:
        """Add the ingredient names of every meal in the given plans to a list.

        Names are collected across all plans, de-duplicated and sorted, then
        inserted as unchecked items.
        """
