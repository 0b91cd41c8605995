"""Persistence interface for meal plans."""

from typing import Protocol
from uuid import UUID

from food_capture.domain.plans import MealPlan, MealPlanItem, PlanSlot


class MealPlanRepository(Protocol):
    """Meal plans and the saved meals scheduled into them."""

    def list_plans(self, user_id: UUID) -> list[MealPlan]:
        """Return all plans with their items."""

    def create_plan(self, user_id: UUID, name: str) -> MealPlan:
        """Create an empty plan."""

    def add_item(
        self, user_id: UUID, plan_id: int, saved_meal_id: int, slot: PlanSlot
    ) -> MealPlanItem:
        """Schedule a saved meal into a plan slot."""

    def remove_item(self, user_id: UUID, item_id: int) -> None:
        """Unschedule an item; the saved meal itself is untouched."""
