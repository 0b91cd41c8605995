"""Supabase repository for meal plans."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from food_capture.adapters.supabase_library_repository import parse_saved_meal
from food_capture.domain.nutrition import SavedMeal
from food_capture.domain.plans import MealPlan, MealPlanItem, PlanSlot
from food_capture.services.plans import MealPlanRepository


@dataclass
class SupabaseMealPlanRepository(MealPlanRepository):
    """Supabase implementation for meal plans and plan items."""

    client: Client

    def list_plans(self, user_id: UUID) -> list[MealPlan]:
        """Return plans with their items and scheduled meals."""
        plans_response = (
            self.client.table("meal_plans")
            .select("id, name")
            .eq("user_id", str(user_id))
            .order("id", desc=False)
            .execute()
        )
        plan_rows = plans_response.data or []
        if not plan_rows:
            return []

        items_response = (
            self.client.table("meal_plan_items")
            .select("id, plan_id, saved_meal_id, metadata")
            .in_("plan_id", [row["id"] for row in plan_rows])
            .order("id", desc=False)
            .execute()
        )
        item_rows = items_response.data or []
        meals: dict[int, SavedMeal] = {}
        meal_ids = sorted({int(row["saved_meal_id"]) for row in item_rows})
        if meal_ids:
            meals_response = (
                self.client.table("saved_meals")
                .select("id, meal")
                .in_("id", meal_ids)
                .execute()
            )
            for row in meals_response.data or []:
                meal = parse_saved_meal(row)
                meals[meal.id] = meal

        items_by_plan: dict[int, list[MealPlanItem]] = {}
        for row in item_rows:
            meal = meals.get(int(row["saved_meal_id"]))
            if meal is None:
                continue
            items_by_plan.setdefault(int(row["plan_id"]), []).append(
                _parse_item(row, meal)
            )
        return [
            MealPlan(
                id=int(row["id"]),
                name=str(row.get("name", "")),
                items=tuple(items_by_plan.get(int(row["id"]), [])),
            )
            for row in plan_rows
        ]

    def create_plan(self, user_id: UUID, name: str) -> MealPlan:
        """Create an empty plan."""
        response = (
            self.client.table("meal_plans")
            .insert({"user_id": str(user_id), "name": name})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal plan")
        row = response.data[0]
        return MealPlan(id=int(row["id"]), name=str(row.get("name", name)))

    def add_item(
        self, user_id: UUID, plan_id: int, saved_meal_id: int, slot: PlanSlot
    ) -> MealPlanItem:
        """Schedule a saved meal into a plan."""
        meal_response = (
            self.client.table("saved_meals")
            .select("id, meal")
            .eq("id", saved_meal_id)
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not meal_response.data:
            raise RuntimeError(f"Saved meal {saved_meal_id} not found")
        meal = parse_saved_meal(meal_response.data[0])

        response = (
            self.client.table("meal_plan_items")
            .insert(
                {
                    "user_id": str(user_id),
                    "plan_id": plan_id,
                    "saved_meal_id": saved_meal_id,
                    "metadata": slot.to_metadata(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to add meal plan item")
        return _parse_item(response.data[0], meal)

    def remove_item(self, user_id: UUID, item_id: int) -> None:
        """Delete a plan item; the saved meal row is kept."""
        (
            self.client.table("meal_plan_items")
            .delete()
            .eq("id", item_id)
            .eq("user_id", str(user_id))
            .execute()
        )


def _parse_item(row: dict[str, object], meal: SavedMeal) -> MealPlanItem:
    metadata = row.get("metadata") or {}
    if not isinstance(metadata, dict):
        metadata = {}
    portion = metadata.get("portion")
    slot = PlanSlot(
        day=str(metadata.get("day", "")),
        slot=str(metadata.get("slot", "")),
        portion=float(portion) if isinstance(portion, int | float) else None,
        context=metadata.get("context"),
        add_to_grocery=bool(metadata.get("addToGrocery", False)),
    )
    return MealPlanItem(id=int(row["id"]), meal=meal, slot=slot)
