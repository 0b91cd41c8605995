"""Supabase repository for grocery lists."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from food_capture.domain.grocery import GroceryItem, GroceryList
from food_capture.domain.payloads import parse_nutrition
from food_capture.services.grocery import GroceryRepository, grocery_names


@dataclass
class SupabaseGroceryRepository(GroceryRepository):
    """Supabase implementation for grocery lists and items."""

    client: Client

    def list_lists(self, user_id: UUID) -> list[GroceryList]:
        """Return lists with their items, newest first."""
        lists_response = (
            self.client.table("grocery_lists")
            .select("id, name, is_active, created_at")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .execute()
        )
        list_rows = lists_response.data or []
        if not list_rows:
            return []
        items_response = (
            self.client.table("grocery_list_items")
            .select("id, list_id, name, checked")
            .in_("list_id", [row["id"] for row in list_rows])
            .order("id", desc=False)
            .execute()
        )
        items_by_list: dict[int, list[GroceryItem]] = {}
        for row in items_response.data or []:
            items_by_list.setdefault(int(row["list_id"]), []).append(_parse_item(row))
        return [
            _parse_list(row, items_by_list.get(int(row["id"]), []))
            for row in list_rows
        ]

    def create_list(self, user_id: UUID, name: str) -> GroceryList:
        """Create an inactive list."""
        response = (
            self.client.table("grocery_lists")
            .insert({"user_id": str(user_id), "name": name, "is_active": False})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create grocery list")
        return _parse_list(response.data[0], [])

    def set_active(self, user_id: UUID, list_id: int) -> None:
        """Deactivate every other list, then activate the chosen one."""
        self.client.table("grocery_lists").update({"is_active": False}).eq(
            "user_id", str(user_id)
        ).neq("id", list_id).execute()
        response = (
            self.client.table("grocery_lists")
            .update({"is_active": True})
            .eq("id", list_id)
            .eq("user_id", str(user_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Grocery list {list_id} not found")

    def add_item(self, user_id: UUID, list_id: int, name: str) -> GroceryItem:
        """Append an unchecked item."""
        response = (
            self.client.table("grocery_list_items")
            .insert(
                {
                    "user_id": str(user_id),
                    "list_id": list_id,
                    "name": name,
                    "checked": False,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to add grocery item")
        return _parse_item(response.data[0])

    def set_checked(self, user_id: UUID, item_id: int, checked: bool) -> GroceryItem:
        """Update an item's checked flag."""
        response = (
            self.client.table("grocery_list_items")
            .update({"checked": checked})
            .eq("id", item_id)
            .eq("user_id", str(user_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update grocery item")
        return _parse_item(response.data[0])

    def remove_item(self, user_id: UUID, item_id: int) -> None:
        """Delete a grocery item."""
        (
            self.client.table("grocery_list_items")
            .delete()
            .eq("id", item_id)
            .eq("user_id", str(user_id))
            .execute()
        )

    def delete_list(self, user_id: UUID, list_id: int) -> None:
        """Delete a list and its items."""
        (
            self.client.table("grocery_list_items")
            .delete()
            .eq("list_id", list_id)
            .eq("user_id", str(user_id))
            .execute()
        )
        (
            self.client.table("grocery_lists")
            .delete()
            .eq("id", list_id)
            .eq("user_id", str(user_id))
            .execute()
        )

    def import_from_plans(
        self, user_id: UUID, list_id: int, plan_ids: list[int]
    ) -> list[GroceryItem]:
        """Insert the sorted, unique ingredient names of the plans' meals."""
        if not plan_ids:
            return []
        plan_items_response = (
            self.client.table("meal_plan_items")
            .select("saved_meal_id")
            .eq("user_id", str(user_id))
            .in_("plan_id", plan_ids)
            .execute()
        )
        meal_ids = sorted(
            {int(row["saved_meal_id"]) for row in plan_items_response.data or []}
        )
        if not meal_ids:
            return []
        meals_response = (
            self.client.table("saved_meals")
            .select("id, meal")
            .eq("user_id", str(user_id))
            .in_("id", meal_ids)
            .execute()
        )
        names = grocery_names(
            parse_nutrition(row.get("meal")) for row in meals_response.data or []
        )
        if not names:
            return []
        response = (
            self.client.table("grocery_list_items")
            .insert(
                [
                    {
                        "user_id": str(user_id),
                        "list_id": list_id,
                        "name": name,
                        "checked": False,
                    }
                    for name in names
                ]
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to import grocery items")
        return [_parse_item(row) for row in response.data]


def _parse_list(row: dict[str, object], items: list[GroceryItem]) -> GroceryList:
    created_raw = row.get("created_at")
    created_at = (
        datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str) and created_raw
        else None
    )
    return GroceryList(
        id=int(row["id"]),
        name=str(row.get("name", "")),
        is_active=bool(row.get("is_active", False)),
        created_at=created_at,
        items=tuple(items),
    )


def _parse_item(row: dict[str, object]) -> GroceryItem:
    return GroceryItem(
        id=int(row["id"]),
        name=str(row.get("name", "")),
        checked=bool(row.get("checked", False)),
    )
