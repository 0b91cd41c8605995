"""Domain models for meal plans."""

from dataclasses import dataclass

from food_capture.domain.nutrition import SavedMeal


@dataclass(frozen=True)
class PlanSlot:
    """Placement of a meal inside a plan."""

    day: str
    slot: str
    portion: float | None = None
    context: str | None = None
    add_to_grocery: bool = False

    def to_metadata(self) -> dict[str, object]:
        """Serialize the slot as plan item metadata."""
        metadata: dict[str, object] = {"day": self.day, "slot": self.slot}
        if self.portion is not None:
            metadata["portion"] = self.portion
        if self.context is not None:
            metadata["context"] = self.context
        if self.add_to_grocery:
            metadata["addToGrocery"] = True
        return metadata


@dataclass(frozen=True)
class MealPlanItem:
    """A saved meal scheduled into one (day, slot) cell."""

    id: int
    meal: SavedMeal
    slot: PlanSlot


@dataclass(frozen=True)
class MealPlan:
    """A named collection of scheduled meals."""

    id: int
    name: str
    items: tuple[MealPlanItem, ...] = ()

    def items_for(self, day: str, slot: str) -> list[MealPlanItem]:
        """Return items placed in a single cell."""
        return [
            item
            for item in self.items
            if item.slot.day == day and item.slot.slot == slot
        ]
