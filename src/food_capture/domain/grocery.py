"""Domain models for grocery lists."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class GroceryItem:
    """A single line on a grocery list."""

    id: int
    name: str
    checked: bool


@dataclass(frozen=True)
class GroceryList:
    """A shopping list owned by the user."""

    id: int
    name: str
    is_active: bool
    created_at: datetime | None
    items: tuple[GroceryItem, ...] = ()
