"""Reconcile-by-refetch: reload every ledger view from the store."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from food_capture.domain.grocery import GroceryList
from food_capture.domain.nutrition import HealthMetricsEntry, MealLogEntry, SavedMeal
from food_capture.domain.plans import MealPlan
from food_capture.services.grocery import GroceryRepository
from food_capture.services.health import HealthMetricsRepository
from food_capture.services.history import MealHistoryRepository
from food_capture.services.library import SavedMealRepository
from food_capture.services.plans import MealPlanRepository
from food_capture.services.user_settings import UserSettingsService

_logger = logging.getLogger(__name__)


@dataclass
class LedgerRepositories:
    """Every persistent collection the pipeline writes to or reads from."""

    history: MealHistoryRepository
    library: SavedMealRepository
    plans: MealPlanRepository
    grocery: GroceryRepository
    health: HealthMetricsRepository
    user_settings: UserSettingsService


@dataclass(frozen=True)
class LedgerSnapshot:
    """Store-authoritative view of a user's collections."""

    plans: tuple[MealPlan, ...]
    library: tuple[SavedMeal, ...]
    history: tuple[MealLogEntry, ...]
    health: tuple[HealthMetricsEntry, ...]
    grocery_lists: tuple[GroceryList, ...]
    preferences: dict[str, object]
    reconciled_at: datetime

    @property
    def active_grocery_list(self) -> GroceryList | None:
        return next((item for item in self.grocery_lists if item.is_active), None)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class Reconciler:
    """Refetch all views after a mutation instead of patching them locally."""

    user_id: UUID
    repositories: LedgerRepositories
    history_limit: int = 50
    clock: Callable[[], datetime] = _utc_now
    snapshot: LedgerSnapshot | None = field(default=None, init=False)
    reconcile_count: int = field(default=0, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    async def reconcile(self, reason: str) -> LedgerSnapshot:
        """Reload every collection concurrently and store the snapshot.

        Calls run one at a time, so a refetch that started before a write
        can never replace the snapshot taken after it.
        """
        async with self._lock:
            return await self._refetch(reason)

    async def _refetch(self, reason: str) -> LedgerSnapshot:
        repos = self.repositories
        plans, library, history, health, grocery_lists, preferences = (
            await asyncio.gather(
                asyncio.to_thread(repos.plans.list_plans, self.user_id),
                asyncio.to_thread(repos.library.list_meals, self.user_id),
                asyncio.to_thread(
                    repos.history.list_entries, self.user_id, self.history_limit
                ),
                asyncio.to_thread(
                    repos.health.list_readings, self.user_id, self.history_limit
                ),
                asyncio.to_thread(repos.grocery.list_lists, self.user_id),
                asyncio.to_thread(repos.user_settings.get_preferences, self.user_id),
            )
        )
        self.snapshot = LedgerSnapshot(
            plans=tuple(plans),
            library=tuple(library),
            history=tuple(history),
            health=tuple(health),
            grocery_lists=tuple(grocery_lists),
            preferences=dict(preferences),
            reconciled_at=self.clock(),
        )
        self.reconcile_count += 1
        _logger.info("Reconciled ledger: user=%s reason=%s", self.user_id, reason)
        return self.snapshot
