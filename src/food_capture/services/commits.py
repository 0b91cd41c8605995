"""Persist finished records to one or more destinations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from uuid import UUID

from food_capture.domain.errors import CommitError, Destination
from food_capture.domain.nutrition import HealthMetricsReading, NutritionInfo, SavedMeal
from food_capture.domain.plans import PlanSlot
from food_capture.services.images import NormalizedImage
from food_capture.services.reconcile import LedgerRepositories, Reconciler

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitResult:
    """Outcome of one persistence call."""

    destination: Destination
    value: object | None = None
    error: CommitError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CommitRequest:
    """Destinations chosen for a single user action."""

    log_history: bool = False
    save_to_library: bool = False
    plan_id: int | None = None
    slot: PlanSlot | None = None
    image: NormalizedImage | None = None


@dataclass(frozen=True)
class CommitReport:
    """Per-destination results of a fan-out commit."""

    results: tuple[CommitResult, ...]

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.results)

    @property
    def failures(self) -> list[CommitResult]:
        return [result for result in self.results if not result.ok]

    def result_for(self, destination: Destination) -> CommitResult | None:
        return next(
            (result for result in self.results if result.destination is destination),
            None,
        )


@dataclass
class CommitCoordinator:
    """Write to each destination independently, then refetch.

    A failure is reported for its own destination only and never undoes or
    blocks a write to another destination. Every successful mutation is
    followed by one reconcile; a failing reconcile is logged, not raised.
    """

    user_id: UUID
    repositories: LedgerRepositories
    reconciler: Reconciler

    async def log_to_history(
        self, info: NutritionInfo, image: NormalizedImage | None = None
    ) -> CommitResult:
        """Record a meal as eaten."""
        result = await self._log_history(info, image)
        return await self._finish(result, "history")

    async def save_to_library(self, info: NutritionInfo) -> CommitResult:
        result = await self._save(info)
        return await self._finish(result, "library")

    async def delete_from_library(self, saved_meal_id: int) -> CommitResult:
        result = await self._persist(
            Destination.LIBRARY,
            self.repositories.library.delete_meal,
            self.user_id,
            saved_meal_id,
        )
        return await self._finish(result, "library delete")

    async def add_to_plan(
        self, plan_id: int, meal: SavedMeal | NutritionInfo, slot: PlanSlot
    ) -> CommitResult:
        """Schedule a meal, saving it to the library first when needed.

        When the save fails, the returned result is the library failure and
        the plan is left untouched. When only the plan step fails, the saved
        meal stays in the library.
        """
        results = await self._plan_sequence(plan_id, meal, slot)
        if any(result.ok for result in results):
            await self._reconcile("plan")
        return results[-1]

    async def remove_from_plan(self, item_id: int) -> CommitResult:
        result = await self._persist(
            Destination.PLAN,
            self.repositories.plans.remove_item,
            self.user_id,
            item_id,
        )
        return await self._finish(result, "plan remove")

    async def create_plan(self, name: str) -> CommitResult:
        result = await self._persist(
            Destination.PLAN, self.repositories.plans.create_plan, self.user_id, name
        )
        return await self._finish(result, "plan create")

    async def import_from_plans(
        self, list_id: int, plan_ids: list[int]
    ) -> CommitResult:
        """Add plan ingredients to a grocery list; the store aggregates."""
        result = await self._persist(
            Destination.GROCERY,
            self.repositories.grocery.import_from_plans,
            self.user_id,
            list_id,
            list(plan_ids),
        )
        return await self._finish(result, "grocery import")

    async def create_grocery_list(self, name: str) -> CommitResult:
        result = await self._persist(
            Destination.GROCERY,
            self.repositories.grocery.create_list,
            self.user_id,
            name,
        )
        return await self._finish(result, "grocery create")

    async def set_active_grocery_list(self, list_id: int) -> CommitResult:
        result = await self._persist(
            Destination.GROCERY,
            self.repositories.grocery.set_active,
            self.user_id,
            list_id,
        )
        return await self._finish(result, "grocery activate")

    async def add_grocery_item(self, list_id: int, name: str) -> CommitResult:
        result = await self._persist(
            Destination.GROCERY,
            self.repositories.grocery.add_item,
            self.user_id,
            list_id,
            name,
        )
        return await self._finish(result, "grocery add")

    async def toggle_grocery_item(self, item_id: int, checked: bool) -> CommitResult:
        result = await self._persist(
            Destination.GROCERY,
            self.repositories.grocery.set_checked,
            self.user_id,
            item_id,
            checked,
        )
        return await self._finish(result, "grocery toggle")

    async def remove_grocery_item(self, item_id: int) -> CommitResult:
        result = await self._persist(
            Destination.GROCERY,
            self.repositories.grocery.remove_item,
            self.user_id,
            item_id,
        )
        return await self._finish(result, "grocery remove")

    async def delete_grocery_list(self, list_id: int) -> CommitResult:
        result = await self._persist(
            Destination.GROCERY,
            self.repositories.grocery.delete_list,
            self.user_id,
            list_id,
        )
        return await self._finish(result, "grocery delete")

    async def log_health_metrics(self, reading: HealthMetricsReading) -> CommitResult:
        if reading.is_empty():
            return CommitResult(
                Destination.HEALTH,
                error=CommitError(Destination.HEALTH, "Reading has no metrics"),
            )
        result = await self._persist(
            Destination.HEALTH,
            self.repositories.health.add_reading,
            self.user_id,
            reading,
        )
        return await self._finish(result, "health")

    async def commit(self, info: NutritionInfo, request: CommitRequest) -> CommitReport:
        """Fan one meal out to every requested destination.

        Independent destinations run concurrently; the plan destination runs
        its save-then-add sequence. Reconciles once at the end.
        """
        if request.plan_id is not None and request.slot is None:
            raise ValueError("A plan commit needs a slot")
        branches = []
        if request.log_history:
            branches.append(self._as_list(self._log_history(info, request.image)))
        if request.plan_id is not None and request.slot is not None:
            slot = request.slot
            branches.append(self._plan_sequence(request.plan_id, info, slot))
            if slot.add_to_grocery:
                branches.append(self._add_to_active_grocery_list(info))
        elif request.save_to_library:
            branches.append(self._as_list(self._save(info)))

        outcomes = await asyncio.gather(*branches)
        results = tuple(result for branch in outcomes for result in branch)
        if any(result.ok for result in results):
            await self._reconcile("commit")
        return CommitReport(results=results)

    async def _plan_sequence(
        self, plan_id: int, meal: SavedMeal | NutritionInfo, slot: PlanSlot
    ) -> list[CommitResult]:
        results: list[CommitResult] = []
        if isinstance(meal, NutritionInfo):
            saved = await self._save(meal)
            results.append(saved)
            if not saved.ok:
                _logger.warning("Skipping plan step: library save failed")
                return results
            meal = saved.value
        results.append(
            await self._persist(
                Destination.PLAN,
                self.repositories.plans.add_item,
                self.user_id,
                plan_id,
                meal.id,
                slot,
            )
        )
        return results

    async def _add_to_active_grocery_list(
        self, info: NutritionInfo
    ) -> list[CommitResult]:
        snapshot = self.reconciler.snapshot
        active = snapshot.active_grocery_list if snapshot else None
        if active is None:
            _logger.info("No active grocery list; skipping grocery line")
            return []
        return [
            await self._persist(
                Destination.GROCERY,
                self.repositories.grocery.add_item,
                self.user_id,
                active.id,
                info.meal_name,
            )
        ]

    async def _log_history(
        self, info: NutritionInfo, image: NormalizedImage | None
    ) -> CommitResult:
        return await self._persist(
            Destination.HISTORY,
            self.repositories.history.add_entry,
            self.user_id,
            info,
            image.base64 if image else None,
        )

    async def _save(self, info: NutritionInfo) -> CommitResult:
        return await self._persist(
            Destination.LIBRARY, self.repositories.library.save_meal, self.user_id, info
        )

    async def _persist(
        self, destination: Destination, operation: Callable[..., object], *args: object
    ) -> CommitResult:
        try:
            value = await asyncio.to_thread(operation, *args)
        except Exception as exc:
            _logger.warning(
                "Commit failed: destination=%s error=%s", destination.value, exc
            )
            return CommitResult(destination, error=CommitError(destination, exc))
        return CommitResult(destination, value=value)

    async def _finish(self, result: CommitResult, reason: str) -> CommitResult:
        if result.ok:
            await self._reconcile(reason)
        return result

    async def _reconcile(self, reason: str) -> None:
        try:
            await self.reconciler.reconcile(reason)
        except Exception:
            _logger.exception("Reconcile failed after %s", reason)

    @staticmethod
    async def _as_list(step: Awaitable[CommitResult]) -> list[CommitResult]:
        return [await step]
