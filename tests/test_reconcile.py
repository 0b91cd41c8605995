"""Tests for reconcile-by-refetch."""

import asyncio
import threading
from dataclasses import dataclass, field, replace
from uuid import UUID

from food_capture.domain.nutrition import SavedMeal
from food_capture.services.commits import CommitCoordinator
from food_capture.services.reconcile import Reconciler
from tests.conftest import (
    FakeClock,
    InMemorySavedMealRepository,
    InMemoryStore,
    chicken_salad,
)


@dataclass
class StalledLibraryRepository(InMemorySavedMealRepository):
    """Library whose first listing is held back after it has been read."""

    read_done: threading.Event = field(default_factory=threading.Event)
    resume: threading.Event = field(default_factory=threading.Event)
    listings: int = 0

    def list_meals(self, user_id: UUID) -> list[SavedMeal]:
        self.listings += 1
        meals = super().list_meals(user_id)
        if self.listings == 1:
            self.read_done.set()
            self.resume.wait(timeout=5)
        return meals


def test_reconcile_refetches_every_collection(
    store: InMemoryStore, user_id: UUID
) -> None:
    clock = FakeClock()
    store.history.add_entry(user_id, chicken_salad(), None)
    store.library.save_meal(user_id, chicken_salad())
    store.plans.create_plan(user_id, "Week 1")
    grocery_list = store.grocery.create_list(user_id, "Groceries")
    store.grocery.set_active(user_id, grocery_list.id)
    store.user_settings.preferences[user_id] = {"diet": "vegetarian"}
    reconciler = Reconciler(
        user_id=user_id, repositories=store.repositories(), clock=clock
    )

    snapshot = asyncio.run(reconciler.reconcile("test"))

    assert len(snapshot.history) == 1
    assert len(snapshot.library) == 1
    assert snapshot.plans[0].name == "Week 1"
    assert snapshot.active_grocery_list.name == "Groceries"
    assert snapshot.preferences == {"diet": "vegetarian"}
    assert snapshot.reconciled_at == clock.now
    assert reconciler.snapshot is snapshot


def test_reconcile_replaces_previous_snapshot(
    store: InMemoryStore, user_id: UUID
) -> None:
    reconciler = Reconciler(user_id=user_id, repositories=store.repositories())

    first = asyncio.run(reconciler.reconcile("first"))
    store.library.save_meal(user_id, chicken_salad())
    second = asyncio.run(reconciler.reconcile("second"))

    assert first.library == ()
    assert len(second.library) == 1
    assert reconciler.reconcile_count == 2


def test_rollover_refetch_overlapping_a_save_keeps_the_saved_meal(
    store: InMemoryStore, user_id: UUID
) -> None:
    library = StalledLibraryRepository()
    repositories = replace(store.repositories(), library=library)
    reconciler = Reconciler(user_id=user_id, repositories=repositories)
    coordinator = CommitCoordinator(
        user_id=user_id, repositories=repositories, reconciler=reconciler
    )

    async def run() -> None:
        rollover = asyncio.create_task(reconciler.reconcile("day rollover"))
        await asyncio.to_thread(library.read_done.wait, 5)
        save = asyncio.create_task(coordinator.save_to_library(chicken_salad()))
        await asyncio.sleep(0.05)
        library.resume.set()

        saved = await save
        stale = await rollover

        assert saved.ok
        assert stale.library == ()

    asyncio.run(run())

    assert len(library.meals) == 1
    assert len(reconciler.snapshot.library) == 1
    assert reconciler.reconcile_count == 2
