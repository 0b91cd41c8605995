"""Shared test fixtures."""

import io
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest
from PIL import Image

from food_capture.config import Settings
from food_capture.domain.errors import CaptureError
from food_capture.domain.grocery import GroceryItem, GroceryList
from food_capture.domain.nutrition import (
    HealthMetricsEntry,
    HealthMetricsReading,
    Ingredient,
    MealLogEntry,
    NutritionInfo,
    SavedMeal,
)
from food_capture.domain.plans import MealPlan, MealPlanItem, PlanSlot
from food_capture.services.analysis import AnalysisClient, AnalysisRouter
from food_capture.services.cache import InMemoryCache
from food_capture.services.grocery import GroceryRepository
from food_capture.services.health import HealthMetricsRepository
from food_capture.services.history import MealHistoryRepository
from food_capture.services.library import SavedMealRepository
from food_capture.services.plans import MealPlanRepository
from food_capture.services.products import ProductLookupClient, ProductLookupService
from food_capture.services.reconcile import LedgerRepositories
from food_capture.services.user_settings import (
    UserSettingsRepository,
    UserSettingsService,
)

BASE_TIME = datetime(2026, 3, 14, 12, 0, tzinfo=UTC)


def make_image_bytes(
    width: int = 64, height: int = 48, mode: str = "RGB", fmt: str = "PNG"
) -> bytes:
    """Encode a solid-colour test image."""
    color: tuple[int, ...] = (200, 80, 40, 128) if mode == "RGBA" else (200, 80, 40)
    image = Image.new(mode, (width, height), color)
    output = io.BytesIO()
    image.save(output, format=fmt)
    return output.getvalue()


def chicken_salad() -> NutritionInfo:
    """Analyzed meal used across pipeline tests."""
    return NutritionInfo(
        meal_name="Chicken salad",
        ingredients=(
            Ingredient(
                name="Grilled chicken",
                weight_grams=150.0,
                calories=250.0,
                protein=46.5,
                carbs=0.0,
                fat=5.4,
                sodium=110.0,
            ),
            Ingredient(
                name="Lettuce",
                weight_grams=50.0,
                calories=20.0,
                protein=0.7,
                carbs=1.5,
                fat=0.1,
                fiber=0.6,
            ),
            Ingredient(
                name="Dressing",
                weight_grams=30.0,
                calories=150.0,
                protein=0.3,
                carbs=1.8,
                fat=16.0,
            ),
        ),
        insight="High in protein.",
    )


def meal_payload() -> dict[str, object]:
    """Analysis output matching the meal schema."""
    return {
        "meal_name": "Chicken salad",
        "ingredients": [
            {
                "name": "Grilled chicken",
                "weight_grams": 150,
                "calories": 250,
                "protein": 46.5,
                "carbs": 0,
                "fat": 5.4,
                "sugar": None,
                "fiber": None,
                "sodium": 110,
                "potassium": None,
                "magnesium": None,
                "vitamin_d": None,
                "calcium": None,
            }
        ],
        "allergens": [],
        "insight": "High in protein.",
    }


def recipes_payload() -> dict[str, object]:
    return {
        "recipes": [
            {
                "recipe_name": "Tomato omelette",
                "description": "Eggs with tomato.",
                "ingredients": [
                    {"name": "Eggs", "quantity": "2"},
                    {"name": "Tomato", "quantity": "1"},
                ],
                "instructions": ["Beat eggs", "Cook with tomato"],
                "nutrition": {
                    "total_calories": 210,
                    "total_protein": 13,
                    "total_carbs": 5,
                    "total_fat": 15,
                },
            }
        ]
    }


def vitals_payload() -> dict[str, object]:
    return {
        "steps": 8450,
        "active_calories": 420.0,
        "resting_calories": None,
        "sleep_minutes": 431,
        "hrv": None,
        "resting_heart_rate": 58.0,
        "source_note": "Health app summary",
    }


def off_product() -> dict[str, object]:
    return {
        "product_name": "Greek Yogurt",
        "serving_quantity": 150,
        "nutriments": {
            "energy-kcal_100g": 97,
            "proteins_100g": 9,
            "carbohydrates_100g": 3.6,
            "fat_100g": 5,
            "sugars_100g": 3.6,
            "salt_100g": 0.1,
        },
        "image_front_url": "https://images.example/yogurt.jpg",
        "nutriscore_grade": "b",
        "allergens_tags": ["en:milk"],
    }


class FakeClock:
    """Settable clock for time-dependent services."""

    def __init__(self, now: datetime = BASE_TIME) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass
class FakeCameraStream:
    """Camera stream returning a fixed frame."""

    frame: bytes
    read_error: Exception | None = None
    closed: bool = False
    reads: int = 0

    async def read_frame(self) -> bytes:
        self.reads += 1
        if self.read_error is not None:
            raise self.read_error
        return self.frame

    async def close(self) -> None:
        self.closed = True


@dataclass
class FakeCameraProvider:
    """Camera provider that records every stream it hands out."""

    frame: bytes = field(default_factory=make_image_bytes)
    error: CaptureError | None = None
    read_error: Exception | None = None
    streams: list[FakeCameraStream] = field(default_factory=list)
    open_attempts: int = 0

    async def open(self) -> FakeCameraStream:
        self.open_attempts += 1
        if self.error is not None:
            raise self.error
        stream = FakeCameraStream(frame=self.frame, read_error=self.read_error)
        self.streams.append(stream)
        return stream

    @property
    def open_streams(self) -> list[FakeCameraStream]:
        return [stream for stream in self.streams if not stream.closed]


@dataclass
class FakeAnalysisClient(AnalysisClient):
    """Fake analysis client returning a payload per schema name."""

    payloads: dict[str, dict[str, object]] = field(
        default_factory=lambda: {
            "nutrition_info": meal_payload(),
            "recipes": recipes_payload(),
            "health_metrics": vitals_payload(),
        }
    )
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def analyze(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
        image_data_url: str | None,
    ) -> dict[str, object]:
        self.calls.append(
            {
                "prompt": prompt,
                "schema_name": schema_name,
                "image_data_url": image_data_url,
            }
        )
        if self.error is not None:
            raise self.error
        return self.payloads[schema_name]


@dataclass
class FakeProductClient(ProductLookupClient):
    """Fake product database keyed by barcode."""

    products: dict[str, dict[str, object]] = field(
        default_factory=lambda: {"5201054017807": off_product()}
    )
    lookups: list[str] = field(default_factory=list)

    async def get_product(self, code: str) -> dict[str, object] | None:
        self.lookups.append(code)
        return self.products.get(code)


@dataclass
class _FailureSwitch:
    failing: bool = False

    def check(self, operation: str) -> None:
        if self.failing:
            raise RuntimeError(f"Store unavailable during {operation}")


@dataclass
class InMemoryMealHistoryRepository(_FailureSwitch, MealHistoryRepository):
    """In-memory meal history for tests."""

    entries: list[MealLogEntry] = field(default_factory=list)
    images: dict[int, str] = field(default_factory=dict)

    def add_entry(
        self, user_id: UUID, meal: NutritionInfo, image_base64: str | None
    ) -> MealLogEntry:
        self.check("add_entry")
        entry = MealLogEntry(
            id=len(self.entries) + 1,
            created_at=BASE_TIME,
            meal=meal,
            has_image=image_base64 is not None,
        )
        if image_base64 is not None:
            self.images[entry.id] = image_base64
        self.entries.append(entry)
        return entry

    def list_entries(self, user_id: UUID, limit: int) -> list[MealLogEntry]:
        return list(reversed(self.entries))[:limit]


@dataclass
class InMemorySavedMealRepository(_FailureSwitch, SavedMealRepository):
    """In-memory saved meal library for tests."""

    meals: dict[int, SavedMeal] = field(default_factory=dict)
    next_id: int = 1

    def save_meal(self, user_id: UUID, meal: NutritionInfo) -> SavedMeal:
        self.check("save_meal")
        saved = SavedMeal(id=self.next_id, meal=meal)
        self.meals[saved.id] = saved
        self.next_id += 1
        return saved

    def delete_meal(self, user_id: UUID, saved_meal_id: int) -> None:
        self.check("delete_meal")
        self.meals.pop(saved_meal_id, None)

    def list_meals(self, user_id: UUID) -> list[SavedMeal]:
        return list(self.meals.values())


@dataclass
class InMemoryMealPlanRepository(_FailureSwitch, MealPlanRepository):
    """In-memory meal plans resolving meals through the library."""

    library: InMemorySavedMealRepository = field(
        default_factory=InMemorySavedMealRepository
    )
    plans: dict[int, MealPlan] = field(default_factory=dict)
    next_item_id: int = 1

    def list_plans(self, user_id: UUID) -> list[MealPlan]:
        return list(self.plans.values())

    def create_plan(self, user_id: UUID, name: str) -> MealPlan:
        self.check("create_plan")
        plan = MealPlan(id=len(self.plans) + 1, name=name)
        self.plans[plan.id] = plan
        return plan

    def add_item(
        self, user_id: UUID, plan_id: int, saved_meal_id: int, slot: PlanSlot
    ) -> MealPlanItem:
        self.check("add_item")
        plan = self.plans[plan_id]
        item = MealPlanItem(
            id=self.next_item_id, meal=self.library.meals[saved_meal_id], slot=slot
        )
        self.next_item_id += 1
        self.plans[plan_id] = replace(plan, items=(*plan.items, item))
        return item

    def remove_item(self, user_id: UUID, item_id: int) -> None:
        self.check("remove_item")
        for plan_id, plan in self.plans.items():
            items = tuple(item for item in plan.items if item.id != item_id)
            self.plans[plan_id] = replace(plan, items=items)


@dataclass
class InMemoryGroceryRepository(_FailureSwitch, GroceryRepository):
    """In-memory grocery lists for tests."""

    lists: dict[int, GroceryList] = field(default_factory=dict)
    next_item_id: int = 1
    imports: list[tuple[int, list[int]]] = field(default_factory=list)

    def list_lists(self, user_id: UUID) -> list[GroceryList]:
        return list(self.lists.values())

    def create_list(self, user_id: UUID, name: str) -> GroceryList:
        self.check("create_list")
        grocery_list = GroceryList(
            id=len(self.lists) + 1, name=name, is_active=False, created_at=BASE_TIME
        )
        self.lists[grocery_list.id] = grocery_list
        return grocery_list

    def set_active(self, user_id: UUID, list_id: int) -> None:
        self.check("set_active")
        if list_id not in self.lists:
            raise RuntimeError(f"Grocery list {list_id} not found")
        for key, grocery_list in self.lists.items():
            self.lists[key] = replace(grocery_list, is_active=key == list_id)

    def add_item(self, user_id: UUID, list_id: int, name: str) -> GroceryItem:
        self.check("add_item")
        item = GroceryItem(id=self.next_item_id, name=name, checked=False)
        self.next_item_id += 1
        grocery_list = self.lists[list_id]
        self.lists[list_id] = replace(grocery_list, items=(*grocery_list.items, item))
        return item

    def set_checked(self, user_id: UUID, item_id: int, checked: bool) -> GroceryItem:
        self.check("set_checked")
        for key, grocery_list in self.lists.items():
            for item in grocery_list.items:
                if item.id == item_id:
                    updated = replace(item, checked=checked)
                    items = tuple(
                        updated if entry.id == item_id else entry
                        for entry in grocery_list.items
                    )
                    self.lists[key] = replace(grocery_list, items=items)
                    return updated
        raise RuntimeError(f"Grocery item {item_id} not found")

    def remove_item(self, user_id: UUID, item_id: int) -> None:
        self.check("remove_item")
        for key, grocery_list in self.lists.items():
            items = tuple(item for item in grocery_list.items if item.id != item_id)
            self.lists[key] = replace(grocery_list, items=items)

    def delete_list(self, user_id: UUID, list_id: int) -> None:
        self.check("delete_list")
        self.lists.pop(list_id, None)

    def import_from_plans(
        self, user_id: UUID, list_id: int, plan_ids: list[int]
    ) -> list[GroceryItem]:
        self.check("import_from_plans")
        self.imports.append((list_id, plan_ids))
        return []


@dataclass
class InMemoryHealthMetricsRepository(_FailureSwitch, HealthMetricsRepository):
    """In-memory health metrics ledger for tests."""

    entries: list[HealthMetricsEntry] = field(default_factory=list)

    def add_reading(
        self, user_id: UUID, reading: HealthMetricsReading
    ) -> HealthMetricsEntry:
        self.check("add_reading")
        entry = HealthMetricsEntry(
            id=len(self.entries) + 1, recorded_at=BASE_TIME, reading=reading
        )
        self.entries.append(entry)
        return entry

    def list_readings(self, user_id: UUID, limit: int) -> list[HealthMetricsEntry]:
        return list(reversed(self.entries))[:limit]


@dataclass
class InMemoryUserSettingsRepository(_FailureSwitch, UserSettingsRepository):
    """In-memory user settings for tests."""

    timezones: dict[UUID, str] = field(default_factory=dict)
    preferences: dict[UUID, dict[str, object]] = field(default_factory=dict)

    def get_timezone(self, user_id: UUID) -> str | None:
        return self.timezones.get(user_id)

    def set_timezone(self, user_id: UUID, timezone: str) -> None:
        self.timezones[user_id] = timezone

    def get_preferences(self, user_id: UUID) -> dict[str, object]:
        self.check("get_preferences")
        return self.preferences.get(user_id, {})


@dataclass
class InMemoryStore:
    """Every in-memory repository, wired the way the container wires Supabase."""

    history: InMemoryMealHistoryRepository
    library: InMemorySavedMealRepository
    plans: InMemoryMealPlanRepository
    grocery: InMemoryGroceryRepository
    health: InMemoryHealthMetricsRepository
    user_settings: InMemoryUserSettingsRepository

    @classmethod
    def create(cls) -> "InMemoryStore":
        library = InMemorySavedMealRepository()
        return cls(
            history=InMemoryMealHistoryRepository(),
            library=library,
            plans=InMemoryMealPlanRepository(library=library),
            grocery=InMemoryGroceryRepository(),
            health=InMemoryHealthMetricsRepository(),
            user_settings=InMemoryUserSettingsRepository(),
        )

    def repositories(self) -> LedgerRepositories:
        return LedgerRepositories(
            history=self.history,
            library=self.library,
            plans=self.plans,
            grocery=self.grocery,
            health=self.health,
            user_settings=UserSettingsService(self.user_settings),
        )


def build_router(
    client: FakeAnalysisClient | None = None,
    products: FakeProductClient | None = None,
) -> AnalysisRouter:
    return AnalysisRouter(
        client=client or FakeAnalysisClient(),
        products=ProductLookupService(
            client=products or FakeProductClient(), cache=InMemoryCache()
        ),
        model="gpt-5.2",
        reasoning_effort=None,
        store=False,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        openai_api_key="openai-key",
    )


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore.create()


@pytest.fixture
def analysis_client() -> FakeAnalysisClient:
    return FakeAnalysisClient()


@pytest.fixture
def product_client() -> FakeProductClient:
    return FakeProductClient()


@pytest.fixture
def router(
    analysis_client: FakeAnalysisClient, product_client: FakeProductClient
) -> AnalysisRouter:
    return build_router(analysis_client, product_client)


@pytest.fixture
def camera() -> FakeCameraProvider:
    return FakeCameraProvider()
