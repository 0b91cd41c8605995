"""Dependency container wiring for the pipeline."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from uuid import UUID

from supabase import create_client

from food_capture.adapters.openai_analysis_client import OpenAIAnalysisClient
from food_capture.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient
from food_capture.adapters.supabase_grocery_repository import SupabaseGroceryRepository
from food_capture.adapters.supabase_health_repository import (
    SupabaseHealthMetricsRepository,
)
from food_capture.adapters.supabase_history_repository import (
    SupabaseMealHistoryRepository,
)
from food_capture.adapters.supabase_library_repository import (
    SupabaseSavedMealRepository,
)
from food_capture.adapters.supabase_plan_repository import SupabaseMealPlanRepository
from food_capture.adapters.supabase_user_settings_repository import (
    SupabaseUserSettingsRepository,
)
from food_capture.config import Settings
from food_capture.services.analysis import AnalysisRouter
from food_capture.services.cache import InMemoryCache
from food_capture.services.capture import CameraProvider
from food_capture.services.products import ProductLookupService
from food_capture.services.reconcile import LedgerRepositories
from food_capture.services.session import UserSession
from food_capture.services.user_settings import UserSettingsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    repositories: LedgerRepositories
    product_service: ProductLookupService
    analysis_router: AnalysisRouter
    close_resources: Callable[[], Awaitable[None]]

    def start_session(self, user_id: UUID, camera: CameraProvider) -> UserSession:
        """Create a session for one user; call start() or use it with async with."""
        return UserSession(
            user_id=user_id,
            camera=camera,
            router=self.analysis_router,
            repositories=self.repositories,
            image_max_dimension=self.settings.image_max_dimension,
            image_quality=self.settings.image_quality,
            min_weight_g=self.settings.min_weight_g,
            max_weight_g=self.settings.max_weight_g,
            day_check_interval_seconds=self.settings.day_check_interval_seconds,
        )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    repositories = LedgerRepositories(
        history=SupabaseMealHistoryRepository(supabase_client),
        library=SupabaseSavedMealRepository(supabase_client),
        plans=SupabaseMealPlanRepository(supabase_client),
        grocery=SupabaseGroceryRepository(supabase_client),
        health=SupabaseHealthMetricsRepository(supabase_client),
        user_settings=UserSettingsService(
            SupabaseUserSettingsRepository(supabase_client)
        ),
    )
    openai_client = OpenAIAnalysisClient.create(resolved_settings.openai_api_key)
    off_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.off_base_url,
        user_agent=resolved_settings.off_user_agent,
    )
    product_service = ProductLookupService(
        client=off_client,
        cache=InMemoryCache(),
        ttl_seconds=resolved_settings.product_cache_ttl_seconds,
        debug=resolved_settings.debug_logging,
    )
    analysis_router = AnalysisRouter(
        client=openai_client,
        products=product_service,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )

    async def close_resources() -> None:
        await off_client.close()
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        repositories=repositories,
        product_service=product_service,
        analysis_router=analysis_router,
        close_resources=close_resources,
    )
