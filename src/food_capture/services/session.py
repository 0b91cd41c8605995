"""Per-user pipeline context with explicit start and end."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from food_capture.domain.nutrition import HealthMetricsReading, NutritionInfo, Recipe
from food_capture.services.analysis import AnalysisRouter, CaptureMode
from food_capture.services.capture import (
    AnalysisOutcome,
    CameraProvider,
    CaptureController,
    Closed,
)
from food_capture.services.commits import CommitCoordinator, CommitResult
from food_capture.services.day_boundary import (
    DEFAULT_INTERVAL_SECONDS,
    DayBoundaryMonitor,
)
from food_capture.services.images import DEFAULT_MAX_DIMENSION, DEFAULT_QUALITY
from food_capture.services.ledger import (
    DEFAULT_MAX_WEIGHT_G,
    DEFAULT_MIN_WEIGHT_G,
    NutritionLedger,
)
from food_capture.services.reconcile import (
    LedgerRepositories,
    LedgerSnapshot,
    Reconciler,
)

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class ProcessedCapture:
    """What the pipeline did with a finished capture."""

    outcome: AnalysisOutcome
    ledger: NutritionLedger | None = None
    recipes: tuple[Recipe, ...] = ()
    commit: CommitResult | None = None


@dataclass
class UserSession:
    """Own the reconciler, commit coordinator, day monitor and captures of one user.

    Nothing here is process-global: ending the session stops the day monitor
    and closes every capture it opened, releasing any camera stream.
    """

    user_id: UUID
    camera: CameraProvider
    router: AnalysisRouter
    repositories: LedgerRepositories
    image_max_dimension: int = DEFAULT_MAX_DIMENSION
    image_quality: float = DEFAULT_QUALITY
    min_weight_g: float = DEFAULT_MIN_WEIGHT_G
    max_weight_g: float = DEFAULT_MAX_WEIGHT_G
    day_check_interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    clock: Callable[[], datetime] = _utc_now
    reconciler: Reconciler = field(init=False)
    commits: CommitCoordinator = field(init=False)
    monitor: DayBoundaryMonitor | None = field(default=None, init=False)
    _captures: list[CaptureController] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self.reconciler = Reconciler(
            user_id=self.user_id, repositories=self.repositories, clock=self.clock
        )
        self.commits = CommitCoordinator(
            user_id=self.user_id,
            repositories=self.repositories,
            reconciler=self.reconciler,
        )

    @property
    def captures(self) -> tuple[CaptureController, ...]:
        return tuple(self._captures)

    async def __aenter__(self) -> "UserSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.end()

    async def start(self) -> LedgerSnapshot:
        """Load every view and begin watching for day rollovers."""
        snapshot = await self.reconciler.reconcile("session start")
        timezone = await asyncio.to_thread(
            self.repositories.user_settings.get_timezone, self.user_id
        )
        self.monitor = DayBoundaryMonitor(
            on_rollover=self._on_rollover,
            timezone=timezone,
            interval_seconds=self.day_check_interval_seconds,
            clock=self.clock,
        )
        self.monitor.start()
        _logger.info("Session started: user=%s timezone=%s", self.user_id, timezone)
        return snapshot

    async def end(self) -> None:
        if self.monitor is not None:
            await self.monitor.stop()
            self.monitor = None
        captures, self._captures = self._captures, []
        for controller in captures:
            await controller.close()
        _logger.info("Session ended: user=%s", self.user_id)

    async def new_capture(
        self, mode: CaptureMode = CaptureMode.MEAL_PHOTO
    ) -> CaptureController:
        """Open a capture in the given mode, tied to this session."""
        controller = CaptureController(
            camera=self.camera,
            router=self.router,
            max_dimension=self.image_max_dimension,
            quality=self.image_quality,
        )
        self._captures = [
            capture
            for capture in self._captures
            if not isinstance(capture.state, Closed)
        ]
        self._captures.append(controller)
        await controller.open(mode)
        return controller

    async def process(self, outcome: AnalysisOutcome) -> ProcessedCapture:
        """Route a successful analysis to its next step.

        Meals are logged to history and returned in an editable ledger, recipes
        are returned for the user to pick from, and health readings are
        committed to their own ledger. A failed analysis re-raises its error.
        """
        if outcome.error is not None:
            raise outcome.error
        result = outcome.result
        if isinstance(result, NutritionInfo):
            logged = await self.commits.log_to_history(result, outcome.image)
            ledger = NutritionLedger(
                baseline=result,
                min_weight_g=self.min_weight_g,
                max_weight_g=self.max_weight_g,
            )
            return ProcessedCapture(outcome=outcome, ledger=ledger, commit=logged)
        if isinstance(result, HealthMetricsReading):
            committed = await self.commits.log_health_metrics(result)
            return ProcessedCapture(outcome=outcome, commit=committed)
        if isinstance(result, list):
            return ProcessedCapture(outcome=outcome, recipes=tuple(result))
        raise TypeError(f"Unsupported analysis result: {type(result).__name__}")

    async def _on_rollover(self) -> None:
        await self.reconciler.reconcile("day rollover")
