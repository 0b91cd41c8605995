"""Periodic check that triggers a refetch when the local date changes."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

DEFAULT_INTERVAL_SECONDS = 60.0

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class DayBoundaryMonitor:
    """Call on_rollover exactly once for every change of the local date."""

    on_rollover: Callable[[], Awaitable[object]]
    timezone: str = "UTC"
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    clock: Callable[[], datetime] = _utc_now
    _last_date: date | None = field(default=None, init=False)
    _task: asyncio.Task[None] | None = field(default=None, init=False)
    _stopped: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._zone = ZoneInfo(self.timezone)

    @property
    def last_date(self) -> date | None:
        return self._last_date

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def current_date(self) -> date:
        return self.clock().astimezone(self._zone).date()

    def start(self) -> None:
        """Record today's date and begin periodic checks."""
        if self.running:
            return
        self._stopped = False
        self._last_date = self.current_date()
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Cancel the periodic check; later checks never fire."""
        self._stopped = True
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def check(self) -> bool:
        """Compare dates once; return True when a rollover fired."""
        if self._stopped:
            return False
        today = self.current_date()
        if self._last_date is None:
            self._last_date = today
            return False
        if today == self._last_date:
            return False
        previous, self._last_date = self._last_date, today
        _logger.info("Day rollover: %s -> %s", previous, today)
        try:
            await self.on_rollover()
        except Exception:
            _logger.exception("Day rollover handler failed")
        return True

    async def _run(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self.interval_seconds)
            await self.check()
