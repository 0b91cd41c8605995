"""Persistence interface for health metrics readings."""

from typing import Protocol
from uuid import UUID

from food_capture.domain.nutrition import HealthMetricsEntry, HealthMetricsReading


class HealthMetricsRepository(Protocol):
    """Ledger of health metrics read from vitals screenshots."""

    def add_reading(
        self, user_id: UUID, reading: HealthMetricsReading
    ) -> HealthMetricsEntry:
        """Insert a reading; the store assigns id and timestamp."""

    def list_readings(self, user_id: UUID, limit: int) -> list[HealthMetricsEntry]:
        """Return the most recent readings, newest first."""
