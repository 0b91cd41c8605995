"""Supabase repository for health metrics readings."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from food_capture.domain.nutrition import HealthMetricsEntry, HealthMetricsReading
from food_capture.domain.payloads import HealthMetricsExtract, health_metrics_payload
from food_capture.services.health import HealthMetricsRepository

_METRIC_COLUMNS = (
    "steps, active_calories, resting_calories, sleep_minutes, hrv, "
    "resting_heart_rate, source_note"
)


@dataclass
class SupabaseHealthMetricsRepository(HealthMetricsRepository):
    """Supabase implementation for health metrics."""

    client: Client

    def add_reading(
        self, user_id: UUID, reading: HealthMetricsReading
    ) -> HealthMetricsEntry:
        """Insert a reading row and return it."""
        response = (
            self.client.table("health_metrics")
            .insert({"user_id": str(user_id), **health_metrics_payload(reading)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to record health metrics")
        return _parse_entry(response.data[0])

    def list_readings(self, user_id: UUID, limit: int) -> list[HealthMetricsEntry]:
        """Return recent readings, newest first."""
        response = (
            self.client.table("health_metrics")
            .select(f"id, recorded_at, {_METRIC_COLUMNS}")
            .eq("user_id", str(user_id))
            .order("recorded_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]


def _parse_entry(row: dict[str, object]) -> HealthMetricsEntry:
    reading = HealthMetricsExtract.model_validate(row).to_domain()
    return HealthMetricsEntry(
        id=int(row["id"]),
        recorded_at=datetime.fromisoformat(str(row["recorded_at"])),
        reading=reading,
    )
