"""User settings service."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_TIMEZONE = "UTC"


class UserSettingsRepository(Protocol):
    """Persistence interface for user settings."""

    def get_timezone(self, user_id: UUID) -> str | None:
        """Return the user's timezone if set."""

    def set_timezone(self, user_id: UUID, timezone: str) -> None:
        """Update the user's timezone."""

    def get_preferences(self, user_id: UUID) -> dict[str, object]:
        """Return stored dietary and display preferences."""


@dataclass
class UserSettingsService:
    """Service for user settings."""

    repository: UserSettingsRepository

    def get_timezone(self, user_id: UUID) -> str:
        """Return the user timezone or UTC if unset or unknown."""
        timezone = self.repository.get_timezone(user_id)
        if not timezone:
            return DEFAULT_TIMEZONE
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            return DEFAULT_TIMEZONE
        return timezone

    def set_timezone(self, user_id: UUID, timezone: str) -> None:
        """Persist a user's timezone after checking it exists."""
        ZoneInfo(timezone)
        self.repository.set_timezone(user_id, timezone)

    def get_preferences(self, user_id: UUID) -> dict[str, object]:
        return self.repository.get_preferences(user_id)
