"""Auto check-in settings service."""

from dataclasses import asdict, dataclass
from typing import Protocol

from field_runs.domain.check_in import AutoCheckInSettings, settings_from_row

AUTO_CHECK_IN_KEY = "auto_check_in"


class SettingsRepository(Protocol):
    """Persistence interface for single-slot settings documents."""

    def get_settings(self, key: str) -> dict[str, object] | None:
        """Return the stored document for a key, if present."""

    def put_settings(self, key: str, payload: dict[str, object]) -> None:
        """Insert or overwrite the document for a key."""


@dataclass
class AutoCheckInSettingsService:
    """Reads and writes clamped auto check-in settings."""

    repository: SettingsRepository

    def get(self) -> AutoCheckInSettings:
        """Return stored settings, or defaults when none are saved."""
        return settings_from_row(self.repository.get_settings(AUTO_CHECK_IN_KEY))

    def save(self, settings: AutoCheckInSettings) -> AutoCheckInSettings:
        """Persist settings after clamping them into range."""
        clamped = settings.clamped()
        self.repository.put_settings(AUTO_CHECK_IN_KEY, asdict(clamped))
        return clamped
