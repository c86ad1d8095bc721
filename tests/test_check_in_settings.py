"""Tests for auto check-in settings."""

from field_runs.domain.check_in import AutoCheckInSettings, settings_from_row
from field_runs.services.check_in_settings import (
    AUTO_CHECK_IN_KEY,
    AutoCheckInSettingsService,
)
from tests.conftest import InMemorySettingsRepository


def test_defaults_when_nothing_saved() -> None:
    service = AutoCheckInSettingsService(InMemorySettingsRepository())

    assert service.get() == AutoCheckInSettings(
        enabled=False, proximity_meters=50, dwell_seconds=30
    )


def test_save_clamps_and_persists() -> None:
    repository = InMemorySettingsRepository()
    service = AutoCheckInSettingsService(repository)

    saved = service.save(
        AutoCheckInSettings(enabled=True, proximity_meters=5, dwell_seconds=600)
    )

    assert saved == AutoCheckInSettings(
        enabled=True, proximity_meters=20, dwell_seconds=120
    )
    assert repository.documents[AUTO_CHECK_IN_KEY] == {
        "enabled": True,
        "proximity_meters": 20,
        "dwell_seconds": 120,
    }
    assert service.get() == saved


def test_settings_from_row_tolerates_garbage() -> None:
    assert settings_from_row(None) == AutoCheckInSettings()
    assert settings_from_row(
        {"enabled": True, "proximity_meters": "abc", "dwell_seconds": float("nan")}
    ) == AutoCheckInSettings(enabled=True)
    assert settings_from_row(
        {"proximity_meters": "75", "dwell_seconds": 12.7}
    ) == AutoCheckInSettings(proximity_meters=75, dwell_seconds=12)
    assert settings_from_row({"proximity_meters": 0}).proximity_meters == 50
