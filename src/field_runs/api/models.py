"""Pydantic models for the field run API."""

from pydantic import BaseModel, Field


class StartSessionRequest(BaseModel):
    """Selects a run to operate; null clears the selection."""

    run_id: str | None = None


class MarkVisitedRequest(BaseModel):
    """Optional ledger id to reuse when marking a stop."""

    visit_id: str | None = None


class PositionFixRequest(BaseModel):
    """GPS fix pushed by the device."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: float | None = Field(default=None, ge=0)
    speed: float | None = None


class DisruptionRequest(BaseModel):
    """Reference point for disruption suggestions."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class SensorUnavailableRequest(BaseModel):
    reason: str = ""


class AutoCheckInSettingsPayload(BaseModel):
    """Auto check-in settings; out-of-range values are clamped on save."""

    enabled: bool = False
    proximity_meters: int = 50
    dwell_seconds: int = 30
