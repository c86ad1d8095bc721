"""Auto check-in settings."""

import math
from dataclasses import dataclass

MIN_PROXIMITY_M = 20
MAX_PROXIMITY_M = 200
DEFAULT_PROXIMITY_M = 50
MIN_DWELL_S = 5
MAX_DWELL_S = 120
DEFAULT_DWELL_S = 30


@dataclass(frozen=True)
class AutoCheckInSettings:
    """User-tunable parameters for proximity check-in."""

    enabled: bool = False
    proximity_meters: int = DEFAULT_PROXIMITY_M
    dwell_seconds: int = DEFAULT_DWELL_S

    def clamped(self) -> "AutoCheckInSettings":
        """Return a copy with values forced into their allowed ranges."""
        return AutoCheckInSettings(
            enabled=bool(self.enabled),
            proximity_meters=_clamp(
                self.proximity_meters, MIN_PROXIMITY_M, MAX_PROXIMITY_M
            ),
            dwell_seconds=_clamp(self.dwell_seconds, MIN_DWELL_S, MAX_DWELL_S),
        )


def settings_from_row(row: dict[str, object] | None) -> AutoCheckInSettings:
    """Build settings from a persisted row, falling back to defaults."""
    if not isinstance(row, dict):
        return AutoCheckInSettings()
    return AutoCheckInSettings(
        enabled=bool(row.get("enabled", False)),
        proximity_meters=_as_int(row.get("proximity_meters"), DEFAULT_PROXIMITY_M),
        dwell_seconds=_as_int(row.get("dwell_seconds"), DEFAULT_DWELL_S),
    ).clamped()


def _as_int(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int | float) and math.isfinite(value) and value:
        return int(value)
    if isinstance(value, str):
        try:
            parsed = int(float(value))
        except ValueError:
            return default
        return parsed or default
    return default


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, int(value)))
