"""Domain models for completed runs."""

from dataclasses import dataclass
from datetime import datetime

from field_runs.domain.locations import Location

MINUTES_PER_HOUR = 60


@dataclass(frozen=True)
class RunCompletion:
    """Immutable history entry written when a run attempt finishes."""

    id: str
    run_id: str
    run_name: str
    visited_count: int
    total_count: int
    completed_at: datetime
    duration_minutes: int | None = None


@dataclass(frozen=True)
class RunDetail:
    """A completion together with the stops it visited and missed."""

    completion: RunCompletion
    visited: list[Location]
    missed: list[Location]


def format_duration(minutes: int | None) -> str:
    """Render a duration as ``45m``, ``1h`` or ``1h 5m``."""
    if minutes is None:
        return ""
    if minutes < MINUTES_PER_HOUR:
        return f"{minutes}m"
    hours, rest = divmod(minutes, MINUTES_PER_HOUR)
    return f"{hours}h {rest}m" if rest else f"{hours}h"
