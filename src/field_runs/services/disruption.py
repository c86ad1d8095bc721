"""Nearest unvisited stop in each compass direction."""

from collections.abc import Iterable
from dataclasses import dataclass

from field_runs.domain.geo import (
    Cardinal,
    bearing_deg,
    cardinal_for_bearing,
    haversine_m,
)
from field_runs.domain.locations import Location


@dataclass(frozen=True)
class StopSuggestion:
    """A candidate stop with its offset from the reference point."""

    location: Location
    distance_m: float
    bearing: float


@dataclass(frozen=True)
class CardinalSuggestions:
    """Closest unvisited stop per direction; None where nothing qualifies."""

    north: StopSuggestion | None = None
    east: StopSuggestion | None = None
    south: StopSuggestion | None = None
    west: StopSuggestion | None = None

    def for_cardinal(self, cardinal: Cardinal) -> StopSuggestion | None:
        return {
            Cardinal.NORTH: self.north,
            Cardinal.EAST: self.east,
            Cardinal.SOUTH: self.south,
            Cardinal.WEST: self.west,
        }[cardinal]


def suggest_nearest_by_cardinal(
    center_lat: float,
    center_lon: float,
    stops: Iterable[Location],
    visited_ids: set[str],
) -> CardinalSuggestions:
    """Bucket unvisited stops by bearing and keep the nearest per bucket."""
    best: dict[Cardinal, StopSuggestion] = {}
    for stop in stops:
        if stop.id in visited_ids:
            continue
        bearing = bearing_deg(center_lat, center_lon, stop.latitude, stop.longitude)
        distance = haversine_m(center_lat, center_lon, stop.latitude, stop.longitude)
        cardinal = cardinal_for_bearing(bearing)
        current = best.get(cardinal)
        if current is None or distance < current.distance_m:
            best[cardinal] = StopSuggestion(
                location=stop, distance_m=distance, bearing=bearing
            )
    return CardinalSuggestions(
        north=best.get(Cardinal.NORTH),
        east=best.get(Cardinal.EAST),
        south=best.get(Cardinal.SOUTH),
        west=best.get(Cardinal.WEST),
    )
