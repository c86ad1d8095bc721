"""Great-circle distance, bearing and compass helpers."""

import math
from enum import Enum

EARTH_RADIUS_M = 6_371_000.0


class Cardinal(str, Enum):
    """Compass quadrant used for disruption suggestions."""

    NORTH = "N"
    EAST = "E"
    SOUTH = "S"
    WEST = "W"


# Half-open [start, end) ranges in degrees; north wraps through 0.
CARDINAL_RANGES: dict[Cardinal, tuple[float, float]] = {
    Cardinal.NORTH: (337.5, 22.5),
    Cardinal.EAST: (22.5, 112.5),
    Cardinal.SOUTH: (112.5, 202.5),
    Cardinal.WEST: (202.5, 337.5),
}


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the haversine distance in meters between two lat/lon points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the initial bearing from point 1 to point 2 in [0, 360)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lambda = math.radians(lon2 - lon1)
    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(
        d_lambda
    )
    return math.degrees(math.atan2(y, x)) % 360.0


def cardinal_for_bearing(bearing: float) -> Cardinal:
    """Classify a bearing into its compass quadrant."""
    normalized = bearing % 360.0
    for cardinal, (start, end) in CARDINAL_RANGES.items():
        if start < end:
            if start <= normalized < end:
                return cardinal
        elif normalized >= start or normalized < end:
            return cardinal
    return Cardinal.NORTH
