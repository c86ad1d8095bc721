"""Proximity and dwell based automatic check-in."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial
from typing import Protocol

from field_runs.domain.check_in import AutoCheckInSettings
from field_runs.domain.geo import haversine_m
from field_runs.domain.locations import Location, PositionFix

logger = logging.getLogger(__name__)

SPEED_LIMIT_KMH = 5.0
ACCURACY_FLOOR_M = 100.0
_MS_TO_KMH = 3.6


class TimerHandle(Protocol):
    """Handle for a pending delayed action."""

    def cancel(self) -> None:
        """Prevent the action from running."""


class Scheduler(Protocol):
    """Source of cancellable delayed actions."""

    def call_later(
        self, delay_seconds: float, callback: Callable[[], None]
    ) -> TimerHandle:
        """Run ``callback`` once after ``delay_seconds``."""


@dataclass
class AutoCheckInController:
    """Turns sustained, slow, accurate proximity to a stop into a visit.

    Only two external triggers drive it: ``on_position_fix`` for every GPS
    reading and ``on_dwell_expired`` when the armed timer runs out.
    """

    settings_provider: Callable[[], AutoCheckInSettings]
    stops_provider: Callable[[], list[Location]]
    visited_provider: Callable[[], set[str]]
    on_auto_visit: Callable[[str, str], None]
    scheduler: Scheduler
    speed_limit_kmh: float = SPEED_LIMIT_KMH
    accuracy_floor_m: float = ACCURACY_FLOOR_M
    dwelling_location_id: str | None = field(default=None, init=False)
    _dwelling_name: str | None = field(default=None, init=False, repr=False)
    _dwell_timer: TimerHandle | None = field(default=None, init=False, repr=False)

    @property
    def is_dwelling(self) -> bool:
        return self._dwell_timer is not None

    def on_position_fix(self, fix: PositionFix) -> None:
        """Evaluate one GPS fix against the unvisited stops."""
        settings = self.settings_provider()
        if not settings.enabled:
            self.cancel_all()
            return

        visited = self.visited_provider()
        unvisited = [
            stop for stop in self.stops_provider() if stop.id not in visited
        ]
        if not unvisited:
            self.cancel_all()
            return

        accuracy_limit = max(settings.proximity_meters, self.accuracy_floor_m)
        if fix.accuracy is not None and fix.accuracy > accuracy_limit:
            # Imprecise fixes neither arm nor cancel a dwell.
            return
        if fix.speed is not None and fix.speed * _MS_TO_KMH > self.speed_limit_kmh:
            self.cancel_all()
            return

        closest = _closest_within(fix, unvisited, settings.proximity_meters)
        if closest is None:
            self.cancel_all()
            return
        if closest.id == self.dwelling_location_id:
            return

        self.cancel_all()
        self.dwelling_location_id = closest.id
        self._dwelling_name = closest.name or closest.id
        self._dwell_timer = self.scheduler.call_later(
            settings.dwell_seconds, partial(self.on_dwell_expired, closest.id)
        )
        logger.debug(
            "Dwell armed for %s (%ss)", closest.id, settings.dwell_seconds
        )

    def on_dwell_expired(self, location_id: str) -> None:
        """Fire the visit callback if the dwell for this stop is still live."""
        if location_id != self.dwelling_location_id:
            return
        name = self._dwelling_name or location_id
        self._dwell_timer = None
        self.dwelling_location_id = None
        self._dwelling_name = None
        if location_id in self.visited_provider():
            return
        logger.info("Dwell completed at %s", location_id)
        try:
            self.on_auto_visit(location_id, name)
        except Exception:
            logger.exception("Auto check-in callback failed for %s", location_id)

    def cancel_all(self) -> None:
        """Drop any pending dwell."""
        if self._dwell_timer is not None:
            self._dwell_timer.cancel()
            logger.debug("Dwell cancelled for %s", self.dwelling_location_id)
        self._dwell_timer = None
        self.dwelling_location_id = None
        self._dwelling_name = None

    def cancel_for_location(self, location_id: str) -> None:
        """Drop the pending dwell only when it targets ``location_id``."""
        if self.dwelling_location_id == location_id:
            self.cancel_all()


def _closest_within(
    fix: PositionFix, stops: list[Location], radius_m: float
) -> Location | None:
    closest: Location | None = None
    closest_distance = radius_m
    for stop in stops:
        distance = haversine_m(
            fix.latitude, fix.longitude, stop.latitude, stop.longitude
        )
        if distance <= radius_m and (closest is None or distance < closest_distance):
            closest = stop
            closest_distance = distance
    return closest
