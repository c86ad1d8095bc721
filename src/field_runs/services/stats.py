"""Visit statistics for the dashboard."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

from field_runs.domain.completions import RunCompletion
from field_runs.domain.sessions import utc_now
from field_runs.domain.visits import LocationVisitCount, Visit
from field_runs.services.completions import RunCompletionRecorder
from field_runs.services.visits import VisitLedger

TOP_LOCATIONS_LIMIT = 5
_LAST_INSTANT = timedelta(microseconds=1)


@dataclass(frozen=True)
class VisitSummary:
    """Visit activity shown on the dashboard."""

    visits_today: int
    visits_this_week: int
    top_locations: list[LocationVisitCount]
    least_visited: LocationVisitCount | None
    last_run: RunCompletion | None


@dataclass
class VisitStatsService:
    """Computes visit statistics in a given timezone."""

    visit_ledger: VisitLedger
    completion_recorder: RunCompletionRecorder
    clock: Callable[[], datetime] = utc_now

    def summary(
        self, timezone_name: str = "UTC", limit: int = TOP_LOCATIONS_LIMIT
    ) -> VisitSummary:
        """Return today's and week-to-date counts plus location rankings."""
        tz = ZoneInfo(timezone_name)
        now = self.clock().astimezone(tz)
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_start = today - timedelta(days=today.weekday())
        return VisitSummary(
            visits_today=self._count_between(today, today + timedelta(days=1)),
            visits_this_week=self._count_between(
                week_start, week_start + timedelta(days=7)
            ),
            top_locations=self.visit_ledger.visits_per_location(limit),
            least_visited=self.visit_ledger.least_visited_location(),
            last_run=self.completion_recorder.latest(),
        )

    def last_visit(self, location_id: str) -> Visit | None:
        """Return the most recent visit to a location."""
        return self.visit_ledger.last_visit_for_location(location_id)

    def _count_between(self, start: datetime, end: datetime) -> int:
        # Ledger ranges are inclusive; stop just before the next period.
        return self.visit_ledger.count_in_range(
            start.astimezone(UTC), end.astimezone(UTC) - _LAST_INSTANT
        )
