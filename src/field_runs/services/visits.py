"""Visit ledger: durable check-in log with undo and statistics."""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from field_runs.domain.visits import LocationVisitCount, Visit

logger = logging.getLogger(__name__)


class VisitRepository(Protocol):
    """Persistence interface for visits."""

    def upsert_visit(self, visit: Visit) -> None:
        """Insert or overwrite a visit by id."""

    def delete_visit(self, visit_id: str) -> None:
        """Delete a visit by id; missing ids are ignored."""

    def get_visit(self, visit_id: str) -> Visit | None:
        """Return a visit by id, if present."""

    def list_visits(self, run_id: str | None = None) -> list[Visit]:
        """Return all visits, optionally for a single run."""


@dataclass
class VisitLedger:
    """Single writer for the visits store."""

    repository: VisitRepository

    def record_visit(self, visit: Visit) -> Visit:
        """Append a visit, overwriting any entry with the same id."""
        self.repository.upsert_visit(visit)
        logger.info(
            "Recorded %s visit %s for location %s",
            visit.visit_method.value,
            visit.id,
            visit.location_id,
        )
        return visit

    def undo_visit(self, visit_id: str) -> None:
        """Delete a visit; safe to call for ids that are already gone."""
        self.repository.delete_visit(visit_id)
        logger.info("Removed visit %s", visit_id)

    def get_visit(self, visit_id: str) -> Visit | None:
        return self.repository.get_visit(visit_id)

    def query_by_run(self, run_id: str) -> list[Visit]:
        """Return every visit recorded against a run."""
        return self.repository.list_visits(run_id)

    def count_in_range(self, start: datetime, end: datetime) -> int:
        """Count visits with ``start <= visited_at <= end``."""
        return sum(
            1
            for visit in self.repository.list_visits()
            if start <= visit.visited_at <= end
        )

    def visits_per_location(self, limit: int | None = None) -> list[LocationVisitCount]:
        """Return visit counts per location, busiest first."""
        counts = Counter(
            visit.location_id
            for visit in self.repository.list_visits()
            if visit.location_id
        )
        ranked = [
            LocationVisitCount(location_id=location_id, count=count)
            for location_id, count in counts.most_common()
        ]
        if limit is not None and limit > 0:
            return ranked[:limit]
        return ranked

    def least_visited_location(self) -> LocationVisitCount | None:
        """Return the location with the fewest visits among visited ones.

        Locations that were never visited have no ledger entries and are not
        considered.
        """
        ranked = self.visits_per_location()
        if not ranked:
            return None
        return ranked[-1]

    def last_visit_for_location(self, location_id: str) -> Visit | None:
        """Return the most recent visit for a location."""
        visits = [
            visit
            for visit in self.repository.list_visits()
            if visit.location_id == location_id
        ]
        if not visits:
            return None
        return max(visits, key=lambda visit: visit.visited_at)
