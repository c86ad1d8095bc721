"""Read access to runs and the stops assigned to them."""

from dataclasses import dataclass
from typing import Protocol

from field_runs.domain.locations import Location, Run


class RunRepository(Protocol):
    """Persistence interface for runs and run membership."""

    def get_run(self, run_id: str) -> Run | None:
        """Return a run by id, if present."""

    def list_runs(self) -> list[Run]:
        """Return all runs."""

    def list_location_ids_for_run(self, run_id: str) -> list[str]:
        """Return ids of locations linked to a run."""


class LocationRepository(Protocol):
    """Persistence interface for service locations."""

    def list_locations(self, location_ids: list[str] | None = None) -> list[Location]:
        """Return locations, optionally restricted to the given ids."""


@dataclass
class RunCatalog:
    """Resolves runs and their serviceable stops."""

    run_repository: RunRepository
    location_repository: LocationRepository

    def get_run(self, run_id: str) -> Run | None:
        """Return a run by id, or None when it was deleted."""
        return self.run_repository.get_run(run_id)

    def list_runs(self) -> list[Run]:
        """Return all runs."""
        return self.run_repository.list_runs()

    def stops_for_run(self, run_id: str) -> list[Location]:
        """Return the active locations linked to a run."""
        location_ids = self.run_repository.list_location_ids_for_run(run_id)
        if not location_ids:
            return []
        wanted = set(location_ids)
        return [
            location
            for location in self.location_repository.list_locations(location_ids)
            if location.id in wanted and location.is_active
        ]
