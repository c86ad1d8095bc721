"""Supabase repositories for runs and locations."""

from dataclasses import dataclass

from supabase import Client

from field_runs.domain.locations import Location, Run
from field_runs.services.runs import LocationRepository, RunRepository

_LOCATION_COLUMNS = (
    "id, latitude, longitude, name, service_frequency, product_type, notes, status"
)


@dataclass
class SupabaseRunRepository(RunRepository):
    """Supabase implementation for runs and run membership."""

    client: Client

    def get_run(self, run_id: str) -> Run | None:
        """Return a run by id."""
        response = (
            self.client.table("runs")
            .select("id, name, color, active")
            .eq("id", run_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_run(response.data[0])

    def list_runs(self) -> list[Run]:
        """Return all runs ordered by name."""
        response = (
            self.client.table("runs")
            .select("id, name, color, active")
            .order("name", desc=False)
            .execute()
        )
        return [_parse_run(row) for row in response.data or []]

    def list_location_ids_for_run(self, run_id: str) -> list[str]:
        """Return linked location ids for a run."""
        response = (
            self.client.table("run_locations")
            .select("location_id")
            .eq("run_id", run_id)
            .execute()
        )
        return [str(row["location_id"]) for row in response.data or []]


@dataclass
class SupabaseLocationRepository(LocationRepository):
    """Supabase implementation for service locations."""

    client: Client

    def list_locations(self, location_ids: list[str] | None = None) -> list[Location]:
        """Return locations, optionally filtered by id."""
        query = self.client.table("locations").select(_LOCATION_COLUMNS)
        if location_ids is not None:
            query = query.in_("id", location_ids)
        response = query.execute()
        return [_parse_location(row) for row in response.data or []]


def _parse_run(row: dict[str, object]) -> Run:
    return Run(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        color=row.get("color"),
        active=bool(row.get("active", True)),
    )


def _parse_location(row: dict[str, object]) -> Location:
    return Location(
        id=str(row["id"]),
        latitude=float(row["latitude"]),
        longitude=float(row["longitude"]),
        name=str(row.get("name") or row["id"]),
        service_frequency=str(row.get("service_frequency") or "adhoc"),
        product_type=str(row.get("product_type") or ""),
        notes=str(row.get("notes") or ""),
        status=str(row.get("status") or "active"),
    )
