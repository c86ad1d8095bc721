"""Supabase repository for the visit ledger."""

from dataclasses import dataclass

from supabase import Client

from field_runs.domain.sessions import parse_datetime
from field_runs.domain.visits import Visit, VisitMethod
from field_runs.services.visits import VisitRepository

_COLUMNS = "id, location_id, run_id, visited_at, visit_method"


@dataclass
class SupabaseVisitRepository(VisitRepository):
    """Supabase implementation for visits."""

    client: Client

    def upsert_visit(self, visit: Visit) -> None:
        """Insert or overwrite a visit row."""
        response = (
            self.client.table("visits")
            .upsert(
                {
                    "id": visit.id,
                    "location_id": visit.location_id,
                    "run_id": visit.run_id,
                    "visited_at": visit.visited_at.isoformat(),
                    "visit_method": visit.visit_method.value,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to record visit")

    def delete_visit(self, visit_id: str) -> None:
        """Delete a visit row."""
        self.client.table("visits").delete().eq("id", visit_id).execute()

    def get_visit(self, visit_id: str) -> Visit | None:
        """Return a visit by id."""
        response = (
            self.client.table("visits")
            .select(_COLUMNS)
            .eq("id", visit_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_visit(response.data[0])

    def list_visits(self, run_id: str | None = None) -> list[Visit]:
        """Return visits, optionally for one run."""
        query = self.client.table("visits").select(_COLUMNS)
        if run_id is not None:
            query = query.eq("run_id", run_id)
        response = query.order("visited_at", desc=False).execute()
        return [_parse_visit(row) for row in response.data or []]


def _parse_visit(row: dict[str, object]) -> Visit:
    visited_at = parse_datetime(row.get("visited_at"))
    if visited_at is None:
        raise ValueError(f"Visit {row.get('id')} has no timestamp")
    return Visit(
        id=str(row["id"]),
        location_id=str(row["location_id"]),
        run_id=str(row["run_id"]) if row.get("run_id") else None,
        visited_at=visited_at,
        visit_method=VisitMethod(row.get("visit_method") or VisitMethod.MANUAL.value),
    )
