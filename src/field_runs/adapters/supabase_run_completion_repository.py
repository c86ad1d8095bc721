"""Supabase repository for completed runs."""

from dataclasses import dataclass

from supabase import Client

from field_runs.domain.completions import RunCompletion
from field_runs.domain.sessions import parse_datetime, utc_now
from field_runs.services.completions import RunCompletionRepository

_COLUMNS = (
    "id, run_id, run_name, visited_count, total_count, completed_at, "
    "duration_minutes"
)


@dataclass
class SupabaseRunCompletionRepository(RunCompletionRepository):
    """Supabase implementation for run completions."""

    client: Client

    def create_completion(self, completion: RunCompletion) -> None:
        """Insert a completion row."""
        response = (
            self.client.table("run_completions")
            .insert(
                {
                    "id": completion.id,
                    "run_id": completion.run_id,
                    "run_name": completion.run_name,
                    "visited_count": completion.visited_count,
                    "total_count": completion.total_count,
                    "completed_at": completion.completed_at.isoformat(),
                    "duration_minutes": completion.duration_minutes,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create run completion")

    def get_completion(self, completion_id: str) -> RunCompletion | None:
        """Return a completion by id."""
        response = (
            self.client.table("run_completions")
            .select(_COLUMNS)
            .eq("id", completion_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_completion(response.data[0])

    def list_completions(self) -> list[RunCompletion]:
        """Return all completions, newest first."""
        response = (
            self.client.table("run_completions")
            .select(_COLUMNS)
            .order("completed_at", desc=True)
            .execute()
        )
        return [_parse_completion(row) for row in response.data or []]


def _parse_completion(row: dict[str, object]) -> RunCompletion:
    duration = row.get("duration_minutes")
    return RunCompletion(
        id=str(row["id"]),
        run_id=str(row["run_id"]),
        run_name=str(row.get("run_name") or row["run_id"]),
        visited_count=int(row.get("visited_count", 0)),
        total_count=int(row.get("total_count", 0)),
        completed_at=parse_datetime(row.get("completed_at")) or utc_now(),
        duration_minutes=int(duration) if duration is not None else None,
    )
