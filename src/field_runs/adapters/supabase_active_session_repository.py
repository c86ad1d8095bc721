"""Supabase repository for the active session slot."""

from dataclasses import dataclass

from supabase import Client

from field_runs.services.active_sessions import ActiveSessionRepository


@dataclass
class SupabaseActiveSessionRepository(ActiveSessionRepository):
    """Supabase implementation for the single active session row."""

    client: Client

    def get_payload(self, slot_id: str) -> dict[str, object] | None:
        """Return the stored row for a slot."""
        response = (
            self.client.table("active_sessions")
            .select(
                "id, run_id, visited_location_ids, visit_ids_by_location, "
                "started_at, last_updated_at"
            )
            .eq("id", slot_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0]

    def upsert_payload(self, payload: dict[str, object]) -> None:
        """Overwrite the slot row."""
        response = self.client.table("active_sessions").upsert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to save active session")

    def delete_payload(self, slot_id: str) -> None:
        """Delete the slot row."""
        self.client.table("active_sessions").delete().eq("id", slot_id).execute()
