"""Supabase repository for settings documents."""

from dataclasses import dataclass

from supabase import Client

from field_runs.domain.sessions import utc_now
from field_runs.services.check_in_settings import SettingsRepository


@dataclass
class SupabaseSettingsRepository(SettingsRepository):
    """Supabase implementation for keyed settings."""

    client: Client

    def get_settings(self, key: str) -> dict[str, object] | None:
        """Return the stored value for a settings key."""
        response = (
            self.client.table("settings")
            .select("id, value")
            .eq("id", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        value = response.data[0].get("value")
        return value if isinstance(value, dict) else None

    def put_settings(self, key: str, payload: dict[str, object]) -> None:
        """Overwrite the value for a settings key."""
        self.client.table("settings").upsert(
            {
                "id": key,
                "value": payload,
                "updated_at": utc_now().isoformat(),
            }
        ).execute()
