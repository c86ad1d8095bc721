"""Single-slot persistence of the in-progress run session."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from field_runs.domain.sessions import (
    ACTIVE_SESSION_SLOT,
    ActiveSessionRecord,
    RunSession,
    record_from_payload,
    record_to_payload,
    snapshot_session,
    utc_now,
)

logger = logging.getLogger(__name__)


class ActiveSessionRepository(Protocol):
    """Persistence interface for the active session slot."""

    def get_payload(self, slot_id: str) -> dict[str, object] | None:
        """Return the raw stored row for a slot, if present."""

    def upsert_payload(self, payload: dict[str, object]) -> None:
        """Insert or overwrite a row keyed by its ``id``."""

    def delete_payload(self, slot_id: str) -> None:
        """Delete the row for a slot; missing rows are ignored."""


@dataclass
class ActiveSessionStore:
    """Mirrors the live RunSession so it survives a restart."""

    repository: ActiveSessionRepository
    clock: Callable[[], datetime] = utc_now

    def save(self, session: RunSession) -> ActiveSessionRecord:
        """Overwrite the slot with a full snapshot of the session."""
        record = snapshot_session(session, self.clock())
        self.repository.upsert_payload(record_to_payload(record))
        return record

    def load(self) -> ActiveSessionRecord | None:
        """Return the persisted record, or None when absent or unreadable."""
        payload = self.repository.get_payload(ACTIVE_SESSION_SLOT)
        if payload is None:
            return None
        record = record_from_payload(payload)
        if record is None:
            logger.warning("Dropping malformed active session snapshot")
            self.clear()
        return record

    def clear(self) -> None:
        """Delete the slot in a single operation."""
        self.repository.delete_payload(ACTIVE_SESSION_SLOT)
