"""Domain model for the live run session and its persisted snapshot."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import NAMESPACE_URL, uuid5

ACTIVE_SESSION_SLOT = "current"
_PAIR_LENGTH = 2


def make_visit_id(run_id: str, location_id: str, started_at: datetime) -> str:
    """Derive the ledger id for a stop within one run attempt.

    The same ``(run_id, location_id, started_at)`` always yields the same id,
    so re-marking a stop (also after a restart) overwrites one ledger entry
    instead of adding duplicates.
    """
    started = as_utc(started_at).isoformat()
    return str(uuid5(NAMESPACE_URL, f"field-runs:{run_id}:{location_id}:{started}"))


@dataclass
class RunSession:
    """Visited state for one attempt at a run."""

    run_id: str
    started_at: datetime
    visited_location_ids: set[str] = field(default_factory=set)
    visit_ids_by_location: dict[str, str] = field(default_factory=dict)

    @classmethod
    def start(cls, run_id: str | None, now: datetime) -> "RunSession | None":
        """Create an empty session, or None when no run is selected."""
        if not run_id:
            return None
        return cls(run_id=run_id, started_at=as_utc(now))

    def mark_visited(self, location_id: str, visit_id: str | None = None) -> None:
        """Add a stop to the visited set, refreshing its ledger id if given."""
        self.visited_location_ids.add(location_id)
        if visit_id is not None:
            self.visit_ids_by_location[location_id] = visit_id

    def mark_unvisited(self, location_id: str) -> str | None:
        """Remove a stop and return the ledger id that recorded it."""
        self.visited_location_ids.discard(location_id)
        return self.visit_ids_by_location.pop(location_id, None)

    def is_visited(self, location_id: str) -> bool:
        """Return True when the stop is visited in this attempt."""
        return location_id in self.visited_location_ids

    def visit_id_for(self, location_id: str) -> str:
        """Return the tracked ledger id, deriving it when none is stored."""
        return self.visit_ids_by_location.get(location_id) or make_visit_id(
            self.run_id, location_id, self.started_at
        )

    @property
    def visited_count(self) -> int:
        return len(self.visited_location_ids)


@dataclass(frozen=True)
class ActiveSessionRecord:
    """Flat, persistable mirror of a RunSession."""

    run_id: str
    visited_location_ids: list[str]
    visit_ids_by_location: list[tuple[str, str]]
    started_at: datetime
    last_updated_at: datetime
    id: str = ACTIVE_SESSION_SLOT


def snapshot_session(session: RunSession, now: datetime) -> ActiveSessionRecord:
    """Flatten a session into its persisted form."""
    return ActiveSessionRecord(
        run_id=session.run_id,
        visited_location_ids=sorted(session.visited_location_ids),
        visit_ids_by_location=sorted(session.visit_ids_by_location.items()),
        started_at=as_utc(session.started_at),
        last_updated_at=as_utc(now),
    )


def rehydrate_session(record: ActiveSessionRecord) -> RunSession:
    """Rebuild a live session from a persisted record.

    Records written before ledger ids were tracked carry no pairs; ids for
    those stops are re-derived from the run, stop and start time.
    """
    session = RunSession(run_id=record.run_id, started_at=record.started_at)
    tracked = dict(record.visit_ids_by_location)
    for location_id in record.visited_location_ids:
        visit_id = tracked.get(location_id) or make_visit_id(
            record.run_id, location_id, record.started_at
        )
        session.mark_visited(location_id, visit_id)
    return session


def record_to_payload(record: ActiveSessionRecord) -> dict[str, object]:
    """Serialize a record into a JSON-compatible row."""
    return {
        "id": record.id,
        "run_id": record.run_id,
        "visited_location_ids": list(record.visited_location_ids),
        "visit_ids_by_location": dict(record.visit_ids_by_location),
        "started_at": record.started_at.isoformat(),
        "last_updated_at": record.last_updated_at.isoformat(),
    }


def record_from_payload(row: object) -> ActiveSessionRecord | None:
    """Parse a persisted row; malformed rows yield None."""
    if not isinstance(row, dict):
        return None
    run_id = row.get("run_id")
    visited = row.get("visited_location_ids")
    started_at = parse_datetime(row.get("started_at"))
    if not isinstance(run_id, str) or not run_id or started_at is None:
        return None
    if not isinstance(visited, list):
        return None
    pairs = row.get("visit_ids_by_location") or []
    if isinstance(pairs, dict):
        pairs = list(pairs.items())
    if not isinstance(pairs, list):
        return None
    visit_ids = [
        (str(pair[0]), str(pair[1]))
        for pair in pairs
        if isinstance(pair, list | tuple) and len(pair) == _PAIR_LENGTH and pair[1]
    ]
    last_updated_at = parse_datetime(row.get("last_updated_at")) or started_at
    return ActiveSessionRecord(
        id=str(row.get("id") or ACTIVE_SESSION_SLOT),
        run_id=run_id,
        visited_location_ids=[str(item) for item in visited],
        visit_ids_by_location=visit_ids,
        started_at=started_at,
        last_updated_at=last_updated_at,
    )


def parse_datetime(value: object) -> datetime | None:
    """Parse an ISO string, epoch milliseconds or datetime into UTC."""
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, int | float) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value:
        try:
            return as_utc(datetime.fromisoformat(value))
        except ValueError:
            return None
    return None


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)
