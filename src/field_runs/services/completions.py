"""Run completion recording and run history."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import uuid4

from field_runs.domain.completions import RunCompletion, RunDetail
from field_runs.domain.locations import Location
from field_runs.domain.sessions import RunSession, utc_now
from field_runs.domain.visits import Visit, VisitMethod
from field_runs.services.active_sessions import ActiveSessionStore
from field_runs.services.visits import VisitLedger

logger = logging.getLogger(__name__)

_MS_PER_MINUTE = 60_000


class RunCompletionRepository(Protocol):
    """Persistence interface for completed runs."""

    def create_completion(self, completion: RunCompletion) -> None:
        """Persist a new completion record."""

    def get_completion(self, completion_id: str) -> RunCompletion | None:
        """Return a completion by id, if present."""

    def list_completions(self) -> list[RunCompletion]:
        """Return every completion record."""


@dataclass
class RunCompletionRecorder:
    """Closes a run attempt into an immutable history entry."""

    repository: RunCompletionRepository
    visit_ledger: VisitLedger
    active_session_store: ActiveSessionStore
    clock: Callable[[], datetime] = utc_now

    def finish(
        self, session: RunSession, stops: list[Location], run_name: str
    ) -> RunCompletion:
        """Record the completion and clear the persisted session slot."""
        now = self.clock()
        for location_id in sorted(session.visited_location_ids):
            visit_id = session.visit_id_for(location_id)
            if self.visit_ledger.get_visit(visit_id) is not None:
                continue
            logger.warning(
                "Backfilling missing ledger entry for %s on run %s",
                location_id,
                session.run_id,
            )
            self.visit_ledger.record_visit(
                Visit(
                    id=visit_id,
                    location_id=location_id,
                    run_id=session.run_id,
                    visited_at=now,
                    visit_method=VisitMethod.MANUAL,
                )
            )

        stop_ids = {stop.id for stop in stops}
        elapsed_ms = (now - session.started_at).total_seconds() * 1000
        completion = RunCompletion(
            id=str(uuid4()),
            run_id=session.run_id,
            run_name=run_name,
            visited_count=len(session.visited_location_ids & stop_ids),
            total_count=len(stop_ids),
            completed_at=now,
            duration_minutes=max(round(elapsed_ms / _MS_PER_MINUTE), 0),
        )
        self.repository.create_completion(completion)
        self.active_session_store.clear()
        logger.info(
            "Run %s completed: %s/%s visited",
            session.run_id,
            completion.visited_count,
            completion.total_count,
        )
        return completion

    def history(self) -> list[RunCompletion]:
        """Return completions, newest first."""
        return sorted(
            self.repository.list_completions(),
            key=lambda completion: completion.completed_at,
            reverse=True,
        )

    def latest(self) -> RunCompletion | None:
        """Return the most recent completion, if any."""
        history = self.history()
        return history[0] if history else None

    def get(self, completion_id: str) -> RunCompletion | None:
        return self.repository.get_completion(completion_id)

    def detail(self, completion: RunCompletion, stops: list[Location]) -> RunDetail:
        """Split a run's stops into visited and missed using the ledger."""
        visited_ids = {
            visit.location_id
            for visit in self.visit_ledger.query_by_run(completion.run_id)
        }
        return RunDetail(
            completion=completion,
            visited=[stop for stop in stops if stop.id in visited_ids],
            missed=[stop for stop in stops if stop.id not in visited_ids],
        )
