"""Run session state machine for field operation."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from field_runs.domain.check_in import AutoCheckInSettings
from field_runs.domain.completions import RunCompletion
from field_runs.domain.locations import Location, PositionFix
from field_runs.domain.sessions import RunSession, rehydrate_session, utc_now
from field_runs.domain.visits import Visit, VisitMethod
from field_runs.services.active_sessions import ActiveSessionStore
from field_runs.services.auto_check_in import (
    ACCURACY_FLOOR_M,
    SPEED_LIMIT_KMH,
    AutoCheckInController,
    Scheduler,
)
from field_runs.services.check_in_settings import AutoCheckInSettingsService
from field_runs.services.completions import RunCompletionRecorder
from field_runs.services.disruption import (
    CardinalSuggestions,
    suggest_nearest_by_cardinal,
)
from field_runs.services.runs import RunCatalog
from field_runs.services.visits import VisitLedger

logger = logging.getLogger(__name__)


class NoActiveSessionError(RuntimeError):
    """Raised when an operation needs a live run session."""


class UnknownRunError(LookupError):
    """Raised when a run id does not resolve to a stored run."""


class UnknownStopError(LookupError):
    """Raised when a location is not a stop of the live run."""


@dataclass(frozen=True)
class Notice:
    """Non-blocking message for the UI."""

    kind: str
    message: str


@dataclass(frozen=True)
class ResumeOffer:
    """Details shown when offering to resume an interrupted run."""

    run_id: str
    run_name: str
    started_at: datetime
    visited_count: int
    total_count: int


@dataclass(frozen=True)
class SessionProgress:
    """Read-only view of the live session."""

    run_id: str
    run_name: str
    started_at: datetime
    visited_location_ids: list[str]
    visited_count: int
    total_count: int
    suggestions: CardinalSuggestions | None = None


@dataclass
class RunSessionService:
    """Single owner of the live RunSession.

    Every mutation goes through this service so the session, the visit
    ledger and the persisted snapshot change together and in call order.
    """

    run_catalog: RunCatalog
    visit_ledger: VisitLedger
    active_session_store: ActiveSessionStore
    completion_recorder: RunCompletionRecorder
    check_in_settings: AutoCheckInSettingsService
    scheduler: Scheduler
    clock: Callable[[], datetime] = utc_now
    speed_limit_kmh: float = SPEED_LIMIT_KMH
    accuracy_floor_m: float = ACCURACY_FLOOR_M
    session: RunSession | None = field(default=None, init=False)
    auto_check_in: AutoCheckInController = field(init=False)
    _run_name: str = field(default="", init=False, repr=False)
    _stops: list[Location] = field(default_factory=list, init=False, repr=False)
    _pending_resume: RunSession | None = field(default=None, init=False, repr=False)
    _disruption_center: tuple[float, float] | None = field(
        default=None, init=False, repr=False
    )
    _sensor_notice_sent: bool = field(default=False, init=False, repr=False)
    _notices: list[Notice] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self.auto_check_in = AutoCheckInController(
            settings_provider=self.check_in_settings.get,
            stops_provider=lambda: self._stops,
            visited_provider=self._visited_ids,
            on_auto_visit=self._handle_auto_visit,
            scheduler=self.scheduler,
            speed_limit_kmh=self.speed_limit_kmh,
            accuracy_floor_m=self.accuracy_floor_m,
        )

    def start_session(self, run_id: str | None) -> RunSession | None:
        """Begin a fresh attempt at a run; a missing id clears the selection."""
        self.auto_check_in.cancel_all()
        self._disruption_center = None
        self._pending_resume = None
        if not run_id:
            self._drop_session()
            self.active_session_store.clear()
            return None
        run = self.run_catalog.get_run(run_id)
        if run is None:
            raise UnknownRunError(run_id)
        session = RunSession.start(run_id, self.clock())
        self._adopt(session, run.name)
        self.active_session_store.save(session)
        logger.info("Started session for run %s", run_id)
        return session

    def mark_visited(
        self,
        location_id: str,
        method: VisitMethod = VisitMethod.MANUAL,
        visit_id: str | None = None,
    ) -> Visit:
        """Mark a stop visited and record it in the ledger."""
        session = self._require_session()
        if location_id not in self._stop_ids():
            raise UnknownStopError(location_id)
        if method is VisitMethod.MANUAL:
            self.auto_check_in.cancel_for_location(location_id)
        previous_id = session.visit_ids_by_location.get(location_id)
        resolved_id = visit_id or session.visit_id_for(location_id)
        if previous_id is not None and previous_id != resolved_id:
            self.visit_ledger.undo_visit(previous_id)
        session.mark_visited(location_id, resolved_id)
        visit = self.visit_ledger.record_visit(
            Visit(
                id=resolved_id,
                location_id=location_id,
                run_id=session.run_id,
                visited_at=self.clock(),
                visit_method=method,
            )
        )
        self.active_session_store.save(session)
        return visit

    def mark_unvisited(self, location_id: str) -> None:
        """Undo a visit for a stop and delete its ledger entry."""
        session = self._require_session()
        was_visited = session.is_visited(location_id)
        visit_id = session.mark_unvisited(location_id)
        if visit_id is None and was_visited:
            visit_id = session.visit_id_for(location_id)
        if visit_id is not None:
            self.visit_ledger.undo_visit(visit_id)
        self.active_session_store.save(session)

    def is_visited(self, location_id: str) -> bool:
        return self.session is not None and self.session.is_visited(location_id)

    def finish_run(self) -> RunCompletion:
        """Close the live session into a completion record."""
        session = self._require_session()
        self.auto_check_in.cancel_all()
        self._disruption_center = None
        completion = self.completion_recorder.finish(
            session, self._stops, self._run_name or session.run_id
        )
        self._drop_session()
        return completion

    def discard_session(self) -> None:
        """Abandon the live session and its persisted snapshot."""
        self.auto_check_in.cancel_all()
        self._disruption_center = None
        self._drop_session()
        self.active_session_store.clear()

    def check_for_resumable(self) -> ResumeOffer | None:
        """Inspect the persisted slot and prepare a resume offer."""
        record = self.active_session_store.load()
        if record is None:
            return None
        run = self.run_catalog.get_run(record.run_id)
        if run is None:
            logger.warning("Active session refers to missing run %s", record.run_id)
            self.active_session_store.clear()
            self._notify(
                "stale_session",
                "The unfinished run no longer exists; its progress was discarded.",
            )
            return None
        pending = rehydrate_session(record)
        self._pending_resume = pending
        return ResumeOffer(
            run_id=run.id,
            run_name=run.name,
            started_at=pending.started_at,
            visited_count=pending.visited_count,
            total_count=len(self.run_catalog.stops_for_run(run.id)),
        )

    def resume(self) -> RunSession | None:
        """Adopt the pending resumable session, if there is one."""
        if self._pending_resume is None and self.check_for_resumable() is None:
            return None
        pending = self._pending_resume
        self._pending_resume = None
        if pending is None:
            return None
        run = self.run_catalog.get_run(pending.run_id)
        if run is None:
            self.active_session_store.clear()
            return None
        self.auto_check_in.cancel_all()
        self._disruption_center = None
        self._adopt(pending, run.name)
        self.active_session_store.save(pending)
        logger.info(
            "Resumed session for run %s with %s visited",
            pending.run_id,
            pending.visited_count,
        )
        return pending

    def start_new(self) -> None:
        """Decline the resume offer and delete the persisted slot."""
        self._pending_resume = None
        self.active_session_store.clear()
        logger.info("Discarded resumable session")

    def on_position_fix(self, fix: PositionFix) -> None:
        """Feed a GPS fix to auto check-in while a run is live."""
        if self.session is None:
            return
        self.auto_check_in.on_position_fix(fix)

    def report_sensor_unavailable(self, reason: str = "") -> None:
        """Record that geolocation is denied or absent, once per session."""
        self.auto_check_in.cancel_all()
        if self._sensor_notice_sent:
            return
        self._sensor_notice_sent = True
        logger.warning("Location unavailable: %s", reason or "unknown")
        self._notify(
            "sensor_unavailable",
            "Location is unavailable; auto check-in is paused.",
        )

    def update_check_in_settings(
        self, settings: AutoCheckInSettings
    ) -> AutoCheckInSettings:
        """Persist settings, dropping any pending dwell when disabled."""
        saved = self.check_in_settings.save(settings)
        if not saved.enabled:
            self.auto_check_in.cancel_all()
        return saved

    def enter_disruption_mode(
        self, center_lat: float, center_lon: float
    ) -> CardinalSuggestions:
        """Show nearest unvisited stops around a reference point."""
        self._require_session()
        self._disruption_center = (center_lat, center_lon)
        return self.current_suggestions() or CardinalSuggestions()

    def exit_disruption_mode(self) -> None:
        self._disruption_center = None

    @property
    def in_disruption_mode(self) -> bool:
        return self._disruption_center is not None

    def current_suggestions(self) -> CardinalSuggestions | None:
        """Recompute suggestions for the current disruption center."""
        if self.session is None or self._disruption_center is None:
            return None
        center_lat, center_lon = self._disruption_center
        return suggest_nearest_by_cardinal(
            center_lat, center_lon, self._stops, self.session.visited_location_ids
        )

    @property
    def visited_count(self) -> int:
        if self.session is None:
            return 0
        return len(self.session.visited_location_ids & self._stop_ids())

    @property
    def total_count(self) -> int:
        return len(self._stops) if self.session else 0

    def progress(self) -> SessionProgress | None:
        """Return a snapshot of the live session for display."""
        if self.session is None:
            return None
        return SessionProgress(
            run_id=self.session.run_id,
            run_name=self._run_name,
            started_at=self.session.started_at,
            visited_location_ids=sorted(self.session.visited_location_ids),
            visited_count=self.visited_count,
            total_count=self.total_count,
            suggestions=self.current_suggestions(),
        )

    def refresh_stops(self) -> list[Location]:
        """Reload the stops of the live run after maintenance edits."""
        if self.session is not None:
            self._stops = self.run_catalog.stops_for_run(self.session.run_id)
        return list(self._stops)

    def pop_notices(self) -> list[Notice]:
        """Return and clear pending notices."""
        notices, self._notices = self._notices, []
        return notices

    def _adopt(self, session: RunSession, run_name: str) -> None:
        self.session = session
        self._run_name = run_name
        self._stops = self.run_catalog.stops_for_run(session.run_id)
        self._sensor_notice_sent = False

    def _drop_session(self) -> None:
        self.session = None
        self._run_name = ""
        self._stops = []

    def _require_session(self) -> RunSession:
        if self.session is None:
            raise NoActiveSessionError("No run session is active")
        return self.session

    def _stop_ids(self) -> set[str]:
        return {stop.id for stop in self._stops}

    def _visited_ids(self) -> set[str]:
        return self.session.visited_location_ids if self.session else set()

    def _handle_auto_visit(self, location_id: str, location_name: str) -> None:
        if self.session is None or self.session.is_visited(location_id):
            return
        self.mark_visited(location_id, method=VisitMethod.AUTO)
        self._notify("auto_check_in", f"Checked in at {location_name}")

    def _notify(self, kind: str, message: str) -> None:
        self._notices.append(Notice(kind=kind, message=message))
