"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from zoneinfo import ZoneInfoNotFoundError

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from field_runs.api.models import (
    AutoCheckInSettingsPayload,
    DisruptionRequest,
    MarkVisitedRequest,
    PositionFixRequest,
    SensorUnavailableRequest,
    StartSessionRequest,
)
from field_runs.app_logging import configure_logging
from field_runs.containers import AppContainer
from field_runs.domain.check_in import AutoCheckInSettings
from field_runs.domain.completions import RunCompletion, RunDetail, format_duration
from field_runs.domain.locations import Location, PositionFix, Run
from field_runs.domain.visits import LocationVisitCount, Visit
from field_runs.services.disruption import CardinalSuggestions, StopSuggestion
from field_runs.services.sessions import (
    NoActiveSessionError,
    ResumeOffer,
    SessionProgress,
    UnknownRunError,
    UnknownStopError,
)
from field_runs.services.stats import VisitSummary


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            app.state.container.run_session_service.check_for_resumable()
        except Exception:
            logger.exception("Failed to inspect the persisted run session")
        yield
        app.state.container.run_session_service.auto_check_in.cancel_all()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(NoActiveSessionError)
    async def no_session_handler(
        request: Request, exc: NoActiveSessionError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.exception_handler(UnknownRunError)
    async def unknown_run_handler(
        request: Request, exc: UnknownRunError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": f"Unknown run {exc.args[0]}"},
        )

    @app.exception_handler(UnknownStopError)
    async def unknown_stop_handler(
        request: Request, exc: UnknownStopError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": f"Unknown stop {exc.args[0]}"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/runs")
    async def list_runs(request: Request) -> dict[str, object]:
        """Return runs available for operation."""
        runs = _container(request).run_catalog.list_runs()
        return {"runs": [_format_run(run) for run in runs]}

    @app.post("/session")
    async def start_session(
        payload: StartSessionRequest, request: Request
    ) -> dict[str, object]:
        """Start a run attempt, or clear the selection when run_id is null."""
        service = _container(request).run_session_service
        service.start_session(payload.run_id)
        return {"session": _format_progress(service.progress())}

    @app.get("/session")
    async def get_session(request: Request) -> dict[str, object]:
        """Return progress for the live session."""
        service = _container(request).run_session_service
        return {"session": _format_progress(service.progress())}

    @app.post("/session/visits/{location_id}")
    async def mark_visited(
        location_id: str, request: Request, payload: MarkVisitedRequest | None = None
    ) -> dict[str, object]:
        """Manually mark a stop visited."""
        service = _container(request).run_session_service
        visit = service.mark_visited(
            location_id, visit_id=payload.visit_id if payload else None
        )
        return {
            "visit": _format_visit(visit),
            "session": _format_progress(service.progress()),
        }

    @app.delete("/session/visits/{location_id}")
    async def mark_unvisited(location_id: str, request: Request) -> dict[str, object]:
        """Undo the visit for a stop."""
        service = _container(request).run_session_service
        service.mark_unvisited(location_id)
        return {"session": _format_progress(service.progress())}

    @app.post("/session/finish")
    async def finish_run(request: Request) -> dict[str, object]:
        """Finish the live run and return its completion record."""
        service = _container(request).run_session_service
        completion = service.finish_run()
        return {"completion": _format_completion(completion)}

    @app.post("/session/position")
    async def position_fix(
        payload: PositionFixRequest, request: Request
    ) -> dict[str, object]:
        """Feed a GPS fix to auto check-in."""
        service = _container(request).run_session_service
        service.on_position_fix(
            PositionFix(
                latitude=payload.latitude,
                longitude=payload.longitude,
                accuracy=payload.accuracy,
                speed=payload.speed,
            )
        )
        return {"dwelling_location_id": service.auto_check_in.dwelling_location_id}

    @app.post("/session/sensor-unavailable")
    async def sensor_unavailable(
        payload: SensorUnavailableRequest, request: Request
    ) -> dict[str, str]:
        """Report that geolocation was denied or is missing."""
        _container(request).run_session_service.report_sensor_unavailable(
            payload.reason
        )
        return {"status": "ok"}

    @app.post("/session/disruption")
    async def enter_disruption(
        payload: DisruptionRequest, request: Request
    ) -> dict[str, object]:
        """Enter or recenter disruption mode."""
        service = _container(request).run_session_service
        suggestions = service.enter_disruption_mode(payload.latitude, payload.longitude)
        return {"suggestions": _format_suggestions(suggestions)}

    @app.delete("/session/disruption")
    async def exit_disruption(request: Request) -> dict[str, str]:
        """Leave disruption mode."""
        _container(request).run_session_service.exit_disruption_mode()
        return {"status": "ok"}

    @app.get("/session/resume")
    async def resume_offer(request: Request) -> dict[str, object]:
        """Return the resumable session offer, if any."""
        service = _container(request).run_session_service
        return {"offer": _format_offer(service.check_for_resumable())}

    @app.post("/session/resume")
    async def resume(request: Request) -> dict[str, object]:
        """Adopt the persisted session."""
        service = _container(request).run_session_service
        if service.resume() is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"session": _format_progress(service.progress())}

    @app.post("/session/discard")
    async def discard(request: Request) -> dict[str, str]:
        """Decline the resume offer and drop any live session."""
        service = _container(request).run_session_service
        service.start_new()
        service.discard_session()
        return {"status": "ok"}

    @app.get("/completions")
    async def list_completions(request: Request) -> dict[str, object]:
        """Return completed runs, newest first."""
        recorder = _container(request).completion_recorder
        return {
            "completions": [
                _format_completion(completion) for completion in recorder.history()
            ]
        }

    @app.get("/completions/{completion_id}")
    async def completion_detail(
        completion_id: str, request: Request
    ) -> dict[str, object]:
        """Return a completed run with visited and missed stops."""
        state_container = _container(request)
        completion = state_container.completion_recorder.get(completion_id)
        if completion is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        stops = state_container.run_catalog.stops_for_run(completion.run_id)
        detail = state_container.completion_recorder.detail(completion, stops)
        return _format_detail(detail)

    @app.get("/settings/auto-check-in")
    async def get_check_in_settings(request: Request) -> dict[str, object]:
        """Return auto check-in settings."""
        settings = _container(request).check_in_settings_service.get()
        return _format_settings(settings)

    @app.put("/settings/auto-check-in")
    async def put_check_in_settings(
        payload: AutoCheckInSettingsPayload, request: Request
    ) -> dict[str, object]:
        """Save auto check-in settings."""
        service = _container(request).run_session_service
        saved = service.update_check_in_settings(
            AutoCheckInSettings(
                enabled=payload.enabled,
                proximity_meters=payload.proximity_meters,
                dwell_seconds=payload.dwell_seconds,
            )
        )
        return _format_settings(saved)

    @app.get("/stats")
    async def stats(request: Request, timezone: str = "UTC") -> dict[str, object]:
        """Return visit statistics for the dashboard."""
        try:
            summary = _container(request).stats_service.summary(timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown timezone"
            ) from exc
        return _format_summary(summary)

    @app.get("/locations/{location_id}/last-visit")
    async def last_visit(location_id: str, request: Request) -> dict[str, object]:
        """Return the most recent visit to a location."""
        visit = _container(request).stats_service.last_visit(location_id)
        return {"visit": _format_visit(visit) if visit is not None else None}

    @app.get("/notices")
    async def notices(request: Request) -> dict[str, object]:
        """Drain pending notices."""
        service = _container(request).run_session_service
        return {
            "notices": [
                {"kind": notice.kind, "message": notice.message}
                for notice in service.pop_notices()
            ]
        }

    return app


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _format_run(run: Run) -> dict[str, object]:
    return {"id": run.id, "name": run.name, "color": run.color, "active": run.active}


def _format_location(location: Location) -> dict[str, object]:
    return {
        "id": location.id,
        "name": location.name,
        "latitude": location.latitude,
        "longitude": location.longitude,
    }


def _format_suggestion(
    suggestion: StopSuggestion | None,
) -> dict[str, object] | None:
    if suggestion is None:
        return None
    formatted = _format_location(suggestion.location)
    formatted["distance_m"] = round(suggestion.distance_m, 1)
    formatted["bearing"] = round(suggestion.bearing, 1)
    return formatted


def _format_suggestions(suggestions: CardinalSuggestions) -> dict[str, object]:
    return {
        "N": _format_suggestion(suggestions.north),
        "E": _format_suggestion(suggestions.east),
        "S": _format_suggestion(suggestions.south),
        "W": _format_suggestion(suggestions.west),
    }


def _format_progress(progress: SessionProgress | None) -> dict[str, object] | None:
    if progress is None:
        return None
    return {
        "run_id": progress.run_id,
        "run_name": progress.run_name,
        "started_at": progress.started_at.isoformat(),
        "visited_location_ids": progress.visited_location_ids,
        "visited_count": progress.visited_count,
        "total_count": progress.total_count,
        "suggestions": (
            _format_suggestions(progress.suggestions)
            if progress.suggestions is not None
            else None
        ),
    }


def _format_visit(visit: Visit) -> dict[str, object]:
    return {
        "id": visit.id,
        "location_id": visit.location_id,
        "run_id": visit.run_id,
        "visited_at": visit.visited_at.isoformat(),
        "visit_method": visit.visit_method.value,
    }


def _format_completion(completion: RunCompletion) -> dict[str, object]:
    return {
        "id": completion.id,
        "run_id": completion.run_id,
        "run_name": completion.run_name,
        "visited_count": completion.visited_count,
        "total_count": completion.total_count,
        "completed_at": completion.completed_at.isoformat(),
        "duration_minutes": completion.duration_minutes,
        "duration": format_duration(completion.duration_minutes),
    }


def _format_detail(detail: RunDetail) -> dict[str, object]:
    return {
        "completion": _format_completion(detail.completion),
        "visited": [_format_location(stop) for stop in detail.visited],
        "missed": [_format_location(stop) for stop in detail.missed],
    }


def _format_offer(offer: ResumeOffer | None) -> dict[str, object] | None:
    if offer is None:
        return None
    return {
        "run_id": offer.run_id,
        "run_name": offer.run_name,
        "started_at": offer.started_at.isoformat(),
        "visited_count": offer.visited_count,
        "total_count": offer.total_count,
    }


def _format_location_count(row: LocationVisitCount) -> dict[str, object]:
    return {"location_id": row.location_id, "count": row.count}


def _format_summary(summary: VisitSummary) -> dict[str, object]:
    return {
        "visits_today": summary.visits_today,
        "visits_this_week": summary.visits_this_week,
        "top_locations": [_format_location_count(row) for row in summary.top_locations],
        "least_visited": (
            _format_location_count(summary.least_visited)
            if summary.least_visited is not None
            else None
        ),
        "last_run": (
            _format_completion(summary.last_run)
            if summary.last_run is not None
            else None
        ),
    }


def _format_settings(settings: AutoCheckInSettings) -> dict[str, object]:
    return {
        "enabled": settings.enabled,
        "proximity_meters": settings.proximity_meters,
        "dwell_seconds": settings.dwell_seconds,
    }
