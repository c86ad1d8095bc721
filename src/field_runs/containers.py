"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from field_runs.adapters.asyncio_scheduler import AsyncioScheduler
from field_runs.adapters.supabase_active_session_repository import (
    SupabaseActiveSessionRepository,
)
from field_runs.adapters.supabase_run_completion_repository import (
    SupabaseRunCompletionRepository,
)
from field_runs.adapters.supabase_run_repository import (
    SupabaseLocationRepository,
    SupabaseRunRepository,
)
from field_runs.adapters.supabase_settings_repository import (
    SupabaseSettingsRepository,
)
from field_runs.adapters.supabase_visit_repository import SupabaseVisitRepository
from field_runs.config import Settings
from field_runs.services.active_sessions import ActiveSessionStore
from field_runs.services.check_in_settings import AutoCheckInSettingsService
from field_runs.services.completions import RunCompletionRecorder
from field_runs.services.runs import RunCatalog
from field_runs.services.sessions import RunSessionService
from field_runs.services.stats import VisitStatsService
from field_runs.services.visits import VisitLedger


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    run_catalog: RunCatalog
    visit_ledger: VisitLedger
    completion_recorder: RunCompletionRecorder
    check_in_settings_service: AutoCheckInSettingsService
    run_session_service: RunSessionService
    stats_service: VisitStatsService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    run_catalog = RunCatalog(
        run_repository=SupabaseRunRepository(supabase_client),
        location_repository=SupabaseLocationRepository(supabase_client),
    )
    visit_ledger = VisitLedger(SupabaseVisitRepository(supabase_client))
    active_session_store = ActiveSessionStore(
        SupabaseActiveSessionRepository(supabase_client)
    )
    completion_recorder = RunCompletionRecorder(
        repository=SupabaseRunCompletionRepository(supabase_client),
        visit_ledger=visit_ledger,
        active_session_store=active_session_store,
    )
    check_in_settings_service = AutoCheckInSettingsService(
        SupabaseSettingsRepository(supabase_client)
    )
    run_session_service = RunSessionService(
        run_catalog=run_catalog,
        visit_ledger=visit_ledger,
        active_session_store=active_session_store,
        completion_recorder=completion_recorder,
        check_in_settings=check_in_settings_service,
        scheduler=AsyncioScheduler(),
        speed_limit_kmh=resolved_settings.auto_check_in_speed_limit_kmh,
        accuracy_floor_m=resolved_settings.auto_check_in_accuracy_floor_m,
    )
    stats_service = VisitStatsService(
        visit_ledger=visit_ledger, completion_recorder=completion_recorder
    )
    return AppContainer(
        settings=resolved_settings,
        run_catalog=run_catalog,
        visit_ledger=visit_ledger,
        completion_recorder=completion_recorder,
        check_in_settings_service=check_in_settings_service,
        run_session_service=run_session_service,
        stats_service=stats_service,
    )
