"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from burn_tracker.api.models import (
    ActivityDayOut,
    ActivityEntryOut,
    ActivityLogIn,
    ActivitySlotOut,
    ActivityTypeOut,
    CandidateOut,
    ConfirmSelectionIn,
    LedgerOut,
    PendingSelectionOut,
    ProfileIn,
    ProfileOut,
    QuotaOut,
    ScanDayOut,
    ScanEntryOut,
)
from burn_tracker.app_logging import configure_logging
from burn_tracker.containers import AppContainer
from burn_tracker.domain.errors import (
    ExternalServiceError,
    InvalidSelectionError,
    NoPendingSelectionError,
    StorageError,
)
from burn_tracker.domain.ledger import (
    MAX_DURATION_MINUTES,
    ActivityLogEntry,
    InvalidDuration,
    QuotaExceeded,
    ScanEntry,
)
from burn_tracker.domain.profile import Profile, ProfileValidationError
from burn_tracker.services.burn import calories_per_minute, exercise_equivalents
from burn_tracker.services.ledger import DailyLedger
from burn_tracker.services.scans import PendingSelection

HTTP_402_PAYMENT_REQUIRED = 402
HTTP_422_UNPROCESSABLE = 422


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            app.state.container.ledger.reconcile_day()
        except StorageError:
            logger.exception("Failed to load today's ledger at startup")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(StorageError)
    async def storage_error_handler(
        request: Request, exc: StorageError
    ) -> JSONResponse:
        logger.error(
            "Storage failure", exc_info=exc, extra={"path": request.url.path}
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Storage is unavailable. Please try again."},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/today")
    async def today(request: Request) -> LedgerOut:
        """Return today's ledger and balance."""
        ledger = _ready_ledger(request)
        return _ledger_out(ledger)

    @app.post("/today/clear")
    async def clear_today(request: Request, include_water: bool = True) -> LedgerOut:
        """Empty today's tracker without touching history."""
        ledger = _ready_ledger(request)
        ledger.clear_today(include_water=include_water)
        return _ledger_out(ledger)

    @app.post("/water")
    async def add_water(request: Request) -> dict[str, int]:
        """Add a cup of water."""
        return {"water_cups": _ready_ledger(request).add_water_cup()}

    @app.delete("/water")
    async def remove_water(request: Request) -> dict[str, int]:
        """Remove a cup of water."""
        return {"water_cups": _ready_ledger(request).remove_water_cup()}

    @app.post("/scans", response_model=None)
    async def create_scan(request: Request) -> ScanEntryOut | JSONResponse:
        """Analyze a meal photo sent as the raw request body."""
        state_container: AppContainer = request.app.state.container
        image_bytes = await request.body()
        if not image_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Image body is empty."
            )
        try:
            result = await state_container.scan_service.analyze(image_bytes)
        except ExternalServiceError as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=_format_vision_error(
                    state_container,
                    exc,
                    "Sorry, I couldn't analyze that photo. Please try again.",
                ),
            ) from exc
        if isinstance(result, QuotaExceeded):
            raise _quota_exception(result)
        if isinstance(result, PendingSelection):
            return JSONResponse(
                status_code=status.HTTP_202_ACCEPTED,
                content=_pending_out(result).model_dump(),
            )
        return _scan_out(result)

    @app.get("/scans/pending")
    async def pending_scan(request: Request) -> PendingSelectionOut:
        """Return candidates waiting for confirmation."""
        state_container: AppContainer = request.app.state.container
        pending = state_container.scan_service.pending()
        if pending is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="No pending scan."
            )
        return _pending_out(pending)

    @app.post("/scans/confirm")
    async def confirm_scan(
        payload: ConfirmSelectionIn, request: Request
    ) -> ScanEntryOut:
        """Record the chosen candidate of a pending scan."""
        state_container: AppContainer = request.app.state.container
        try:
            result = state_container.scan_service.confirm_selection(payload.choice)
        except NoPendingSelectionError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=str(exc)
            ) from exc
        except InvalidSelectionError as exc:
            raise HTTPException(
                status_code=HTTP_422_UNPROCESSABLE, detail=str(exc)
            ) from exc
        if isinstance(result, QuotaExceeded):
            raise _quota_exception(result)
        return _scan_out(result)

    @app.delete("/scans/pending")
    async def discard_pending(request: Request) -> dict[str, str]:
        """Drop a pending candidate set."""
        state_container: AppContainer = request.app.state.container
        state_container.scan_service.discard_pending()
        return {"status": "ok"}

    @app.delete("/scans/{entry_id}")
    async def delete_scan(entry_id: str, request: Request) -> dict[str, str]:
        """Delete a scan from today and from history."""
        _ready_ledger(request).delete_scan(entry_id)
        return {"status": "ok"}

    @app.post("/scans/{entry_id}/toggle")
    async def toggle_scan(entry_id: str, request: Request) -> ScanEntryOut:
        """Flip the expanded flag of a scan card."""
        toggled = _ready_ledger(request).toggle_expanded(entry_id)
        if toggled is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Scan not found."
            )
        return _scan_out(toggled)

    @app.get("/activities/types")
    async def activity_types(request: Request) -> list[ActivityTypeOut]:
        """Return the activity table with burn rates for the current profile."""
        state_container: AppContainer = request.app.state.container
        weight_kg = state_container.profile_store.load().weight_kg
        return [
            ActivityTypeOut(
                activity_type=item.activity_type,
                label=item.label,
                met=item.met,
                calories_per_minute=calories_per_minute(item.met, weight_kg),
                minutes_per_100_kcal=item.minutes,
            )
            for item in exercise_equivalents(100, weight_kg)
        ]

    @app.post("/activities")
    async def log_activity(
        payload: ActivityLogIn, request: Request
    ) -> ActivityEntryOut:
        """Log an exercise session."""
        ledger = _ready_ledger(request)
        result = ledger.record_activity(
            payload.activity_type, payload.duration_minutes
        )
        if isinstance(result, InvalidDuration):
            raise HTTPException(
                status_code=HTTP_422_UNPROCESSABLE,
                detail={
                    "duration_minutes": (
                        f"Duration must be between 1 and {MAX_DURATION_MINUTES} "
                        "minutes."
                    )
                },
            )
        if isinstance(result, QuotaExceeded):
            raise _quota_exception(result)
        return _activity_out(result)

    @app.delete("/activities/{entry_id}")
    async def delete_activity(entry_id: str, request: Request) -> dict[str, str]:
        """Delete an activity from today and from history."""
        _ready_ledger(request).delete_activity(entry_id)
        return {"status": "ok"}

    @app.get("/profile")
    async def get_profile(request: Request) -> ProfileOut:
        """Return the stored profile."""
        state_container: AppContainer = request.app.state.container
        return _profile_out(state_container.profile_store.load())

    @app.put("/profile")
    async def put_profile(payload: ProfileIn, request: Request) -> ProfileOut:
        """Validate and save the whole profile."""
        state_container: AppContainer = request.app.state.container
        candidate = Profile(
            gender=payload.gender,
            age_years=payload.age_years,
            weight_kg=payload.weight_kg,
            daily_goal_calories=payload.daily_goal_calories,
        )
        error = state_container.profile_store.save(candidate)
        if isinstance(error, ProfileValidationError):
            raise HTTPException(
                status_code=HTTP_422_UNPROCESSABLE, detail=error.errors
            )
        return _profile_out(state_container.profile_store.load())

    @app.get("/quota")
    async def quota(request: Request) -> QuotaOut:
        """Return today's free-tier usage."""
        state_container: AppContainer = request.app.state.container
        usage = state_container.entitlement_gate.usage()
        return QuotaOut(
            is_pro=usage.is_pro,
            scan_count=usage.scan_count,
            scan_limit=usage.scan_limit,
            scans_remaining=usage.scans_remaining,
            activity_count=usage.activity_count,
            activity_limit=usage.activity_limit,
            activities_remaining=usage.activities_remaining,
        )

    @app.get("/history/scans")
    async def scan_history(request: Request) -> list[ScanDayOut]:
        """Return archived scans grouped by day, newest first."""
        state_container: AppContainer = request.app.state.container
        archive = state_container.history_archive
        return [
            ScanDayOut(
                day_key=key,
                label=archive.describe_day(key),
                total_calories=group.total,
                entries=[_scan_out(entry) for entry in group.entries],
            )
            for key, group in archive.group_by_day().items()
        ]

    @app.get("/history/activities")
    async def activity_history(request: Request) -> list[ActivityDayOut]:
        """Return archived activities grouped by day, newest first."""
        state_container: AppContainer = request.app.state.container
        archive = state_container.history_archive
        return [
            ActivityDayOut(
                day_key=key,
                label=archive.describe_day(key),
                total_burned=group.total,
                entries=[_activity_out(entry) for entry in group.entries],
            )
            for key, group in archive.group_activities_by_day().items()
        ]

    @app.delete("/history/scans/{entry_id}")
    async def delete_scan_record(entry_id: str, request: Request) -> dict[str, str]:
        """Delete one archived scan."""
        state_container: AppContainer = request.app.state.container
        state_container.history_archive.remove(entry_id)
        return {"status": "ok"}

    @app.delete("/history/activities/{entry_id}")
    async def delete_activity_record(
        entry_id: str, request: Request
    ) -> dict[str, str]:
        """Delete one archived activity."""
        state_container: AppContainer = request.app.state.container
        state_container.history_archive.remove_activity(entry_id)
        return {"status": "ok"}

    @app.delete("/history")
    async def clear_history(
        request: Request, confirm: bool = False, scope: str = "all"
    ) -> dict[str, str]:
        """Erase history; requires confirm=true."""
        state_container: AppContainer = request.app.state.container
        if not confirm:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Clearing history is permanent; pass confirm=true.",
            )
        archive = state_container.history_archive
        if scope == "scans":
            archive.clear_scans()
        elif scope == "activities":
            archive.clear_activities()
        elif scope == "all":
            archive.clear_all()
        else:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="scope must be all, scans or activities.",
            )
        return {"status": "ok"}

    return app


def _ready_ledger(request: Request) -> DailyLedger:
    """Return the ledger after rolling it over to today if needed."""
    state_container: AppContainer = request.app.state.container
    state_container.ledger.reconcile_day()
    return state_container.ledger


def _quota_exception(result: QuotaExceeded) -> HTTPException:
    return HTTPException(
        status_code=HTTP_402_PAYMENT_REQUIRED,
        detail={
            "error": "quota_exceeded",
            "resource": result.resource,
            "limit": result.limit,
            "upgrade_required": True,
        },
    )


def _format_vision_error(
    state_container: AppContainer, exc: Exception, fallback: str
) -> str:
    """Return a user-facing error message with local debug info."""
    if state_container.settings.environment == "local":
        detail = f"{type(exc).__name__}: {exc}".strip()
        if detail:
            return f"{fallback} (debug: {detail})"
    return fallback


def _ledger_out(ledger: DailyLedger) -> LedgerOut:
    snapshot = ledger.snapshot()
    return LedgerOut(
        date=snapshot.date_stamp.key,
        daily_goal_calories=snapshot.daily_goal_calories,
        total_consumed=snapshot.total_consumed,
        total_burned=snapshot.total_burned,
        remaining=snapshot.remaining,
        water_cups=snapshot.water_cups,
        scans=[_scan_out(scan) for scan in snapshot.scans],
        activities=[_activity_out(act) for act in snapshot.activities],
    )


def _scan_out(entry: ScanEntry) -> ScanEntryOut:
    return ScanEntryOut(
        id=entry.id,
        created_at=entry.created_at,
        product_name=entry.product_name,
        calories=entry.calories,
        expanded=entry.expanded,
        activities=[
            ActivitySlotOut(
                label=slot.label,
                status=slot.status_tier.value,
                summary=slot.summary_text,
            )
            for slot in entry.activity_slots
        ],
    )


def _activity_out(entry: ActivityLogEntry) -> ActivityEntryOut:
    return ActivityEntryOut(
        id=entry.id,
        timestamp=entry.timestamp,
        activity_type=entry.activity_type,
        duration_minutes=entry.duration_minutes,
        calories_burned=entry.calories_burned,
    )


def _pending_out(pending: PendingSelection) -> PendingSelectionOut:
    return PendingSelectionOut(
        candidates=[
            CandidateOut(
                index=index,
                product_name=candidate.product_name,
                calories=candidate.calories,
            )
            for index, candidate in enumerate(pending.candidates)
        ]
    )


def _profile_out(profile: Profile) -> ProfileOut:
    return ProfileOut(
        gender=profile.gender,
        age_years=profile.age_years,
        weight_kg=profile.weight_kg,
        daily_goal_calories=profile.daily_goal_calories,
    )
