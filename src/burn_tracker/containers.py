"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from burn_tracker.adapters.openai_vision_client import OpenAIVisionClient
from burn_tracker.adapters.supabase_key_value_store import SupabaseKeyValueStore
from burn_tracker.adapters.supabase_subscription_oracle import (
    SupabaseSubscriptionOracle,
)
from burn_tracker.config import Settings, parse_timezone
from burn_tracker.services.clock import Clock, SystemClock
from burn_tracker.services.entitlements import EntitlementGate
from burn_tracker.services.history import HistoryArchive
from burn_tracker.services.ledger import DailyLedger
from burn_tracker.services.profile import ProfileStore
from burn_tracker.services.scans import ScanService
from burn_tracker.services.vision import VisionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    clock: Clock
    profile_store: ProfileStore
    entitlement_gate: EntitlementGate
    history_archive: HistoryArchive
    ledger: DailyLedger
    vision_service: VisionService
    scan_service: ScanService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    store = SupabaseKeyValueStore(
        supabase_client, namespace=resolved_settings.device_id
    )
    clock = SystemClock(parse_timezone(resolved_settings.timezone))
    oracle = SupabaseSubscriptionOracle(
        supabase_client, device_id=resolved_settings.device_id
    )
    profile_store = ProfileStore(store)
    gate = EntitlementGate(
        oracle=oracle,
        store=store,
        clock=clock,
        free_scan_limit=resolved_settings.free_scan_limit,
        max_activities=resolved_settings.max_activities,
        pro_unlock_index=resolved_settings.pro_unlock_index,
    )
    archive = HistoryArchive(
        store=store, clock=clock, max_history=resolved_settings.max_history
    )
    ledger = DailyLedger(
        store=store,
        clock=clock,
        profile_store=profile_store,
        gate=gate,
        archive=archive,
    )
    openai_client = OpenAIVisionClient.create(
        resolved_settings.openai_api_key,
        timeout_seconds=resolved_settings.vision_timeout_seconds,
    )
    vision_service = VisionService(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    scan_service = ScanService(
        vision_service=vision_service,
        ledger=ledger,
        gate=gate,
        profile_store=profile_store,
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        clock=clock,
        profile_store=profile_store,
        entitlement_gate=gate,
        history_archive=archive,
        ledger=ledger,
        vision_service=vision_service,
        scan_service=scan_service,
        close_resources=close_resources,
    )
