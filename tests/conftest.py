"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from burn_tracker.config import Settings
from burn_tracker.containers import AppContainer
from burn_tracker.domain.calendar import CalendarDay
from burn_tracker.domain.errors import StorageError
from burn_tracker.services.entitlements import EntitlementGate, SubscriptionOracle
from burn_tracker.services.history import HistoryArchive
from burn_tracker.services.ledger import DailyLedger
from burn_tracker.services.profile import ProfileStore
from burn_tracker.services.scans import ScanService
from burn_tracker.services.storage import KeyValueStore
from burn_tracker.services.vision import VisionClient, VisionService


def make_activities(status: str = "SAFE") -> list[dict[str, str]]:
    return [
        {"status": status, "summary": f"{(index + 1) * 10} minutes"}
        for index in range(10)
    ]


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store for tests."""

    values: dict[str, object] = field(default_factory=dict)
    writes: int = 0
    fail_keys: set[str] = field(default_factory=set)

    def get(self, key: str) -> object | None:
        return self.values.get(key)

    def get_many(self, keys: list[str]) -> dict[str, object]:
        return {key: self.values[key] for key in keys if key in self.values}

    def set(self, key: str, value: object) -> None:
        self.set_many({key: value})

    def set_many(self, values: dict[str, object]) -> None:
        if self.fail_keys & set(values):
            raise StorageError("simulated write failure")
        self.writes += 1
        self.values.update(values)

    def delete(self, key: str) -> None:
        if key in self.fail_keys:
            raise StorageError("simulated delete failure")
        self.values.pop(key, None)


@dataclass
class FakeClock:
    """Clock pinned to a settable instant."""

    current: datetime = field(
        default_factory=lambda: datetime(2026, 10, 18, 9, 30, tzinfo=UTC)
    )
    timezone_name: str = "UTC"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone_name)

    def now(self) -> datetime:
        return self.current.astimezone(self.tz)

    def today(self) -> CalendarDay:
        return CalendarDay.from_date(self.now().date())

    def advance(self, **kwargs: float) -> None:
        self.current = self.current + timedelta(**kwargs)


@dataclass
class FakeSubscriptionOracle(SubscriptionOracle):
    """Subscription oracle with a switchable pro flag."""

    pro: bool = False
    is_loading: bool = False
    calls: int = 0

    @property
    def loading(self) -> bool:
        return self.is_loading

    def is_pro(self) -> bool:
        self.calls += 1
        return self.pro


@dataclass
class FakeVisionClient(VisionClient):
    """Fake vision client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "candidates": [
                {
                    "product_name": "Chicken Caesar Salad",
                    "calories": 450,
                    "activities": make_activities(),
                }
            ]
        }
    )
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)

    async def analyze(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.payload


@dataclass
class Tracker:
    """Ledger components wired over one in-memory store."""

    store: InMemoryKeyValueStore
    clock: FakeClock
    oracle: FakeSubscriptionOracle
    profile_store: ProfileStore
    gate: EntitlementGate
    archive: HistoryArchive
    ledger: DailyLedger


def build_tracker(  # noqa: PLR0913
    store: InMemoryKeyValueStore | None = None,
    clock: FakeClock | None = None,
    oracle: FakeSubscriptionOracle | None = None,
    free_scan_limit: int = 3,
    max_activities: int = 5,
    max_history: int = 500,
) -> Tracker:
    store = store or InMemoryKeyValueStore()
    clock = clock or FakeClock()
    oracle = oracle or FakeSubscriptionOracle()
    profile_store = ProfileStore(store)
    gate = EntitlementGate(
        oracle=oracle,
        store=store,
        clock=clock,
        free_scan_limit=free_scan_limit,
        max_activities=max_activities,
    )
    archive = HistoryArchive(store=store, clock=clock, max_history=max_history)
    ledger = DailyLedger(
        store=store,
        clock=clock,
        profile_store=profile_store,
        gate=gate,
        archive=archive,
    )
    return Tracker(
        store=store,
        clock=clock,
        oracle=oracle,
        profile_store=profile_store,
        gate=gate,
        archive=archive,
        ledger=ledger,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        openai_api_key="openai-key",
        environment="test",
    )


@pytest.fixture
def tracker() -> Tracker:
    return build_tracker()


@pytest.fixture
def vision_client() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def container(
    settings: Settings, tracker: Tracker, vision_client: FakeVisionClient
) -> AppContainer:
    vision_service = VisionService(
        client=vision_client,
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
    )
    scan_service = ScanService(
        vision_service=vision_service,
        ledger=tracker.ledger,
        gate=tracker.gate,
        profile_store=tracker.profile_store,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        clock=tracker.clock,
        profile_store=tracker.profile_store,
        entitlement_gate=tracker.gate,
        history_archive=tracker.archive,
        ledger=tracker.ledger,
        vision_service=vision_service,
        scan_service=scan_service,
        close_resources=close_resources,
    )
