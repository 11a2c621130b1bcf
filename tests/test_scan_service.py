"""Tests for the photo scan flow."""

import asyncio

import pytest

from burn_tracker.domain.errors import (
    ExternalServiceError,
    InvalidSelectionError,
    NoPendingSelectionError,
)
from burn_tracker.domain.ledger import QuotaExceeded, ScanEntry, StatusTier
from burn_tracker.services.scans import PendingSelection, ScanService
from burn_tracker.services.vision import VisionService
from tests.conftest import FakeVisionClient, Tracker, build_tracker, make_activities


def _scan_service(tracker: Tracker, client: FakeVisionClient) -> ScanService:
    return ScanService(
        vision_service=VisionService(
            client=client, model="gpt-5.2", reasoning_effort="low", store=False
        ),
        ledger=tracker.ledger,
        gate=tracker.gate,
        profile_store=tracker.profile_store,
    )


def _multi_payload() -> dict[str, object]:
    return {
        "candidates": [
            {
                "product_name": "Margherita Pizza",
                "calories": 800,
                "activities": make_activities(),
            },
            {
                "product_name": "Flatbread",
                "calories": 500,
                "activities": make_activities("CAUTION"),
            },
        ]
    }


def test_single_candidate_is_recorded() -> None:
    tracker = build_tracker()
    service = _scan_service(tracker, FakeVisionClient())

    result = asyncio.run(service.analyze(b"image"))

    assert isinstance(result, ScanEntry)
    assert result.product_name == "Chicken Caesar Salad"
    assert result.activity_slots[0].label == "Running"
    assert result.activity_slots[0].status_tier == StatusTier.HEALTHY
    assert tracker.ledger.total_consumed() == 450
    assert tracker.gate.usage().scan_count == 1
    assert service.pending() is None


def test_multiple_candidates_wait_for_selection() -> None:
    tracker = build_tracker()
    service = _scan_service(tracker, FakeVisionClient(payload=_multi_payload()))

    result = asyncio.run(service.analyze(b"image"))

    assert isinstance(result, PendingSelection)
    assert tracker.ledger.scans == []
    assert tracker.gate.usage().scan_count == 0

    entry = service.confirm_selection(1)

    assert isinstance(entry, ScanEntry)
    assert entry.product_name == "Flatbread"
    assert entry.activity_slots[0].status_tier == StatusTier.MODERATE
    assert [scan.id for scan in tracker.ledger.scans] == [entry.id]
    assert service.pending() is None


def test_confirm_without_pending_fails() -> None:
    service = _scan_service(build_tracker(), FakeVisionClient())

    with pytest.raises(NoPendingSelectionError):
        service.confirm_selection(0)


def test_confirm_out_of_range_keeps_pending() -> None:
    tracker = build_tracker()
    service = _scan_service(tracker, FakeVisionClient(payload=_multi_payload()))
    asyncio.run(service.analyze(b"image"))

    with pytest.raises(InvalidSelectionError):
        service.confirm_selection(2)

    assert service.pending() is not None
    assert tracker.ledger.scans == []


def test_discard_pending_records_nothing() -> None:
    tracker = build_tracker()
    service = _scan_service(tracker, FakeVisionClient(payload=_multi_payload()))
    asyncio.run(service.analyze(b"image"))

    service.discard_pending()

    assert service.pending() is None
    assert tracker.ledger.scans == []


def test_quota_is_checked_before_vision_call() -> None:
    tracker = build_tracker(free_scan_limit=1)
    client = FakeVisionClient()
    service = _scan_service(tracker, client)
    asyncio.run(service.analyze(b"image"))

    result = asyncio.run(service.analyze(b"image"))

    assert result == QuotaExceeded(resource="scan", limit=1)
    assert len(client.prompts) == 1


def test_vision_failure_records_nothing() -> None:
    tracker = build_tracker()
    client = FakeVisionClient(error=RuntimeError("upstream down"))
    service = _scan_service(tracker, client)

    with pytest.raises(ExternalServiceError):
        asyncio.run(service.analyze(b"image"))

    assert tracker.ledger.scans == []
    assert tracker.gate.usage().scan_count == 0
    assert tracker.archive.scan_records() == []


def test_unlock_index_drives_prompt_and_slots() -> None:
    tracker = build_tracker()
    tracker.gate.pro_unlock_index = 3
    client = FakeVisionClient()
    service = _scan_service(tracker, client)

    result = asyncio.run(service.analyze(b"image"))

    assert "Activities 4 to 10 are locked" in client.prompts[-1]
    assert isinstance(result, ScanEntry)
    tiers = [slot.status_tier for slot in result.activity_slots]
    assert StatusTier.LOCKED not in tiers[:3]
    assert all(tier == StatusTier.LOCKED for tier in tiers[3:])
