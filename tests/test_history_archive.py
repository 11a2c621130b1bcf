"""Tests for the history archive."""

from burn_tracker.domain.activities import ActivityType
from burn_tracker.domain.calendar import CalendarDay
from burn_tracker.domain.ledger import ActivityLogEntry, ScanEntry
from burn_tracker.services.storage import ACTIVITY_HISTORY_KEY, SCAN_HISTORY_KEY
from tests.conftest import build_tracker


def _scan(entry_id: str, created_at: str, calories: int = 100) -> ScanEntry:
    return ScanEntry(
        id=entry_id,
        created_at=created_at,
        product_name=f"Meal {entry_id}",
        calories=calories,
        activity_slots=(),
    )


def _activity(entry_id: str, timestamp: str, burned: int) -> ActivityLogEntry:
    return ActivityLogEntry(
        id=entry_id,
        timestamp=timestamp,
        activity_type=ActivityType.WALKING,
        duration_minutes=30,
        calories_burned=burned,
    )


def test_cap_keeps_newest_entries() -> None:
    tracker = build_tracker(max_history=10)
    archive = tracker.archive

    for index in range(15):
        archive.append_scan_record(_scan(str(index), "2026-10-18T09:00:00+00:00"))

    ids = [record.id for record in archive.scan_records()]
    assert len(ids) == 10
    assert ids[0] == "14"
    assert ids[-1] == "5"


def test_archived_scans_are_never_expanded() -> None:
    archive = build_tracker().archive
    entry = ScanEntry(
        id="1",
        created_at="2026-10-18T09:00:00+00:00",
        product_name="Toast",
        calories=200,
        activity_slots=(),
        expanded=True,
    )

    archive.append_scan_record(entry)

    assert archive.scan_records()[0].expanded is False


def test_group_by_day_orders_newest_first_with_unknown_last() -> None:
    archive = build_tracker().archive
    archive.append_scan_record(_scan("1", "garbage", 50))
    archive.append_scan_record(_scan("2", "2026-10-16T12:00:00+00:00", 300))
    archive.append_scan_record(_scan("3", "2026-10-18T08:00:00+00:00", 200))
    archive.append_scan_record(_scan("4", "2026-10-18T19:00:00+00:00", 400))

    groups = archive.group_by_day()

    assert list(groups) == ["2026/10/18", "2026/10/16", "Unknown"]
    assert groups["2026/10/18"].total == 600
    assert [entry.id for entry in groups["2026/10/18"].entries] == ["4", "3"]
    assert groups["Unknown"].total == 50


def test_grouping_uses_local_timezone() -> None:
    tracker = build_tracker()
    tracker.clock.timezone_name = "America/New_York"
    tracker.archive.append_scan_record(_scan("1", "2026-10-18T02:00:00+00:00"))

    assert list(tracker.archive.group_by_day()) == ["2026/10/17"]


def test_group_activities_by_day_sums_burned() -> None:
    archive = build_tracker().archive
    archive.append_activity_record(_activity("1", "2026-10-17T07:00:00+00:00", 120))
    archive.append_activity_record(_activity("2", "2026-10-17T18:00:00+00:00", 80))

    groups = archive.group_activities_by_day()

    assert groups["2026/10/17"].total == 200


def test_describe_day() -> None:
    archive = build_tracker().archive
    today = CalendarDay(2026, 10, 18)

    assert archive.describe_day("2026/10/18") == "Today"
    assert archive.describe_day("2026/10/17", today) == "Yesterday"
    assert archive.describe_day("2026/10/03", today) == "Oct 3, 2026"
    assert archive.describe_day("Unknown", today) == "Unknown Date"


def test_remove_ignores_missing_ids() -> None:
    tracker = build_tracker()
    archive = tracker.archive
    archive.append_scan_record(_scan("1", "2026-10-18T09:00:00+00:00"))
    writes = tracker.store.writes

    archive.remove("missing")
    archive.remove_activity("missing")

    assert tracker.store.writes == writes
    assert len(archive.scan_records()) == 1


def test_clear_scopes() -> None:
    tracker = build_tracker()
    archive = tracker.archive
    archive.append_scan_record(_scan("1", "2026-10-18T09:00:00+00:00"))
    archive.append_activity_record(_activity("2", "2026-10-18T10:00:00+00:00", 90))

    archive.clear_scans()

    assert SCAN_HISTORY_KEY not in tracker.store.values
    assert len(archive.activity_records()) == 1

    archive.clear_all()

    assert ACTIVITY_HISTORY_KEY not in tracker.store.values
    assert archive.scan_records() == []


def test_unknown_activity_types_are_skipped() -> None:
    tracker = build_tracker()
    tracker.store.values[ACTIVITY_HISTORY_KEY] = [
        {"id": "1", "date": "2026-10-18T09:00:00+00:00", "type": "skiing"},
        {"id": "2", "date": "2026-10-18T09:00:00+00:00", "type": "yoga"},
    ]

    assert [record.id for record in tracker.archive.activity_records()] == ["2"]
