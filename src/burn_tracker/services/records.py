"""Conversion between ledger models and persisted JSON rows."""

from burn_tracker.domain.activities import ActivityType
from burn_tracker.domain.ledger import (
    ActivityLogEntry,
    ActivitySlot,
    ScanEntry,
    parse_status_tier,
)


def scan_to_row(entry: ScanEntry) -> dict[str, object]:
    """Serialize a scan entry."""
    return {
        "id": entry.id,
        "date": entry.created_at,
        "productName": entry.product_name,
        "calories": entry.calories,
        "isExpanded": entry.expanded,
        "activities": [
            {
                "label": slot.label,
                "status": slot.status_tier.value,
                "summary": slot.summary_text,
            }
            for slot in entry.activity_slots
        ],
    }


def scan_from_row(row: dict[str, object]) -> ScanEntry:
    """Parse a stored scan row, tolerating missing fields."""
    raw_slots = row.get("activities")
    slots = tuple(
        ActivitySlot(
            label=str(slot.get("label") or ""),
            status_tier=parse_status_tier(slot.get("status")),
            summary_text=str(slot.get("summary") or ""),
        )
        for slot in (raw_slots if isinstance(raw_slots, list) else [])
        if isinstance(slot, dict)
    )
    return ScanEntry(
        id=str(row.get("id", "")),
        created_at=str(row.get("date") or ""),
        product_name=str(row.get("productName") or "Unknown Item"),
        calories=_to_int(row.get("calories")),
        activity_slots=slots,
        expanded=bool(row.get("isExpanded", False)),
    )


def activity_to_row(entry: ActivityLogEntry) -> dict[str, object]:
    """Serialize an activity log entry."""
    return {
        "id": entry.id,
        "date": entry.timestamp,
        "type": entry.activity_type.value,
        "duration": entry.duration_minutes,
        "caloriesBurned": entry.calories_burned,
    }


def activity_from_row(row: dict[str, object]) -> ActivityLogEntry | None:
    """Parse a stored activity row; unknown activity types are skipped."""
    try:
        activity_type = ActivityType(str(row.get("type")))
    except ValueError:
        return None
    return ActivityLogEntry(
        id=str(row.get("id", "")),
        timestamp=str(row.get("date") or ""),
        activity_type=activity_type,
        duration_minutes=_to_int(row.get("duration")),
        calories_burned=_to_int(row.get("caloriesBurned")),
    )


def scans_from_value(value: object) -> list[ScanEntry]:
    """Parse a stored list of scan rows."""
    if not isinstance(value, list):
        return []
    return [scan_from_row(row) for row in value if isinstance(row, dict)]


def activities_from_value(value: object) -> list[ActivityLogEntry]:
    """Parse a stored list of activity rows."""
    if not isinstance(value, list):
        return []
    parsed = [activity_from_row(row) for row in value if isinstance(row, dict)]
    return [entry for entry in parsed if entry is not None]


def _to_int(value: object) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        return max(0, int(value))
    if isinstance(value, str):
        try:
            return max(0, int(float(value)))
        except ValueError:
            return 0
    return 0
