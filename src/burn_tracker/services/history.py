"""Permanent, capped record of scans and logged activities."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from typing import TypeVar

from burn_tracker.domain.calendar import (
    UNKNOWN_DAY_KEY,
    CalendarDay,
    day_key_for_timestamp,
    readable_day,
)
from burn_tracker.domain.ledger import ActivityLogEntry, DayGroup, ScanEntry
from burn_tracker.services.clock import Clock
from burn_tracker.services.records import (
    activities_from_value,
    activity_to_row,
    scan_to_row,
    scans_from_value,
)
from burn_tracker.services.storage import (
    ACTIVITY_HISTORY_KEY,
    SCAN_HISTORY_KEY,
    KeyValueStore,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", ScanEntry, ActivityLogEntry)

DEFAULT_MAX_HISTORY = 500


@dataclass
class HistoryArchive:
    """Append-mostly history that survives day rollover.

    Each sequence is newest-first and truncated to ``max_history``; the oldest
    entries fall off silently.
    """

    store: KeyValueStore
    clock: Clock
    max_history: int = DEFAULT_MAX_HISTORY

    def scan_records(self) -> list[ScanEntry]:
        """Return archived scans, newest first."""
        return scans_from_value(self.store.get(SCAN_HISTORY_KEY))

    def activity_records(self) -> list[ActivityLogEntry]:
        """Return archived activities, newest first."""
        return activities_from_value(self.store.get(ACTIVITY_HISTORY_KEY))

    def append_scan_record(self, entry: ScanEntry) -> None:
        """Prepend a scan and drop anything past the cap."""
        archived = replace(entry, expanded=False)
        records = [archived, *self.scan_records()][: self.max_history]
        self.store.set(SCAN_HISTORY_KEY, [scan_to_row(record) for record in records])

    def append_activity_record(self, entry: ActivityLogEntry) -> None:
        """Prepend an activity and drop anything past the cap."""
        records = [entry, *self.activity_records()][: self.max_history]
        self.store.set(
            ACTIVITY_HISTORY_KEY, [activity_to_row(record) for record in records]
        )

    def remove(self, entry_id: str) -> None:
        """Remove one archived scan; absent ids are ignored."""
        records = self.scan_records()
        remaining = [record for record in records if record.id != entry_id]
        if len(remaining) == len(records):
            return
        self.store.set(
            SCAN_HISTORY_KEY, [scan_to_row(record) for record in remaining]
        )

    def remove_activity(self, entry_id: str) -> None:
        """Remove one archived activity; absent ids are ignored."""
        records = self.activity_records()
        remaining = [record for record in records if record.id != entry_id]
        if len(remaining) == len(records):
            return
        self.store.set(
            ACTIVITY_HISTORY_KEY, [activity_to_row(record) for record in remaining]
        )

    def clear_scans(self) -> None:
        """Erase all archived scans."""
        self.store.delete(SCAN_HISTORY_KEY)

    def clear_activities(self) -> None:
        """Erase all archived activities."""
        self.store.delete(ACTIVITY_HISTORY_KEY)

    def clear_all(self) -> None:
        """Erase the whole archive. Irreversible."""
        logger.warning("Clearing scan and activity history")
        self.clear_scans()
        self.clear_activities()

    def group_by_day(self) -> dict[str, DayGroup]:
        """Bucket archived scans by local day with calorie totals."""
        return _group(
            self.scan_records(),
            self.clock,
            timestamp=lambda record: record.created_at,
            amount=lambda record: record.calories,
        )

    def group_activities_by_day(self) -> dict[str, DayGroup]:
        """Bucket archived activities by local day with burned totals."""
        return _group(
            self.activity_records(),
            self.clock,
            timestamp=lambda record: record.timestamp,
            amount=lambda record: record.calories_burned,
        )

    def describe_day(self, day_key: str, today: CalendarDay | None = None) -> str:
        """Return a readable label for a group key."""
        return readable_day(day_key, today or self.clock.today())


def _group(
    records: Sequence[T],
    clock: Clock,
    timestamp: Callable[[T], str],
    amount: Callable[[T], int],
) -> dict[str, DayGroup]:
    buckets: dict[str, list[T]] = {}
    totals: dict[str, int] = {}
    for record in records:
        key = day_key_for_timestamp(timestamp(record), clock.tz)
        buckets.setdefault(key, []).append(record)
        totals[key] = totals.get(key, 0) + amount(record)
    ordered = sorted(buckets, key=_day_sort_key, reverse=True)
    return {
        key: DayGroup(day_key=key, entries=tuple(buckets[key]), total=totals[key])
        for key in ordered
    }


def _day_sort_key(key: str) -> str:
    # Unknown sorts after every real day once reversed.
    if key == UNKNOWN_DAY_KEY:
        return ""
    return key
