"""Day-scoped energy balance ledger with midnight rollover."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime

from burn_tracker.domain.activities import ActivityType, activity_spec
from burn_tracker.domain.calendar import CalendarDay
from burn_tracker.domain.errors import LedgerNotReadyError, StorageError
from burn_tracker.domain.ledger import (
    MAX_DURATION_MINUTES,
    ActivityLogEntry,
    ActivitySlot,
    InvalidDuration,
    LedgerSnapshot,
    LedgerState,
    QuotaExceeded,
    ScanEntry,
    StatusTier,
)
from burn_tracker.services.burn import (
    ExerciseEquivalent,
    calories_burned,
    exercise_equivalents,
    format_minutes,
)
from burn_tracker.services.clock import Clock
from burn_tracker.services.entitlements import EntitlementGate
from burn_tracker.services.history import HistoryArchive
from burn_tracker.services.profile import ProfileStore
from burn_tracker.services.records import (
    activities_from_value,
    activity_to_row,
    scan_to_row,
    scans_from_value,
)
from burn_tracker.services.storage import (
    LEDGER_ACTIVITIES_KEY,
    LEDGER_DATE_KEY,
    LEDGER_SCANS_KEY,
    LEDGER_WATER_KEY,
    KeyValueStore,
)

logger = logging.getLogger(__name__)

LOCKED_SUMMARY = "Premium Feature"
UNKNOWN_PRODUCT = "Unknown Item"

_LEDGER_KEYS = [
    LEDGER_DATE_KEY,
    LEDGER_SCANS_KEY,
    LEDGER_ACTIVITIES_KEY,
    LEDGER_WATER_KEY,
]


@dataclass
class DailyLedger:
    """Today's consumed and burned calories.

    The ledger starts uninitialized; reconcile_day() loads or resets it and
    must run before any mutation. Each mutation writes the ledger first and
    then the archive. The quota counter is written in the same batch as the
    ledger, so a failed write reverts the in-memory change, consumes no quota
    and propagates. A later archive write failure is logged and the mutation
    still succeeds, so the ledger and the archive can drift apart.
    """

    store: KeyValueStore
    clock: Clock
    profile_store: ProfileStore
    gate: EntitlementGate
    archive: HistoryArchive
    _state: LedgerState | None = field(default=None, init=False, repr=False)
    _last_id: int = field(default=0, init=False, repr=False)

    @property
    def is_ready(self) -> bool:
        """Return True once reconcile_day() has run."""
        return self._state is not None

    @property
    def date_stamp(self) -> CalendarDay:
        """Return the day the ledger currently covers."""
        return self._require_ready().date_stamp

    @property
    def scans(self) -> list[ScanEntry]:
        """Return today's scans, most recent first."""
        return list(self._require_ready().scans)

    @property
    def activities(self) -> list[ActivityLogEntry]:
        """Return today's logged activities, most recent first."""
        return list(self._require_ready().activities)

    @property
    def water_cups(self) -> int:
        """Return today's water cup count."""
        return self._require_ready().water_cups

    def reconcile_day(self, today: CalendarDay | None = None) -> None:
        """Load or roll over the ledger so it covers ``today``."""
        day = today or self.clock.today()
        if self._state is not None and self._state.date_stamp == day:
            return
        if self._state is None:
            restored = self._load(day)
            if restored is not None:
                self._state = restored
                return
        previous = self._state.date_stamp if self._state else None
        logger.info(
            "Starting a new ledger day",
            extra={"day": day.key, "previous_day": str(previous)},
        )
        state = LedgerState(date_stamp=day)
        self._persist(state)
        self._state = state

    def record_scan(
        self,
        calories: int,
        product_name: str,
        activity_slots: list[ActivitySlot] | tuple[ActivitySlot, ...],
    ) -> ScanEntry | QuotaExceeded:
        """Add a scanned meal to today's ledger and the archive."""
        state = self._require_ready()
        if not self.gate.can_scan():
            return QuotaExceeded(resource="scan", limit=self.gate.free_scan_limit)

        now = self.clock.now()
        profile = self.profile_store.load()
        if calories < 0:
            logger.warning(
                "Clamping negative calories to zero",
                extra={"calories": calories, "product_name": product_name},
            )
        calories = max(0, int(calories))
        entry = ScanEntry(
            id=self._next_id(now, state),
            created_at=now.isoformat(),
            product_name=product_name.strip() or UNKNOWN_PRODUCT,
            calories=calories,
            activity_slots=self._normalize_slots(
                calories, profile.weight_kg, list(activity_slots)
            ),
        )
        self._commit(
            state,
            lambda s: s.scans.insert(0, entry),
            extra=self.gate.scan_usage_update(),
        )
        self._best_effort(
            "archive", entry.id, lambda: self.archive.append_scan_record(entry)
        )
        return entry

    def record_activity(
        self, activity_type: ActivityType | str, duration_minutes: int
    ) -> ActivityLogEntry | QuotaExceeded | InvalidDuration:
        """Log an exercise session and credit its burned calories."""
        state = self._require_ready()
        if not 0 < duration_minutes <= MAX_DURATION_MINUTES:
            return InvalidDuration(duration_minutes=duration_minutes)
        if not self.gate.can_log_activity():
            return QuotaExceeded(resource="activity", limit=self.gate.max_activities)

        spec = activity_spec(ActivityType(activity_type))
        now = self.clock.now()
        profile = self.profile_store.load()
        entry = ActivityLogEntry(
            id=self._next_id(now, state),
            timestamp=now.isoformat(),
            activity_type=spec.activity_type,
            duration_minutes=duration_minutes,
            calories_burned=calories_burned(
                spec.met, profile.weight_kg, duration_minutes
            ),
        )
        self._commit(
            state,
            lambda s: s.activities.insert(0, entry),
            extra=self.gate.activity_usage_update(),
        )
        self._best_effort(
            "archive", entry.id, lambda: self.archive.append_activity_record(entry)
        )
        return entry

    def delete_scan(self, entry_id: str) -> None:
        """Remove a scan from today's ledger and from the archive."""
        state = self._require_ready()
        if any(scan.id == entry_id for scan in state.scans):
            self._commit(
                state,
                lambda s: setattr(
                    s, "scans", [scan for scan in s.scans if scan.id != entry_id]
                ),
            )
        self._best_effort("archive", entry_id, lambda: self.archive.remove(entry_id))

    def delete_activity(self, entry_id: str) -> None:
        """Remove an activity from today's ledger and from the archive."""
        state = self._require_ready()
        if any(activity.id == entry_id for activity in state.activities):
            self._commit(
                state,
                lambda s: setattr(
                    s,
                    "activities",
                    [act for act in s.activities if act.id != entry_id],
                ),
            )
        self._best_effort(
            "archive", entry_id, lambda: self.archive.remove_activity(entry_id)
        )

    def toggle_expanded(self, entry_id: str) -> ScanEntry | None:
        """Flip the display-only expanded flag of a scan."""
        state = self._require_ready()
        toggled: ScanEntry | None = None
        scans = []
        for scan in state.scans:
            if scan.id == entry_id:
                toggled = replace(scan, expanded=not scan.expanded)
                scans.append(toggled)
            else:
                scans.append(scan)
        if toggled is not None:
            self._commit(state, lambda s: setattr(s, "scans", scans))
        return toggled

    def clear_today(self, include_water: bool = True) -> None:
        """Empty today's tracker. History is left untouched."""
        state = self._require_ready()

        def _clear(target: LedgerState) -> None:
            target.scans = []
            target.activities = []
            if include_water:
                target.water_cups = 0

        self._commit(state, _clear)

    def add_water_cup(self) -> int:
        """Increment today's water count and return it."""
        state = self._require_ready()
        self._commit(state, lambda s: setattr(s, "water_cups", s.water_cups + 1))
        return state.water_cups

    def remove_water_cup(self) -> int:
        """Decrement today's water count, never below zero."""
        state = self._require_ready()
        if state.water_cups > 0:
            self._commit(state, lambda s: setattr(s, "water_cups", s.water_cups - 1))
        return state.water_cups

    def total_consumed(self) -> int:
        """Sum of today's scanned calories."""
        return sum(scan.calories for scan in self._require_ready().scans)

    def total_burned(self) -> int:
        """Sum of today's burned calories."""
        return sum(act.calories_burned for act in self._require_ready().activities)

    def remaining(self) -> int:
        """Goal minus consumed plus burned, floored at zero."""
        goal = self.profile_store.load().daily_goal_calories
        return max(0, goal - self.total_consumed() + self.total_burned())

    def snapshot(self) -> LedgerSnapshot:
        """Return a read-only view with derived totals."""
        state = self._require_ready()
        goal = self.profile_store.load().daily_goal_calories
        consumed = self.total_consumed()
        burned = self.total_burned()
        return LedgerSnapshot(
            date_stamp=state.date_stamp,
            scans=tuple(state.scans),
            activities=tuple(state.activities),
            water_cups=state.water_cups,
            daily_goal_calories=goal,
            total_consumed=consumed,
            total_burned=burned,
            remaining=max(0, goal - consumed + burned),
        )

    def _require_ready(self) -> LedgerState:
        if self._state is None:
            raise LedgerNotReadyError(
                "reconcile_day() must run before using the ledger"
            )
        return self._state

    def _load(self, day: CalendarDay) -> LedgerState | None:
        values = self.store.get_many(_LEDGER_KEYS)
        raw_day = values.get(LEDGER_DATE_KEY)
        if not isinstance(raw_day, str):
            return None
        try:
            stored_day = CalendarDay.parse(raw_day)
        except ValueError:
            logger.warning(
                "Ignoring ledger with malformed date", extra={"raw": raw_day}
            )
            return None
        if stored_day != day:
            return None
        water = values.get(LEDGER_WATER_KEY)
        return LedgerState(
            date_stamp=stored_day,
            scans=scans_from_value(values.get(LEDGER_SCANS_KEY)),
            activities=activities_from_value(values.get(LEDGER_ACTIVITIES_KEY)),
            water_cups=water if isinstance(water, int) and water > 0 else 0,
        )

    def _persist(
        self, state: LedgerState, extra: dict[str, object] | None = None
    ) -> None:
        self.store.set_many(
            {
                **(extra or {}),
                LEDGER_DATE_KEY: state.date_stamp.key,
                LEDGER_SCANS_KEY: [scan_to_row(scan) for scan in state.scans],
                LEDGER_ACTIVITIES_KEY: [
                    activity_to_row(act) for act in state.activities
                ],
                LEDGER_WATER_KEY: state.water_cups,
            }
        )

    def _commit(
        self,
        state: LedgerState,
        mutate: Callable[[LedgerState], None],
        extra: dict[str, object] | None = None,
    ) -> None:
        backup = replace(
            state, scans=list(state.scans), activities=list(state.activities)
        )
        mutate(state)
        try:
            self._persist(state, extra)
        except StorageError:
            state.scans = backup.scans
            state.activities = backup.activities
            state.water_cups = backup.water_cups
            logger.exception("Failed to persist ledger; change reverted")
            raise

    def _best_effort(
        self, step: str, entry_id: str, action: Callable[[], None]
    ) -> None:
        try:
            action()
        except StorageError:
            logger.exception(
                "Ledger write succeeded but follow-up step failed",
                extra={"step": step, "entry_id": entry_id},
            )

    def _next_id(self, now: datetime, state: LedgerState) -> str:
        taken = {scan.id for scan in state.scans} | {
            act.id for act in state.activities
        }
        candidate = max(int(now.timestamp() * 1000), self._last_id + 1)
        while str(candidate) in taken:
            candidate += 1
        self._last_id = candidate
        return str(candidate)

    def _normalize_slots(
        self, calories: int, weight_kg: float, provided: list[ActivitySlot]
    ) -> tuple[ActivitySlot, ...]:
        is_pro = self.gate.is_pro()
        slots = []
        equivalents = exercise_equivalents(calories, weight_kg)
        for index, equivalent in enumerate(equivalents):
            given = provided[index] if index < len(provided) else None
            if not is_pro and index >= self.gate.pro_unlock_index:
                slots.append(
                    ActivitySlot(
                        equivalent.label, StatusTier.LOCKED, LOCKED_SUMMARY
                    )
                )
                continue
            slots.append(_fill_slot(equivalent, given))
        return tuple(slots)


def _fill_slot(
    equivalent: ExerciseEquivalent, given: ActivitySlot | None
) -> ActivitySlot:
    if given is None:
        return ActivitySlot(
            label=equivalent.label,
            status_tier=StatusTier.MODERATE,
            summary_text=format_minutes(equivalent.minutes),
        )
    tier = given.status_tier
    summary = given.summary_text.strip()
    if tier == StatusTier.LOCKED:
        logger.warning(
            "Unlocking slot the model marked as locked",
            extra={"label": equivalent.label},
        )
        tier = StatusTier.MODERATE
        summary = ""
    return ActivitySlot(
        label=given.label or equivalent.label,
        status_tier=tier,
        summary_text=summary or format_minutes(equivalent.minutes),
    )
