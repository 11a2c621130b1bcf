"""Domain models for the daily ledger and the permanent archive."""

from dataclasses import dataclass, field
from enum import Enum

from burn_tracker.domain.activities import ActivityType
from burn_tracker.domain.calendar import CalendarDay

MAX_DURATION_MINUTES = 24 * 60


class StatusTier(str, Enum):
    """Health tier shown for an activity slot."""

    HEALTHY = "Healthy"
    MODERATE = "Moderate"
    UNHEALTHY = "Unhealthy"
    LOCKED = "Locked"


_STATUS_ALIASES = {
    "HEALTHY": StatusTier.HEALTHY,
    "SAFE": StatusTier.HEALTHY,
    "MODERATE": StatusTier.MODERATE,
    "CAUTION": StatusTier.MODERATE,
    "UNHEALTHY": StatusTier.UNHEALTHY,
    "UNSAFE": StatusTier.UNHEALTHY,
    "LOCKED": StatusTier.LOCKED,
    "WAITING": StatusTier.LOCKED,
}


def parse_status_tier(raw: object) -> StatusTier:
    """Map a vision or stored status string to a tier."""
    if isinstance(raw, StatusTier):
        return raw
    if isinstance(raw, str):
        return _STATUS_ALIASES.get(raw.strip().upper(), StatusTier.MODERATE)
    return StatusTier.MODERATE


@dataclass(frozen=True)
class ActivitySlot:
    """One of the ten exercise equivalents attached to a scan."""

    label: str
    status_tier: StatusTier
    summary_text: str


@dataclass(frozen=True)
class ScanEntry:
    """A scanned meal in today's ledger."""

    id: str
    created_at: str
    product_name: str
    calories: int
    activity_slots: tuple[ActivitySlot, ...]
    expanded: bool = False


@dataclass(frozen=True)
class ActivityLogEntry:
    """A manually logged exercise session."""

    id: str
    timestamp: str
    activity_type: ActivityType
    duration_minutes: int
    calories_burned: int


@dataclass
class LedgerState:
    """Today's consumed and burned entries."""

    date_stamp: CalendarDay
    scans: list[ScanEntry] = field(default_factory=list)
    activities: list[ActivityLogEntry] = field(default_factory=list)
    water_cups: int = 0


@dataclass(frozen=True)
class LedgerSnapshot:
    """Read-only view of the ledger with derived totals."""

    date_stamp: CalendarDay
    scans: tuple[ScanEntry, ...]
    activities: tuple[ActivityLogEntry, ...]
    water_cups: int
    daily_goal_calories: int
    total_consumed: int
    total_burned: int
    remaining: int


@dataclass(frozen=True)
class DayGroup:
    """History entries bucketed under one calendar day key."""

    day_key: str
    entries: tuple[object, ...]
    total: int


@dataclass(frozen=True)
class QuotaExceeded:
    """A gated write was denied because the free-tier quota is used up."""

    resource: str
    limit: int


@dataclass(frozen=True)
class InvalidDuration:
    """An activity duration was outside 1 to MAX_DURATION_MINUTES minutes."""

    duration_minutes: int
