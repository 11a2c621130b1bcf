"""Domain models for free-tier quotas."""

from dataclasses import dataclass

from burn_tracker.domain.calendar import CalendarDay

DEFAULT_FREE_SCAN_LIMIT = 3
DEFAULT_MAX_ACTIVITIES = 5
DEFAULT_PRO_UNLOCK_INDEX = 2


@dataclass(frozen=True)
class QuotaState:
    """Per-day usage counters for the free tier."""

    date_stamp: CalendarDay
    scan_count: int = 0
    activity_count: int = 0


@dataclass(frozen=True)
class QuotaUsage:
    """Usage summary for display and upgrade prompts."""

    is_pro: bool
    scan_count: int
    scan_limit: int
    activity_count: int
    activity_limit: int

    @property
    def scans_remaining(self) -> int | None:
        """Remaining free scans today, or None when unlimited."""
        if self.is_pro:
            return None
        return max(0, self.scan_limit - self.scan_count)

    @property
    def activities_remaining(self) -> int | None:
        """Remaining free activity logs today, or None when unlimited."""
        if self.is_pro:
            return None
        return max(0, self.activity_limit - self.activity_count)
