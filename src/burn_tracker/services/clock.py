"""Single source of "now" and "today" for every component."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from burn_tracker.domain.calendar import CalendarDay


class Clock(Protocol):
    """Provides the current time and the local calendar day."""

    @property
    def tz(self) -> ZoneInfo:
        """Timezone that defines day boundaries."""

    def now(self) -> datetime:
        """Return the current timezone-aware time."""

    def today(self) -> CalendarDay:
        """Return the current local calendar day."""


@dataclass
class SystemClock(Clock):
    """Wall clock evaluated in a configured timezone."""

    timezone_name: str = "UTC"

    @property
    def tz(self) -> ZoneInfo:
        """Return the configured timezone."""
        return ZoneInfo(self.timezone_name)

    def now(self) -> datetime:
        """Return the current time in the configured timezone."""
        return datetime.now(tz=self.tz)

    def today(self) -> CalendarDay:
        """Return today's calendar day in the configured timezone."""
        return CalendarDay.from_date(self.now().date())
