"""Calendar day keys used for ledger rollover and history grouping."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

UNKNOWN_DAY_KEY = "Unknown"

_MONTHS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


@dataclass(frozen=True, order=True)
class CalendarDay:
    """A local (year, month, day) triple, distinct from a full timestamp."""

    year: int
    month: int
    day: int

    @classmethod
    def from_date(cls, value: date) -> "CalendarDay":
        """Build a calendar day from a date."""
        return cls(year=value.year, month=value.month, day=value.day)

    @classmethod
    def from_datetime(cls, value: datetime, tz: ZoneInfo) -> "CalendarDay":
        """Return the day a timestamp falls on in the given timezone."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=tz)
        return cls.from_date(value.astimezone(tz).date())

    @classmethod
    def parse(cls, key: str) -> "CalendarDay":
        """Parse a YYYY/MM/DD key; raises ValueError on malformed input."""
        parts = key.strip().split("/")
        if len(parts) != 3:  # noqa: PLR2004
            raise ValueError(f"Invalid calendar day key: {key!r}")
        year, month, day = (int(part) for part in parts)
        return cls.from_date(date(year, month, day))

    @property
    def key(self) -> str:
        """Return the persisted YYYY/MM/DD form."""
        return f"{self.year:04d}/{self.month:02d}/{self.day:02d}"

    def to_date(self) -> date:
        """Return the equivalent date."""
        return date(self.year, self.month, self.day)

    def previous(self) -> "CalendarDay":
        """Return the preceding calendar day."""
        return CalendarDay.from_date(self.to_date() - timedelta(days=1))

    def __str__(self) -> str:
        return self.key


def day_key_for_timestamp(raw: object, tz: ZoneInfo) -> str:
    """Return the day key for an ISO timestamp, or the Unknown key."""
    if not isinstance(raw, str) or not raw:
        return UNKNOWN_DAY_KEY
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return UNKNOWN_DAY_KEY
    return CalendarDay.from_datetime(parsed, tz).key


def readable_day(key: str, today: CalendarDay) -> str:
    """Return a display label such as Today, Yesterday or Oct 3, 2026."""
    if not key or key == UNKNOWN_DAY_KEY:
        return "Unknown Date"
    try:
        day = CalendarDay.parse(key)
    except ValueError:
        return "Unknown Date"
    if day == today:
        return "Today"
    if day == today.previous():
        return "Yesterday"
    return f"{_MONTHS[day.month - 1]} {day.day}, {day.year}"
