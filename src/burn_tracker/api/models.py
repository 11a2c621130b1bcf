"""Pydantic request and response models for the HTTP API."""

from pydantic import BaseModel, Field

from burn_tracker.domain.activities import ActivityType
from burn_tracker.domain.profile import Gender


class ActivitySlotOut(BaseModel):
    """Exercise equivalent shown on a scan card."""

    label: str
    status: str
    summary: str


class ScanEntryOut(BaseModel):
    """Scanned meal."""

    id: str
    created_at: str
    product_name: str
    calories: int
    expanded: bool
    activities: list[ActivitySlotOut]


class ActivityEntryOut(BaseModel):
    """Logged exercise session."""

    id: str
    timestamp: str
    activity_type: ActivityType
    duration_minutes: int
    calories_burned: int


class LedgerOut(BaseModel):
    """Today's ledger with derived totals."""

    date: str
    daily_goal_calories: int
    total_consumed: int
    total_burned: int
    remaining: int
    water_cups: int
    scans: list[ScanEntryOut]
    activities: list[ActivityEntryOut]


class ProfileIn(BaseModel):
    """Profile update; range checks happen in the profile store."""

    gender: Gender
    age_years: int
    weight_kg: float = Field(allow_inf_nan=False)
    daily_goal_calories: int


class ProfileOut(BaseModel):
    """Stored profile."""

    gender: Gender
    age_years: int
    weight_kg: float
    daily_goal_calories: int


class ActivityLogIn(BaseModel):
    """Manual activity log request."""

    activity_type: ActivityType
    duration_minutes: int


class ConfirmSelectionIn(BaseModel):
    """Index of the chosen candidate."""

    choice: int = Field(ge=0)


class CandidateOut(BaseModel):
    """One candidate interpretation of a meal photo."""

    index: int
    product_name: str
    calories: int


class PendingSelectionOut(BaseModel):
    """Candidates awaiting confirmation."""

    status: str = "pending_selection"
    candidates: list[CandidateOut]


class QuotaOut(BaseModel):
    """Free-tier usage for today."""

    is_pro: bool
    scan_count: int
    scan_limit: int
    scans_remaining: int | None
    activity_count: int
    activity_limit: int
    activities_remaining: int | None


class ActivityTypeOut(BaseModel):
    """Activity table row with the user's burn rate."""

    activity_type: ActivityType
    label: str
    met: float
    calories_per_minute: float
    minutes_per_100_kcal: float | None


class ScanDayOut(BaseModel):
    """Archived scans for one day."""

    day_key: str
    label: str
    total_calories: int
    entries: list[ScanEntryOut]


class ActivityDayOut(BaseModel):
    """Archived activities for one day."""

    day_key: str
    label: str
    total_burned: int
    entries: list[ActivityEntryOut]
