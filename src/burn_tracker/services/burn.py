"""MET-based energy expenditure calculations.

All functions are pure. Calories per minute follow the standard conversion
``MET * weight_kg * 3.5 / 200``. Whole-calorie results round half up, so
514.5 becomes 515.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from burn_tracker.domain.activities import ACTIVITY_TABLE, ActivityType

OXYGEN_ML_PER_KG_MIN = 3.5
KCAL_DIVISOR = 200


@dataclass(frozen=True)
class ExerciseEquivalent:
    """Minutes of one activity needed to burn a calorie amount."""

    activity_type: ActivityType
    label: str
    met: float
    minutes: float | None


def calories_per_minute(met: float, weight_kg: float) -> float:
    """Return kcal burned per minute at a MET level and body weight."""
    return (met * weight_kg * OXYGEN_ML_PER_KG_MIN) / KCAL_DIVISOR


def duration_minutes_to_burn(
    met: float, weight_kg: float, target_calories: float
) -> float | None:
    """Return minutes needed to burn target_calories.

    Returns None when met or weight_kg is not positive; callers must guard.
    """
    if met <= 0 or weight_kg <= 0:
        return None
    return target_calories / calories_per_minute(met, weight_kg)


def calories_burned(met: float, weight_kg: float, duration_minutes: float) -> int:
    """Return whole calories burned for a session, rounded half up."""
    raw = calories_per_minute(met, weight_kg) * duration_minutes
    return round_half_up(raw)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going away from zero."""
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def exercise_equivalents(calories: float, weight_kg: float) -> list[ExerciseEquivalent]:
    """Return burn durations for every activity in table order."""
    return [
        ExerciseEquivalent(
            activity_type=spec.activity_type,
            label=spec.label,
            met=spec.met,
            minutes=duration_minutes_to_burn(spec.met, weight_kg, calories),
        )
        for spec in ACTIVITY_TABLE
    ]


def format_minutes(minutes: float | None) -> str:
    """Render a duration such as "42 minutes" or "1 h 5 min"."""
    if minutes is None:
        return "Duration unavailable"
    whole = round_half_up(minutes)
    if whole < 60:  # noqa: PLR2004
        return f"{whole} minutes"
    hours, rest = divmod(whole, 60)
    if rest == 0:
        return f"{hours} h"
    return f"{hours} h {rest} min"
