"""Domain models for the user's physiological profile."""

import math
from dataclasses import dataclass
from enum import Enum

MIN_AGE_YEARS = 1
MAX_AGE_YEARS = 120
MIN_WEIGHT_KG = 30.0
MIN_DAILY_GOAL = 500
MAX_DAILY_GOAL = 10000


class Gender(str, Enum):
    """Gender values used for the vision prompt context."""

    MALE = "Male"
    FEMALE = "Female"


@dataclass(frozen=True)
class Profile:
    """User profile used for burn calculations and the daily goal."""

    gender: Gender = Gender.MALE
    age_years: int = 25
    weight_kg: float = 70.0
    daily_goal_calories: int = 2000


DEFAULT_PROFILE = Profile()


@dataclass(frozen=True)
class ProfileValidationError:
    """Field-level validation failures for a rejected profile save."""

    errors: dict[str, str]


def validate_profile(candidate: Profile) -> ProfileValidationError | None:
    """Validate every field at once and collect all failures."""
    errors: dict[str, str] = {}
    if not isinstance(candidate.gender, Gender):
        errors["gender"] = "Gender must be Male or Female."
    if not _is_int(candidate.age_years) or not (
        MIN_AGE_YEARS <= candidate.age_years <= MAX_AGE_YEARS
    ):
        errors["age_years"] = "Please enter a valid age."
    weight = candidate.weight_kg
    if not _is_finite_number(weight) or weight < MIN_WEIGHT_KG:
        errors["weight_kg"] = f"Weight must be at least {MIN_WEIGHT_KG:.0f} kg."
    if not _is_int(candidate.daily_goal_calories) or not (
        MIN_DAILY_GOAL <= candidate.daily_goal_calories <= MAX_DAILY_GOAL
    ):
        errors["daily_goal_calories"] = (
            "Please enter a calorie goal between 500 and 10,000."
        )
    if errors:
        return ProfileValidationError(errors=errors)
    return None


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value)
