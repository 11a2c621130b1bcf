"""Profile persistence with atomic, validated saves."""

import logging
import math
from dataclasses import dataclass

from burn_tracker.domain.profile import (
    DEFAULT_PROFILE,
    Gender,
    Profile,
    ProfileValidationError,
    validate_profile,
)
from burn_tracker.services.storage import (
    PROFILE_AGE_KEY,
    PROFILE_GENDER_KEY,
    PROFILE_GOAL_KEY,
    PROFILE_WEIGHT_KEY,
    KeyValueStore,
)

logger = logging.getLogger(__name__)

_PROFILE_KEYS = [
    PROFILE_GENDER_KEY,
    PROFILE_AGE_KEY,
    PROFILE_WEIGHT_KEY,
    PROFILE_GOAL_KEY,
]


@dataclass
class ProfileStore:
    """Loads and saves the user's profile fields."""

    store: KeyValueStore

    def load(self) -> Profile:
        """Return the stored profile; missing fields use their defaults."""
        values = self.store.get_many(_PROFILE_KEYS)
        return Profile(
            gender=_parse_gender(values.get(PROFILE_GENDER_KEY)),
            age_years=_parse_int(
                values.get(PROFILE_AGE_KEY), DEFAULT_PROFILE.age_years
            ),
            weight_kg=_parse_float(
                values.get(PROFILE_WEIGHT_KEY), DEFAULT_PROFILE.weight_kg
            ),
            daily_goal_calories=_parse_int(
                values.get(PROFILE_GOAL_KEY), DEFAULT_PROFILE.daily_goal_calories
            ),
        )

    def save(self, candidate: Profile) -> ProfileValidationError | None:
        """Validate and persist the whole profile, or change nothing."""
        error = validate_profile(candidate)
        if error is not None:
            logger.info(
                "Rejected profile update", extra={"fields": sorted(error.errors)}
            )
            return error
        self.store.set_many(
            {
                PROFILE_GENDER_KEY: candidate.gender.value,
                PROFILE_AGE_KEY: str(candidate.age_years),
                PROFILE_WEIGHT_KEY: str(candidate.weight_kg),
                PROFILE_GOAL_KEY: str(candidate.daily_goal_calories),
            }
        )
        return None


def _parse_gender(raw: object) -> Gender:
    if isinstance(raw, str):
        try:
            return Gender(raw.strip().capitalize())
        except ValueError:
            return DEFAULT_PROFILE.gender
    return DEFAULT_PROFILE.gender


def _parse_int(raw: object, default: int) -> int:
    if isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return default
    return default


def _parse_float(raw: object, default: float) -> float:
    if isinstance(raw, bool):
        return default
    if isinstance(raw, int | float):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return default
    else:
        return default
    return value if math.isfinite(value) else default
