"""Fixed exercise table with MET constants."""

from dataclasses import dataclass
from enum import Enum


class ActivityType(str, Enum):
    """Exercise types that can be logged or used as burn equivalents."""

    RUNNING = "running"
    WALKING = "walking"
    WEIGHT_TRAINING = "weight_training"
    CYCLING = "cycling"
    SWIMMING = "swimming"
    HIIT = "hiit"
    YOGA = "yoga"
    ROWING = "rowing"
    JUMP_ROPE = "jump_rope"
    HIKING = "hiking"


@dataclass(frozen=True)
class ActivitySpec:
    """Label and MET value for one activity type."""

    activity_type: ActivityType
    label: str
    met: float
    prompt_hint: str


ACTIVITY_TABLE: tuple[ActivitySpec, ...] = (
    ActivitySpec(ActivityType.RUNNING, "Running", 10.0, "moderate pace"),
    ActivitySpec(ActivityType.WALKING, "Walking", 3.5, "brisk"),
    ActivitySpec(
        ActivityType.WEIGHT_TRAINING, "Weight Training", 6.0, "high intensity"
    ),
    ActivitySpec(ActivityType.CYCLING, "Cycling", 7.5, "moderate effort"),
    ActivitySpec(ActivityType.SWIMMING, "Swimming", 8.0, "freestyle laps"),
    ActivitySpec(ActivityType.HIIT, "HIIT", 11.0, "exercise class"),
    ActivitySpec(ActivityType.YOGA, "Yoga", 2.5, "yoga or pilates"),
    ActivitySpec(ActivityType.ROWING, "Rowing", 7.0, "machine, moderate"),
    ActivitySpec(ActivityType.JUMP_ROPE, "Jump Rope", 12.0, "steady rhythm"),
    ActivitySpec(ActivityType.HIKING, "Hiking", 6.5, "uneven terrain"),
)

ACTIVITY_SLOT_COUNT = len(ACTIVITY_TABLE)

_BY_TYPE = {spec.activity_type: spec for spec in ACTIVITY_TABLE}


def activity_spec(activity_type: ActivityType) -> ActivitySpec:
    """Return the table entry for an activity type."""
    return _BY_TYPE[activity_type]
