"""Models for vision estimation results."""

from dataclasses import dataclass

from pydantic import BaseModel, Field

from burn_tracker.domain.activities import ACTIVITY_SLOT_COUNT


class VisionActivity(BaseModel):
    """Status and summary for one exercise equivalent."""

    status: str
    summary: str


class VisionCandidate(BaseModel):
    """One interpretation of the photographed meal."""

    product_name: str = Field(min_length=1)
    calories: int = Field(ge=0)
    activities: list[VisionActivity] = Field(
        min_length=ACTIVITY_SLOT_COUNT, max_length=ACTIVITY_SLOT_COUNT
    )


class VisionPayload(BaseModel):
    """Structured output returned by the vision model."""

    candidates: list[VisionCandidate] = Field(min_length=1)


@dataclass(frozen=True)
class SingleEstimate:
    """The model settled on one interpretation."""

    candidate: VisionCandidate


@dataclass(frozen=True)
class MultiCandidate:
    """The model returned several interpretations for the user to pick from."""

    candidates: tuple[VisionCandidate, ...]


VisionEstimate = SingleEstimate | MultiCandidate
