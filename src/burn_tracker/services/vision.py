"""Vision estimation service using LLMs."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from burn_tracker.domain.activities import ACTIVITY_SLOT_COUNT, ACTIVITY_TABLE
from burn_tracker.domain.errors import ExternalServiceError
from burn_tracker.domain.profile import Profile
from burn_tracker.domain.quota import DEFAULT_PRO_UNLOCK_INDEX
from burn_tracker.domain.vision import (
    MultiCandidate,
    SingleEstimate,
    VisionEstimate,
    VisionPayload,
)

logger = logging.getLogger(__name__)

_ACTIVITY_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "status": {
            "type": "string",
            "enum": ["SAFE", "CAUTION", "UNSAFE", "WAITING"],
        },
        "summary": {"type": "string"},
    },
    "required": ["status", "summary"],
    "additionalProperties": False,
}

VISION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "candidates": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "product_name": {"type": "string"},
                    "calories": {"type": "integer", "minimum": 0},
                    "activities": {
                        "type": "array",
                        "items": _ACTIVITY_SCHEMA,
                        "minItems": ACTIVITY_SLOT_COUNT,
                        "maxItems": ACTIVITY_SLOT_COUNT,
                    },
                },
                "required": ["product_name", "calories", "activities"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["candidates"],
    "additionalProperties": False,
}


class VisionClient(Protocol):
    """Interface for LLM vision analysis."""

    async def analyze(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured analysis data."""


@dataclass
class VisionService:
    """Service that prepares vision prompts and validates results."""

    client: VisionClient
    model: str
    reasoning_effort: str | None
    store: bool

    async def analyze(
        self,
        image_bytes: bytes,
        *,
        profile: Profile,
        is_pro: bool,
        unlock_index: int = DEFAULT_PRO_UNLOCK_INDEX,
    ) -> VisionEstimate:
        """Estimate the meal in an image.

        Any failure of the client or a malformed payload is raised as
        ExternalServiceError.
        """
        data_url = _to_data_url(image_bytes)
        try:
            raw = await self.client.analyze(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                image_data_url=data_url,
                schema=VISION_SCHEMA,
                prompt=build_prompt(profile, is_pro, unlock_index),
            )
        except ExternalServiceError:
            raise
        except Exception as exc:
            raise ExternalServiceError(f"Vision request failed: {exc}") from exc
        return parse_estimate(raw)


def parse_estimate(raw: object) -> VisionEstimate:
    """Validate a raw payload into a single or multi-candidate estimate."""
    try:
        payload = VisionPayload.model_validate(raw)
    except ValidationError as exc:
        logger.warning(
            "Rejected malformed vision payload",
            extra={"error_count": exc.error_count()},
        )
        raise ExternalServiceError("Vision response was malformed") from exc
    if len(payload.candidates) == 1:
        return SingleEstimate(candidate=payload.candidates[0])
    return MultiCandidate(candidates=tuple(payload.candidates))


def build_prompt(
    profile: Profile, is_pro: bool, unlock_index: int = DEFAULT_PRO_UNLOCK_INDEX
) -> str:
    """Build the analysis prompt with the user's context.

    For free users, activities from position unlock_index + 1 onward are
    requested as locked placeholders.
    """
    activity_lines = "\n".join(
        f"   - Activity {index}: {spec.label} ({spec.prompt_hint})"
        for index, spec in enumerate(ACTIVITY_TABLE, start=1)
    )
    locked_note = "" if is_pro else _locked_note(unlock_index)
    return (
        "1. Identify the meal or food items in the image and estimate the total "
        "calories as an integer.\n"
        "2. If the image is ambiguous, return up to 3 candidate interpretations, "
        "most likely first. Otherwise return exactly one candidate.\n"
        f"3. For each candidate, describe how long each of these {len(ACTIVITY_TABLE)} "
        "activities must be done to burn that calorie count:\n"
        f"{activity_lines}\n"
        "4. For each activity:\n"
        '   - Status is "SAFE" for healthy food, "CAUTION" for moderately '
        'processed food, "UNSAFE" for very high calorie or junk food.\n'
        '   - Summary states the duration (e.g. "45 minutes") and a short tip.\n'
        f"{locked_note}"
        "User context: "
        f"{profile.gender.value}, {profile.age_years} years, "
        f"{profile.weight_kg:.1f} kg, "
        f"daily goal {profile.daily_goal_calories} kcal."
    )


def _locked_note(unlock_index: int) -> str:
    total = len(ACTIVITY_TABLE)
    first_locked = max(unlock_index, 0) + 1
    if first_locked > total:
        return ""
    span = (
        f"Activity {total} is"
        if first_locked == total
        else f"Activities {first_locked} to {total} are"
    )
    return (
        f"   - {span} locked for this user. For those use status \"WAITING\" "
        'and summary "Premium Feature".\n'
    )


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
