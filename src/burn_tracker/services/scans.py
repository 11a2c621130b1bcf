"""Photo scan flow: quota check, vision call, disambiguation, ledger write."""

import logging
from dataclasses import dataclass, field

from burn_tracker.domain.activities import ACTIVITY_TABLE
from burn_tracker.domain.errors import (
    ExternalServiceError,
    InvalidSelectionError,
    NoPendingSelectionError,
)
from burn_tracker.domain.ledger import (
    ActivitySlot,
    QuotaExceeded,
    ScanEntry,
    parse_status_tier,
)
from burn_tracker.domain.vision import MultiCandidate, VisionCandidate
from burn_tracker.services.entitlements import EntitlementGate
from burn_tracker.services.ledger import DailyLedger
from burn_tracker.services.profile import ProfileStore
from burn_tracker.services.vision import VisionService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingSelection:
    """Candidates waiting for the user to pick one."""

    candidates: tuple[VisionCandidate, ...]


@dataclass
class ScanService:
    """Turns a meal photo into a ledger entry."""

    vision_service: VisionService
    ledger: DailyLedger
    gate: EntitlementGate
    profile_store: ProfileStore
    _pending: PendingSelection | None = field(default=None, init=False, repr=False)

    async def analyze(
        self, image_bytes: bytes
    ) -> ScanEntry | PendingSelection | QuotaExceeded:
        """Analyze a photo and record it, or hold candidates for selection.

        ExternalServiceError propagates to the caller and nothing is recorded.
        """
        self.ledger.reconcile_day()
        if not self.gate.can_scan():
            return QuotaExceeded(resource="scan", limit=self.gate.free_scan_limit)
        profile = self.profile_store.load()
        try:
            estimate = await self.vision_service.analyze(
                image_bytes,
                profile=profile,
                is_pro=self.gate.is_pro(),
                unlock_index=self.gate.pro_unlock_index,
            )
        except ExternalServiceError:
            logger.exception("Vision analysis failed; no scan recorded")
            raise
        if isinstance(estimate, MultiCandidate):
            self._pending = PendingSelection(candidates=estimate.candidates)
            logger.info(
                "Holding candidates for selection",
                extra={"candidate_count": len(estimate.candidates)},
            )
            return self._pending
        self._pending = None
        return self._record(estimate.candidate)

    def pending(self) -> PendingSelection | None:
        """Return the candidate set awaiting confirmation, if any."""
        return self._pending

    def confirm_selection(self, choice: int) -> ScanEntry | QuotaExceeded:
        """Record exactly one of the pending candidates."""
        if self._pending is None:
            raise NoPendingSelectionError("No scan is waiting for a selection")
        if not 0 <= choice < len(self._pending.candidates):
            raise InvalidSelectionError(f"Choice {choice} is out of range")
        candidate = self._pending.candidates[choice]
        self.ledger.reconcile_day()
        result = self._record(candidate)
        if isinstance(result, ScanEntry):
            self._pending = None
        return result

    def discard_pending(self) -> None:
        """Drop any pending candidates without recording."""
        self._pending = None

    def _record(self, candidate: VisionCandidate) -> ScanEntry | QuotaExceeded:
        slots = [
            ActivitySlot(
                label=spec.label,
                status_tier=parse_status_tier(activity.status),
                summary_text=activity.summary,
            )
            for spec, activity in zip(
                ACTIVITY_TABLE, candidate.activities, strict=False
            )
        ]
        return self.ledger.record_scan(
            calories=candidate.calories,
            product_name=candidate.product_name,
            activity_slots=slots,
        )
