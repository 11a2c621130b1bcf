"""Subscription tier and free-tier daily quotas."""

import logging
from dataclasses import dataclass, replace
from typing import Protocol

from burn_tracker.domain.calendar import CalendarDay
from burn_tracker.domain.quota import (
    DEFAULT_FREE_SCAN_LIMIT,
    DEFAULT_MAX_ACTIVITIES,
    DEFAULT_PRO_UNLOCK_INDEX,
    QuotaState,
    QuotaUsage,
)
from burn_tracker.services.clock import Clock
from burn_tracker.services.storage import QUOTA_KEY, KeyValueStore

logger = logging.getLogger(__name__)


class SubscriptionOracle(Protocol):
    """Answers whether the current user holds a paid subscription."""

    @property
    def loading(self) -> bool:
        """Return True while the subscription status is still resolving."""

    def is_pro(self) -> bool:
        """Return True for paying users."""


@dataclass
class EntitlementGate:
    """Bounds scans and activity logs for free users, reset every day.

    Quota exhaustion is reported through the can_* booleans; nothing here
    raises for a denied operation. The *_usage_update methods return the
    counter write so the ledger can persist it in the same batch as the entry.
    """

    oracle: SubscriptionOracle
    store: KeyValueStore
    clock: Clock
    free_scan_limit: int = DEFAULT_FREE_SCAN_LIMIT
    max_activities: int = DEFAULT_MAX_ACTIVITIES
    pro_unlock_index: int = DEFAULT_PRO_UNLOCK_INDEX

    def is_pro(self) -> bool:
        """Ask the subscription oracle; never cached between calls.

        A status that is still loading counts as free until it resolves.
        """
        if self.oracle.loading:
            return False
        return self.oracle.is_pro()

    def can_scan(self) -> bool:
        """Return True when another scan is allowed today."""
        if self.is_pro():
            return True
        return self._current_state().scan_count < self.free_scan_limit

    def can_log_activity(self) -> bool:
        """Return True when another activity log is allowed today."""
        if self.is_pro():
            return True
        return self._current_state().activity_count < self.max_activities

    def record_scan_usage(self) -> None:
        """Count a scan against the free quota; no-op for pro users."""
        self._save(self.scan_usage_update())

    def record_activity_usage(self) -> None:
        """Count an activity log against the free quota; no-op for pro users."""
        self._save(self.activity_usage_update())

    def scan_usage_update(self) -> dict[str, object]:
        """Return the store write that counts one more scan; empty for pro."""
        if self.is_pro():
            return {}
        state = self._current_state()
        return _state_write(replace(state, scan_count=state.scan_count + 1))

    def activity_usage_update(self) -> dict[str, object]:
        """Return the store write that counts one more activity; empty for pro."""
        if self.is_pro():
            return {}
        state = self._current_state()
        return _state_write(replace(state, activity_count=state.activity_count + 1))

    def usage(self) -> QuotaUsage:
        """Return today's counters and limits."""
        state = self._current_state()
        return QuotaUsage(
            is_pro=self.is_pro(),
            scan_count=state.scan_count,
            scan_limit=self.free_scan_limit,
            activity_count=state.activity_count,
            activity_limit=self.max_activities,
        )

    def _current_state(self) -> QuotaState:
        today = self.clock.today()
        state = _parse_state(self.store.get(QUOTA_KEY))
        if state is None or state.date_stamp != today:
            return QuotaState(date_stamp=today)
        return state

    def _save(self, update: dict[str, object]) -> None:
        if update:
            self.store.set_many(update)


def _state_write(state: QuotaState) -> dict[str, object]:
    return {
        QUOTA_KEY: {
            "date": state.date_stamp.key,
            "scanCount": state.scan_count,
            "activityCount": state.activity_count,
        }
    }


def _parse_state(raw: object) -> QuotaState | None:
    if not isinstance(raw, dict):
        return None
    try:
        day = CalendarDay.parse(str(raw.get("date", "")))
    except ValueError:
        logger.warning("Discarding quota state with malformed date")
        return None
    return QuotaState(
        date_stamp=day,
        scan_count=_count(raw.get("scanCount")),
        activity_count=_count(raw.get("activityCount")),
    )


def _count(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return max(0, value)
    return 0
