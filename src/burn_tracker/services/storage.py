"""Key-value persistence interface shared by the ledger components."""

from typing import Protocol

PROFILE_GENDER_KEY = "@user_gender"
PROFILE_AGE_KEY = "@user_age"
PROFILE_WEIGHT_KEY = "@user_weight"
PROFILE_GOAL_KEY = "@daily_target_calories"
LEDGER_DATE_KEY = "@last_saved_date"
LEDGER_SCANS_KEY = "@current_day_scans"
LEDGER_ACTIVITIES_KEY = "@current_day_activities"
LEDGER_WATER_KEY = "@water_cups"
SCAN_HISTORY_KEY = "scan_history"
ACTIVITY_HISTORY_KEY = "activity_history"
QUOTA_KEY = "@quota_state"


class KeyValueStore(Protocol):
    """Durable store of JSON-compatible values under string keys.

    Implementations raise StorageError when the backend fails.
    """

    def get(self, key: str) -> object | None:
        """Return the stored value, or None when the key is absent."""

    def get_many(self, keys: list[str]) -> dict[str, object]:
        """Return stored values for the keys that exist."""

    def set(self, key: str, value: object) -> None:
        """Store a value, replacing any previous one."""

    def set_many(self, values: dict[str, object]) -> None:
        """Store several values in a single write."""

    def delete(self, key: str) -> None:
        """Remove a key; absent keys are ignored."""
