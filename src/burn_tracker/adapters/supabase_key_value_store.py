"""Supabase-backed namespaced key-value store."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from burn_tracker.domain.errors import StorageError
from burn_tracker.services.storage import KeyValueStore

T = TypeVar("T")

TABLE = "app_state"


@dataclass
class SupabaseKeyValueStore(KeyValueStore):
    """Stores one JSON value per (namespace, key) row."""

    client: Client
    namespace: str

    def get(self, key: str) -> object | None:
        """Return the stored value for a key."""
        response = self._run(
            lambda: self.client.table(TABLE)
            .select("value")
            .eq("namespace", self.namespace)
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("value")

    def get_many(self, keys: list[str]) -> dict[str, object]:
        """Return values for the keys that exist."""
        if not keys:
            return {}
        response = self._run(
            lambda: self.client.table(TABLE)
            .select("key, value")
            .eq("namespace", self.namespace)
            .in_("key", keys)
            .execute()
        )
        return {
            str(row["key"]): row.get("value")
            for row in response.data or []
            if "key" in row
        }

    def set(self, key: str, value: object) -> None:
        """Upsert a single value."""
        self.set_many({key: value})

    def set_many(self, values: dict[str, object]) -> None:
        """Upsert several values in one request."""
        if not values:
            return
        rows = [
            {"namespace": self.namespace, "key": key, "value": value}
            for key, value in values.items()
        ]
        self._run(
            lambda: self.client.table(TABLE)
            .upsert(rows, on_conflict="namespace,key")
            .execute()
        )

    def delete(self, key: str) -> None:
        """Delete a key if present."""
        self._run(
            lambda: self.client.table(TABLE)
            .delete()
            .eq("namespace", self.namespace)
            .eq("key", key)
            .execute()
        )

    def _run(self, request: Callable[[], T]) -> T:
        try:
            return request()
        except (APIError, httpx.HTTPError) as exc:
            raise StorageError(f"Supabase request failed: {exc}") from exc
