"""Supabase repository for subscription status."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from burn_tracker.services.entitlements import SubscriptionOracle

logger = logging.getLogger(__name__)


@dataclass
class SupabaseSubscriptionOracle(SubscriptionOracle):
    """Reads the device's subscription row on every call."""

    client: Client
    device_id: str

    @property
    def loading(self) -> bool:
        """Status is fetched synchronously, so it is never loading."""
        return False

    def is_pro(self) -> bool:
        """Return True for an active, unexpired subscription."""
        try:
            response = (
                self.client.table("subscriptions")
                .select("is_pro, expires_at")
                .eq("device_id", self.device_id)
                .limit(1)
                .execute()
            )
        except (APIError, httpx.HTTPError):
            logger.exception(
                "Subscription lookup failed; treating as free tier",
                extra={"device_id": self.device_id},
            )
            return False
        if not response.data:
            return False
        return _is_active(response.data[0])


def _is_active(row: dict[str, object]) -> bool:
    if not row.get("is_pro"):
        return False
    expires_raw = row.get("expires_at")
    if not isinstance(expires_raw, str) or not expires_raw:
        return True
    try:
        expires_at = datetime.fromisoformat(expires_raw)
    except ValueError:
        return False
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    return expires_at > datetime.now(tz=UTC)
