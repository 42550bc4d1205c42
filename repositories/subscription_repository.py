"""
Subscription repository (persistence).

One row per seller in the `subscriptions` table, unique on user_id.
Stores whatever the reconciliation service decides; expiry is never computed
here.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.subscription import ACTIVE, Subscription
from domain.time import parse_utc_datetime, to_iso_utc

_SUBSCRIPTIONS_TABLE: str = "subscriptions"


def _row_to_subscription(row: Mapping[str, Any]) -> Subscription:
    """Convert a Supabase row into a Subscription."""

    activated_at = row.get("activated_at")
    expires_at = row.get("expires_at")
    last_payment_id = row.get("last_payment_id")

    return Subscription(
        user_id=str(row["user_id"]),
        status=str(row.get("status") or "pending"),
        last_payment_id=str(last_payment_id) if last_payment_id is not None else None,
        activated_at=parse_utc_datetime(activated_at) if activated_at else None,
        expires_at=parse_utc_datetime(expires_at) if expires_at else None,
    )


class SupabaseSubscriptionRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def _find_one(self, column: str, value: str) -> Optional[Subscription]:
        response = (
            self._client.table(_SUBSCRIPTIONS_TABLE)
            .select("*")
            .eq(column, value)
            .limit(1)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to get subscription: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return _row_to_subscription(rows[0])

    def find_by_user_id(self, user_id: str) -> Optional[Subscription]:
        return self._find_one("user_id", user_id)

    def find_by_payment_id(self, payment_id: str) -> Optional[Subscription]:
        return self._find_one("last_payment_id", payment_id)

    def _update(self, user_id: str, payload: dict[str, Any], action: str) -> None:
        response = (
            self._client.table(_SUBSCRIPTIONS_TABLE)
            .update(payload)
            .eq("user_id", user_id)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to {action}: {error}")

    def upsert_pending(self, user_id: str, status: str, last_payment_id: Optional[str]) -> None:
        """
        Record a freshly created subscription payment.

        Clears activated_at/expires_at so the next approval opens a new window.
        """

        payload: dict[str, Any] = {
            "user_id": user_id,
            "status": status,
            "last_payment_id": last_payment_id,
            "activated_at": None,
            "expires_at": None,
        }
        response = (
            self._client.table(_SUBSCRIPTIONS_TABLE)
            .upsert(payload, on_conflict="user_id")
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to upsert subscription: {error}")

    def update_status(self, user_id: str, status: str) -> None:
        self._update(user_id, {"status": status}, "update subscription status")

    def activate(
        self,
        user_id: str,
        activated_at: datetime,
        expires_at: datetime,
        last_payment_id: Optional[str] = None,
    ) -> None:
        payload: dict[str, Any] = {
            "status": ACTIVE,
            "activated_at": to_iso_utc(activated_at, name="activated_at"),
            "expires_at": to_iso_utc(expires_at, name="expires_at"),
        }
        if last_payment_id is not None:
            payload["last_payment_id"] = last_payment_id
        self._update(user_id, payload, "activate subscription")


__all__ = ["SupabaseSubscriptionRepository"]
