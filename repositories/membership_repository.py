"""
Membership repository (persistence).

Memberships are keyed by (product_id, buyer_email); the table is expected to
carry a unique constraint on that pair so upserts replace in place.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.sale import Membership

_MEMBERSHIPS_TABLE: str = "memberships"
_MEMBERSHIP_KEY: str = "product_id,buyer_email"


def _row_to_membership(row: Mapping[str, Any]) -> Membership:
    return Membership(
        product_id=str(row["product_id"]),
        buyer_email=str(row["buyer_email"]),
        status=str(row.get("status") or "pending"),
        buyer_name=row.get("buyer_name"),
    )


class SupabaseMembershipRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def find(self, product_id: str, buyer_email: str) -> Optional[Membership]:
        response = (
            self._client.table(_MEMBERSHIPS_TABLE)
            .select("*")
            .eq("product_id", product_id)
            .eq("buyer_email", buyer_email)
            .limit(1)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to get membership: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return _row_to_membership(rows[0])

    def upsert(self, membership: Membership) -> None:
        payload: dict[str, Any] = {
            "product_id": membership.product_id,
            "buyer_email": membership.buyer_email,
            "status": membership.status,
        }
        if membership.buyer_name:
            payload["buyer_name"] = membership.buyer_name

        response = (
            self._client.table(_MEMBERSHIPS_TABLE)
            .upsert(payload, on_conflict=_MEMBERSHIP_KEY)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to upsert membership: {error}")


__all__ = ["SupabaseMembershipRepository"]
