"""
Sale repository (persistence).

This module provides *only* persistence operations for the SaleRecord domain
entity. It does not enforce business rules (e.g., status monotonicity); it
only inserts, fetches and updates sale records.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.payment import APPROVED
from domain.sale import SaleRecord
from domain.time import parse_utc_datetime, to_iso_utc

# Supabase table name for sale records.
# Keep this aligned with your database schema.
_SALES_TABLE: str = "sales"


def _row_to_sale(row: Mapping[str, Any]) -> SaleRecord:
    """Convert a Supabase row into a SaleRecord."""

    return SaleRecord(
        sale_id=str(row["id"]) if row.get("id") is not None else None,
        product_id=str(row["product_id"]),
        seller_id=str(row["seller_id"]),
        buyer_email=str(row.get("buyer_email") or ""),
        buyer_name=str(row.get("buyer_name") or ""),
        amount=Decimal(str(row.get("amount") or "0")),
        payment_id=str(row["payment_id"]) if row.get("payment_id") is not None else None,
        payment_status=str(row.get("payment_status") or "pending"),
        created_at=parse_utc_datetime(row["created_at"]) if row.get("created_at") else None,
    )


def _raise_on_error(response: Any, action: str) -> None:
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to {action}: {error}")


class SupabaseSaleRepository:
    """Sales stored in the Supabase `sales` table."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def insert(self, sale: SaleRecord) -> SaleRecord:
        """
        Insert a new sale record.

        Returns:
            The stored SaleRecord (with the database id when returned)
        """

        payload: dict[str, Any] = {
            "product_id": sale.product_id,
            "seller_id": sale.seller_id,
            "buyer_email": sale.buyer_email,
            "buyer_name": sale.buyer_name,
            "amount": float(sale.amount),
            "payment_id": sale.payment_id,
            "payment_status": sale.payment_status,
        }
        if sale.created_at is not None:
            payload["created_at"] = to_iso_utc(sale.created_at, name="created_at")

        response = self._client.table(_SALES_TABLE).insert(payload).execute()
        _raise_on_error(response, "record sale")

        rows = getattr(response, "data", None) or []
        if rows:
            return _row_to_sale(rows[0])
        return sale

    def find_by_payment_id(self, payment_id: str) -> Optional[SaleRecord]:
        """
        Retrieve the sale created for a processor payment.

        Returns:
            SaleRecord or None if not found
        """

        response = (
            self._client.table(_SALES_TABLE)
            .select("*")
            .eq("payment_id", payment_id)
            .limit(1)
            .execute()
        )
        _raise_on_error(response, "get sale")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return _row_to_sale(rows[0])

    def find_latest_for_buyer(self, product_id: str, buyer_email: str) -> Optional[SaleRecord]:
        """
        Retrieve the most recent sale of a product to a buyer.

        A buyer may retry checkout and leave several pending sales behind;
        the newest one carries the payment they are most likely to have paid.
        """

        response = (
            self._client.table(_SALES_TABLE)
            .select("*")
            .eq("product_id", product_id)
            .eq("buyer_email", buyer_email)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        _raise_on_error(response, "get sale")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return _row_to_sale(rows[0])

    def find_approved_for_buyer(self, product_id: str, buyer_email: str) -> Optional[SaleRecord]:
        """Retrieve the most recent approved sale of a product to a buyer."""

        response = (
            self._client.table(_SALES_TABLE)
            .select("*")
            .eq("product_id", product_id)
            .eq("buyer_email", buyer_email)
            .eq("payment_status", APPROVED)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        _raise_on_error(response, "get sale")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return _row_to_sale(rows[0])

    def update_status(self, payment_id: str, payment_status: str) -> None:
        """Update the payment status of the sale created for ``payment_id``."""

        response = (
            self._client.table(_SALES_TABLE)
            .update({"payment_status": payment_status})
            .eq("payment_id", payment_id)
            .execute()
        )
        _raise_on_error(response, "update payment status")


__all__ = ["SupabaseSaleRepository"]
