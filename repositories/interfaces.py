"""
Repository interfaces.

The services depend only on these protocols. Supabase-backed implementations
live next to this module; tests substitute in-memory ones.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from domain.sale import Membership, Product, SaleRecord
from domain.subscription import Subscription


class ProductRepository(Protocol):
    def find_active(self, product_id: str) -> Optional[Product]:
        """Return the product if it exists and is active."""
        ...


class CredentialRepository(Protocol):
    def get_access_token(self, seller_id: str) -> Optional[str]:
        """Return the seller's stored processor access token, if any."""
        ...


class SaleRepository(Protocol):
    def insert(self, sale: SaleRecord) -> SaleRecord:
        ...

    def find_by_payment_id(self, payment_id: str) -> Optional[SaleRecord]:
        ...

    def find_latest_for_buyer(self, product_id: str, buyer_email: str) -> Optional[SaleRecord]:
        """Most recent sale of a product to a buyer (by created_at)."""
        ...

    def find_approved_for_buyer(self, product_id: str, buyer_email: str) -> Optional[SaleRecord]:
        """Most recent approved sale of a product to a buyer, if any."""
        ...

    def update_status(self, payment_id: str, payment_status: str) -> None:
        ...


class MembershipRepository(Protocol):
    def find(self, product_id: str, buyer_email: str) -> Optional[Membership]:
        ...

    def upsert(self, membership: Membership) -> None:
        """Insert or replace the membership keyed by (product_id, buyer_email)."""
        ...


class SubscriptionRepository(Protocol):
    def find_by_user_id(self, user_id: str) -> Optional[Subscription]:
        ...

    def find_by_payment_id(self, payment_id: str) -> Optional[Subscription]:
        """Look up by last_payment_id."""
        ...

    def upsert_pending(self, user_id: str, status: str, last_payment_id: Optional[str]) -> None:
        """Start a new payment cycle: clears activated_at and expires_at."""
        ...

    def update_status(self, user_id: str, status: str) -> None:
        ...

    def activate(
        self,
        user_id: str,
        activated_at: datetime,
        expires_at: datetime,
        last_payment_id: Optional[str] = None,
    ) -> None:
        """Set status "active" with the given window."""
        ...


__all__ = [
    "CredentialRepository",
    "MembershipRepository",
    "ProductRepository",
    "SaleRepository",
    "SubscriptionRepository",
]
