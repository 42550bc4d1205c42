"""
Domain: Sale records and product memberships.

Contract excerpts relevant here:
- A Sale is a one-off product purchase; its payment_id is assigned when the
  payment intent is created and never changes afterwards.
- A Membership grants a buyer access to a product and mirrors the status of
  the Sale for the same (product, buyer email) pair.

Status transitions live in domain/reconciliation.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .payment import APPROVED
from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class Product:
    """A digital product listed by a seller. Read-only to the payment core."""

    product_id: str
    seller_id: str
    name: str
    price: Decimal
    is_active: bool = True
    description: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SaleRecord:
    """
    Immutable record of a product purchase.

    Captures:
    - What was purchased (product_id) and from whom (seller_id)
    - Who bought it (buyer_email, buyer_name)
    - How much was charged (amount)
    - Processor correlation (payment_id) and last known payment_status
    """

    product_id: str
    seller_id: str
    buyer_email: str
    buyer_name: str
    amount: Decimal
    payment_id: Optional[str]
    payment_status: str
    sale_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)


@dataclass(frozen=True, slots=True)
class Membership:
    """Buyer access grant to a product, keyed by (product_id, buyer_email)."""

    product_id: str
    buyer_email: str
    status: str
    buyer_name: Optional[str] = None

    def grants_access(self) -> bool:
        return self.status == APPROVED
