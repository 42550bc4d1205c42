"""
Payment intent builder.

Builds the exact body sent to POST /v1/payments for the two kinds of
purchase:

- Product sale: amount is the product price, description the product name.
- Subscription: amount and description come from the plan; the
  external_reference encodes the seller and plan so a webhook can correlate
  the payment even without a stored mapping.

Every intent is PIX-only. A notification_url is attached only when a valid
absolute webhook base URL is configured; without it, status is recovered by
polling and manual refresh alone.

Subscription intents carry a fresh idempotency key per request. Sale intents
carry none: a retried checkout creates a new payment and a new pending sale.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlsplit
from uuid import uuid4

from domain.errors import ValidationError
from domain.payment import PAYMENT_METHOD_PIX
from domain.sale import Product
from domain.subscription import PlanType, subscription_reference

WEBHOOK_PATH = "/api/mp-webhook"
MISSING_FIELDS = "Missing required fields"
INVALID_EMAIL = "Invalid buyer email"


@dataclass(frozen=True, slots=True)
class PaymentIntent:
    """Outbound payment-creation request."""

    payload: Dict[str, Any]
    idempotency_key: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Buyer:
    email: str
    name: str


def validate_buyer(email: Optional[str], name: Optional[str]) -> Buyer:
    """
    Normalize buyer fields.

    Raises:
        ValidationError: email or name missing/blank, or email malformed
    """

    email = (email or "").strip()
    name = (name or "").strip()
    if not email or not name:
        raise ValidationError(MISSING_FIELDS)
    if "@" not in email:
        raise ValidationError(INVALID_EMAIL)
    return Buyer(email=email, name=name)


def resolve_notification_url(base_url: Optional[str]) -> Optional[str]:
    """
    Webhook URL for the processor, derived from the origin of ``base_url``.

    Returns None when no base URL is configured or it is not an absolute
    http(s) URL.
    """

    if not base_url:
        return None
    try:
        parts = urlsplit(base_url.strip())
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.netloc or not parts.hostname:
        return None
    return f"{parts.scheme}://{parts.netloc}{WEBHOOK_PATH}"


class PaymentIntentBuilder:
    def __init__(
        self,
        webhook_base_url: Optional[str] = None,
        idempotency_key_factory: Callable[[], str] = lambda: str(uuid4()),
    ) -> None:
        self._notification_url = resolve_notification_url(webhook_base_url)
        self._new_idempotency_key = idempotency_key_factory

    @property
    def notification_url(self) -> Optional[str]:
        return self._notification_url

    def _base_payload(self, amount: Decimal, description: str, buyer: Buyer) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "transaction_amount": float(amount),
            "description": description,
            "payment_method_id": PAYMENT_METHOD_PIX,
            "payer": {
                "email": buyer.email,
                "first_name": buyer.name,
            },
        }
        return payload

    def _attach_notification_url(self, payload: Dict[str, Any]) -> None:
        if self._notification_url:
            payload["notification_url"] = self._notification_url

    def for_sale(
        self,
        product: Product,
        buyer_email: Optional[str],
        buyer_name: Optional[str],
    ) -> PaymentIntent:
        """Intent for a one-off product purchase."""

        buyer = validate_buyer(buyer_email, buyer_name)
        payload = self._base_payload(product.price, product.name, buyer)
        self._attach_notification_url(payload)
        return PaymentIntent(payload=payload)

    def for_subscription(
        self,
        user_id: Optional[str],
        buyer_email: Optional[str],
        buyer_name: Optional[str],
        plan_type: Optional[str] = None,
    ) -> PaymentIntent:
        """Intent for a seller platform plan; monthly unless "trial" is asked."""

        user_id = (user_id or "").strip()
        if not user_id:
            raise ValidationError(MISSING_FIELDS)
        buyer = validate_buyer(buyer_email, buyer_name)

        plan = PlanType.parse(plan_type)
        payload = self._base_payload(plan.price, plan.description, buyer)
        payload["external_reference"] = subscription_reference(user_id, plan)
        self._attach_notification_url(payload)
        return PaymentIntent(payload=payload, idempotency_key=self._new_idempotency_key())


__all__ = [
    "Buyer",
    "PaymentIntent",
    "PaymentIntentBuilder",
    "resolve_notification_url",
    "validate_buyer",
]
