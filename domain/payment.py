"""
Domain: processor payments and payment intents.

Mercado Pago reports payment status as a free-form string. The core only
interprets two of them (``pending`` and ``approved``) and the small set of
in-flight statuses a stale notification may carry; every other value is
passed through untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

PENDING = "pending"
APPROVED = "approved"

# Statuses that only describe a payment still on its way to approval.
IN_FLIGHT_STATUSES = frozenset({"pending", "in_process", "authorized"})

PAYMENT_METHOD_PIX = "pix"


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text or None


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


@dataclass(frozen=True, slots=True)
class ProcessorPayment:
    """
    A payment object as returned by the processor, reduced to the fields the
    core reads.
    """

    payment_id: Optional[str]
    status: Optional[str]
    transaction_amount: Optional[Decimal] = None
    external_reference: Optional[str] = None
    qr_code: Optional[str] = None
    qr_code_base64: Optional[str] = None

    @classmethod
    def from_response(cls, data: Mapping[str, Any]) -> "ProcessorPayment":
        """Build from a processor JSON payload, tolerating absent sections."""

        interaction = data.get("point_of_interaction") or {}
        transaction_data = interaction.get("transaction_data") or {}

        return cls(
            payment_id=_optional_str(data.get("id")),
            status=_optional_str(data.get("status")),
            transaction_amount=_optional_decimal(data.get("transaction_amount")),
            external_reference=_optional_str(data.get("external_reference")),
            qr_code=_optional_str(transaction_data.get("qr_code")),
            qr_code_base64=_optional_str(transaction_data.get("qr_code_base64")),
        )


@dataclass(frozen=True, slots=True)
class PaymentIntentResult:
    """Transient value handed back to the buyer after an intent is created."""

    payment_id: Optional[str]
    status: str
    qr_code: Optional[str] = None
    qr_code_base64: Optional[str] = None

    @classmethod
    def from_payment(cls, payment: ProcessorPayment) -> "PaymentIntentResult":
        return cls(
            payment_id=payment.payment_id,
            status=payment.status or PENDING,
            qr_code=payment.qr_code,
            qr_code_base64=payment.qr_code_base64,
        )


def effective_status(reported: Optional[str], stored: Optional[str]) -> str:
    """Processor status, else the stored one, else ``pending``."""

    return reported or stored or PENDING


def is_stale_report(stored: Optional[str], reported: str) -> bool:
    """
    True when an approved record receives an in-flight status.

    Such reports come from delayed or duplicated notifications and must not
    regress an approval. Terminal reversals (refunded, cancelled,
    charged_back, ...) are not stale and are applied.
    """

    return stored == APPROVED and reported in IN_FLIGHT_STATUSES


__all__ = [
    "PENDING",
    "APPROVED",
    "IN_FLIGHT_STATUSES",
    "PAYMENT_METHOD_PIX",
    "ProcessorPayment",
    "PaymentIntentResult",
    "effective_status",
    "is_stale_report",
]
