"""
Domain: reconciliation transitions (pure).

Given the stored state of a record and what the processor reports now, decide
what must be persisted and which status to hand back to the caller. Nothing
here performs I/O; services/reconciliation_service.py applies the decisions.

Rules:
- Effective status = processor status, else stored status, else "pending".
- A Sale mirrors the effective status, except that an approved Sale ignores a
  stale in-flight report.
- A Subscription moves to "active" with a fresh window on approval, unless the
  current payment has already activated it (the window is never recomputed).
- An active Subscription whose window has elapsed is persisted as "expired"
  by the read that notices it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .payment import (
    APPROVED,
    IN_FLIGHT_STATUSES,
    ProcessorPayment,
    effective_status,
    is_stale_report,
)
from .sale import SaleRecord
from .subscription import ACTIVE, EXPIRED, Subscription, infer_plan_type


@dataclass(frozen=True, slots=True)
class SaleTransition:
    status: str
    changed: bool


@dataclass(frozen=True, slots=True)
class SubscriptionTransition:
    """
    Outcome of reconciling a subscription.

    reported_status: value returned to the caller.
    new_status: status to persist, or None when nothing changes.
    activated_at / expires_at: set only when the transition opens a window.
    """

    reported_status: str
    new_status: Optional[str] = None
    activated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    @property
    def is_noop(self) -> bool:
        return self.new_status is None

    @property
    def activates(self) -> bool:
        return self.activated_at is not None


def next_sale_status(sale: SaleRecord, payment: ProcessorPayment) -> SaleTransition:
    """Compute the next payment_status of a Sale."""

    reported = effective_status(payment.status, sale.payment_status)
    if is_stale_report(sale.payment_status, reported):
        return SaleTransition(status=APPROVED, changed=False)
    return SaleTransition(status=reported, changed=reported != sale.payment_status)


def next_subscription_state(
    subscription: Subscription,
    payment: ProcessorPayment,
    now: datetime,
) -> SubscriptionTransition:
    """Compute the next state of a Subscription as of ``now``."""

    reported = effective_status(payment.status, subscription.status)
    activated = subscription.is_activated()

    window_closed = activated and subscription.has_elapsed(now)
    if window_closed and (reported == APPROVED or reported in IN_FLIGHT_STATUSES):
        # Window closed: the activating payment cannot reopen it.
        if subscription.status == EXPIRED:
            return SubscriptionTransition(reported_status=EXPIRED)
        return SubscriptionTransition(reported_status=EXPIRED, new_status=EXPIRED)

    if reported == APPROVED:
        if activated:
            if subscription.status == ACTIVE:
                return SubscriptionTransition(reported_status=APPROVED)
            return SubscriptionTransition(reported_status=APPROVED, new_status=ACTIVE)
        plan = infer_plan_type(payment.external_reference, payment.transaction_amount)
        return SubscriptionTransition(
            reported_status=APPROVED,
            new_status=ACTIVE,
            activated_at=now,
            expires_at=plan.expires_at(now),
        )

    if subscription.status == ACTIVE and reported in IN_FLIGHT_STATUSES:
        # Delayed notification for an already approved payment.
        return SubscriptionTransition(reported_status=APPROVED)

    if reported == subscription.status:
        return SubscriptionTransition(reported_status=reported)
    return SubscriptionTransition(reported_status=reported, new_status=reported)


__all__ = [
    "SaleTransition",
    "SubscriptionTransition",
    "next_sale_status",
    "next_subscription_state",
]
