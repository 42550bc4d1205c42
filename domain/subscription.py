"""
Domain: seller platform subscriptions and plan rules.

Contract excerpts implemented here:
- Plans and tariffs:
  - TRIAL:   2.00, lasts 5 minutes from activation
  - MONTHLY: 37.90, lasts 30 calendar days from activation (default plan)
- The processor external_reference is "subscription-{user_id}-trial" for the
  trial plan and "subscription-{user_id}" for the monthly plan.
- A subscription is active only while status == "active" and
  expires_at > now. The upper bound is exclusive: expires_at == now is expired.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Tuple

from .time import add_calendar_days, require_utc_timestamp

ACTIVE = "active"
EXPIRED = "expired"
INACTIVE = "inactive"

_REFERENCE_PREFIX = "subscription-"
_TRIAL_SUFFIX = "-trial"
_REFERENCE_RE = re.compile(r"^subscription-(?P<user_id>.+?)(?P<trial>-trial)?$")


class PlanType(str, Enum):
    TRIAL = "trial"
    MONTHLY = "monthly"

    @staticmethod
    def parse(value: Optional[str]) -> "PlanType":
        """Resolve a client-supplied plan; anything but "trial" is MONTHLY."""

        if isinstance(value, str) and value.strip().lower() == PlanType.TRIAL.value:
            return PlanType.TRIAL
        return PlanType.MONTHLY

    @property
    def price(self) -> Decimal:
        return _PLAN_PRICES[self]

    @property
    def description(self) -> str:
        return _PLAN_DESCRIPTIONS[self]

    def expires_at(self, activated_at: datetime) -> datetime:
        """Expiry instant for a subscription activated at ``activated_at``."""

        if self is PlanType.TRIAL:
            return activated_at + timedelta(minutes=5)
        return add_calendar_days(activated_at, 30)


_PLAN_PRICES = {
    PlanType.TRIAL: Decimal("2.00"),
    PlanType.MONTHLY: Decimal("37.90"),
}

_PLAN_DESCRIPTIONS = {
    PlanType.TRIAL: "Plano de teste - 5 minutos",
    PlanType.MONTHLY: "Assinatura Mensal",
}


def subscription_reference(user_id: str, plan: PlanType) -> str:
    """Build the processor external_reference for a subscription payment."""

    if plan is PlanType.TRIAL:
        return f"{_REFERENCE_PREFIX}{user_id}{_TRIAL_SUFFIX}"
    return f"{_REFERENCE_PREFIX}{user_id}"


def parse_subscription_reference(reference: Optional[str]) -> Optional[Tuple[str, PlanType]]:
    """
    Recover (user_id, plan) from a subscription external_reference.

    Returns None for references that do not belong to a subscription payment.
    """

    if not reference:
        return None
    match = _REFERENCE_RE.match(reference)
    if match is None:
        return None
    plan = PlanType.TRIAL if match.group("trial") else PlanType.MONTHLY
    return match.group("user_id"), plan


def infer_plan_type(
    external_reference: Optional[str] = None,
    amount: Any = None,
) -> PlanType:
    """
    Infer the plan of a subscription payment from what the processor reports.

    Precedence:
    1. external_reference, when present: "-trial" suffix -> TRIAL, else MONTHLY
    2. transaction amount, when present: exactly the trial tariff -> TRIAL,
       else MONTHLY
    3. MONTHLY
    """

    if external_reference:
        if external_reference.endswith(_TRIAL_SUFFIX):
            return PlanType.TRIAL
        return PlanType.MONTHLY

    if amount is not None and amount != "":
        try:
            value = Decimal(str(amount))
        except ArithmeticError:
            return PlanType.MONTHLY
        if value == PlanType.TRIAL.price:
            return PlanType.TRIAL

    return PlanType.MONTHLY


@dataclass(frozen=True, slots=True)
class Subscription:
    """
    Seller platform-plan record, one per seller (user_id is unique).

    The stored status is not authoritative on its own: consumers must call
    is_active() so an elapsed expires_at is honoured.
    """

    user_id: str
    status: str
    last_payment_id: Optional[str] = None
    activated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.activated_at is not None:
            require_utc_timestamp("activated_at", self.activated_at)
        if self.expires_at is not None:
            require_utc_timestamp("expires_at", self.expires_at)

    def is_activated(self) -> bool:
        """True once the current last_payment_id has opened an access window."""
        return self.activated_at is not None and self.expires_at is not None

    def has_elapsed(self, as_of: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= as_of

    def is_active(self, as_of: datetime) -> bool:
        """Recompute activity: status must be active and the window still open."""

        require_utc_timestamp("as_of", as_of)
        if self.status != ACTIVE or self.expires_at is None:
            return False
        return self.expires_at > as_of

    def effective_status(self, as_of: datetime) -> str:
        """Stored status, with a stale "active" reported as "expired"."""

        if self.status == ACTIVE and not self.is_active(as_of):
            return EXPIRED
        return self.status


__all__ = [
    "ACTIVE",
    "EXPIRED",
    "INACTIVE",
    "PlanType",
    "Subscription",
    "infer_plan_type",
    "parse_subscription_reference",
    "subscription_reference",
]
