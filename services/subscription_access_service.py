"""
Subscription access checks for product-creation gating.

The stored subscription status is never trusted on its own: activity is
recomputed from expires_at on every read, and a stale "active" row is
persisted as "expired" by the read that notices it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from domain.subscription import EXPIRED, INACTIVE
from domain.time import utc_now
from repositories.interfaces import SubscriptionRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubscriptionAccess:
    active: bool
    status: str
    expires_at: Optional[datetime] = None


class SubscriptionAccessService:
    def __init__(
        self,
        subscriptions: SubscriptionRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._subscriptions = subscriptions
        self._clock = clock

    def check_access(self, user_id: str) -> SubscriptionAccess:
        """Whether the seller may create products right now."""

        subscription = self._subscriptions.find_by_user_id(user_id)
        if subscription is None:
            return SubscriptionAccess(active=False, status=INACTIVE)

        now = self._clock()
        status = subscription.effective_status(now)
        if status == EXPIRED and subscription.status != EXPIRED:
            self._subscriptions.update_status(user_id, EXPIRED)
            logger.info(
                "Subscription of user %s expired at %s",
                user_id,
                subscription.expires_at.isoformat() if subscription.expires_at else None,
            )

        return SubscriptionAccess(
            active=subscription.is_active(now),
            status=status,
            expires_at=subscription.expires_at,
        )


__all__ = ["SubscriptionAccess", "SubscriptionAccessService"]
