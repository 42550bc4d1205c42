"""
Reconciliation engine.

Fetches the current processor status of a payment and applies the transitions
from domain/reconciliation.py to the local Sale, Membership or Subscription.
All three gateways (buyer polling, processor webhook, manual refresh) call into
this service, so the outcome does not depend on which trigger fires, in which
order, or how many times.

Process for every reconciliation:
1. Resolve the local record (NotFoundError if none)
2. Fetch the payment with the matching credential (UpstreamError propagates)
3. Compute the transition against the stored state
4. Persist it (Sale first, then Membership; not atomic, re-entrant)
5. Return the status reported to the caller
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from domain.errors import NotFoundError
from domain.payment import APPROVED
from domain.reconciliation import next_sale_status, next_subscription_state
from domain.sale import Membership, SaleRecord
from domain.subscription import Subscription, parse_subscription_reference
from domain.time import utc_now
from integrations.mercadopago_client import MercadoPagoClient
from repositories.interfaces import (
    MembershipRepository,
    SaleRepository,
    SubscriptionRepository,
)
from services.credential_service import CredentialResolver

logger = logging.getLogger(__name__)

SALE_NOT_FOUND = "Sale not found"
SUBSCRIPTION_NOT_FOUND = "Subscription not found"
PAYMENT_NOT_FOUND = "Payment not found"


class ReconciliationEngine:
    def __init__(
        self,
        *,
        sales: SaleRepository,
        memberships: MembershipRepository,
        subscriptions: SubscriptionRepository,
        credentials: CredentialResolver,
        processor: MercadoPagoClient,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._sales = sales
        self._memberships = memberships
        self._subscriptions = subscriptions
        self._credentials = credentials
        self._processor = processor
        self._clock = clock

    # ------------------------------------------------------------------ sales

    def reconcile_sale(self, payment_id: str) -> str:
        """Reconcile the sale created for ``payment_id``; returns its status."""

        sale = self._sales.find_by_payment_id(payment_id)
        if sale is None:
            raise NotFoundError(SALE_NOT_FOUND)
        return self._apply_sale(sale)

    def refresh_membership(self, product_id: str, buyer_email: str) -> str:
        """
        Reconcile a buyer's membership to a product.

        The membership carries no payment id. The approved sale of the pair is
        reconciled when there is one (so a refund is noticed), otherwise the
        latest sale.
        """

        sale = self._sales.find_approved_for_buyer(product_id, buyer_email)
        if sale is None:
            sale = self._sales.find_latest_for_buyer(product_id, buyer_email)
        if sale is None or not sale.payment_id:
            raise NotFoundError(SALE_NOT_FOUND)
        return self._apply_sale(sale)

    def _apply_sale(self, sale: SaleRecord) -> str:
        access_token = self._credentials.for_seller(sale.seller_id)
        payment = self._processor.get_payment(sale.payment_id, access_token)

        transition = next_sale_status(sale, payment)
        if transition.changed:
            self._sales.update_status(sale.payment_id, transition.status)

        # Rewritten on every pass (heals a membership left stale by an earlier
        # pass) unless access was granted by another sale of the pair.
        if not self._access_granted_elsewhere(sale, transition.status):
            self._memberships.upsert(
                Membership(
                    product_id=sale.product_id,
                    buyer_email=sale.buyer_email,
                    status=transition.status,
                    buyer_name=sale.buyer_name or None,
                )
            )

        logger.info(
            "Reconciled sale payment %s: %s -> %s",
            sale.payment_id,
            sale.payment_status,
            transition.status,
        )
        return transition.status

    def _access_granted_elsewhere(self, sale: SaleRecord, status: str) -> bool:
        """
        True when ``status`` must not overwrite the buyer's membership.

        A retried checkout leaves a second sale for the same pair. Its pending
        or failed payment does not revoke access while the pair still has an
        approved sale. Runs after the sale status is written, so a reversed
        sale no longer counts as approved.
        """

        if status == APPROVED:
            return False
        membership = self._memberships.find(sale.product_id, sale.buyer_email)
        if membership is None or not membership.grants_access():
            return False
        return self._sales.find_approved_for_buyer(sale.product_id, sale.buyer_email) is not None

    # ---------------------------------------------------------- subscriptions

    def reconcile_subscription(
        self,
        user_id: Optional[str] = None,
        payment_id: Optional[str] = None,
    ) -> str:
        """
        Reconcile a seller subscription, looked up by user id first and then
        by last payment id.
        """

        subscription: Optional[Subscription] = None
        if user_id:
            subscription = self._subscriptions.find_by_user_id(user_id)
        if subscription is None and payment_id:
            subscription = self._subscriptions.find_by_payment_id(payment_id)

        if subscription is None or not subscription.last_payment_id:
            raise NotFoundError(SUBSCRIPTION_NOT_FOUND)
        return self._apply_subscription(subscription)

    def _apply_subscription(self, subscription: Subscription) -> str:
        access_token = self._credentials.for_platform()
        payment = self._processor.get_payment(subscription.last_payment_id, access_token)

        now = self._clock()
        transition = next_subscription_state(subscription, payment, now)

        if transition.activates:
            self._subscriptions.activate(
                subscription.user_id,
                transition.activated_at,
                transition.expires_at,
            )
        elif not transition.is_noop:
            self._subscriptions.update_status(subscription.user_id, transition.new_status)

        logger.info(
            "Reconciled subscription of user %s (payment %s): %s -> %s",
            subscription.user_id,
            subscription.last_payment_id,
            subscription.status,
            transition.new_status or subscription.status,
        )
        return transition.reported_status

    # ---------------------------------------------------------------- webhook

    def reconcile_payment(self, payment_id: str) -> str:
        """
        Reconcile whatever local record a pushed payment id belongs to.

        Lookup order: sale by payment id, subscription by last payment id, and
        finally the payment's external_reference, for an approved subscription
        payment whose id never made it onto the seller's subscription row. Such
        a payment creates the row when none exists and replaces the recorded
        payment of a subscription that was never activated.
        """

        sale = self._sales.find_by_payment_id(payment_id)
        if sale is not None:
            return self._apply_sale(sale)

        subscription = self._subscriptions.find_by_payment_id(payment_id)
        if subscription is not None:
            return self._apply_subscription(subscription)

        return self._adopt_subscription_payment(payment_id)

    def _adopt_subscription_payment(self, payment_id: str) -> str:
        if not self._credentials.has_platform_credential:
            raise NotFoundError(PAYMENT_NOT_FOUND)

        payment = self._processor.get_payment(payment_id, self._credentials.for_platform())
        reference = parse_subscription_reference(payment.external_reference)
        if reference is None:
            raise NotFoundError(PAYMENT_NOT_FOUND)

        user_id, plan = reference
        if payment.status != APPROVED:
            logger.warning(
                "Ignoring unrecorded %s payment %s for subscription of user %s",
                payment.status or "unknown",
                payment_id,
                user_id,
            )
            raise NotFoundError(PAYMENT_NOT_FOUND)

        adopted_id = payment.payment_id or payment_id
        subscription = self._subscriptions.find_by_user_id(user_id)
        if subscription is None:
            self._subscriptions.upsert_pending(user_id, payment.status, adopted_id)
        elif subscription.activated_at is not None:
            # An activated subscription keeps the payment that activated it.
            logger.warning(
                "Ignoring approved payment %s for user %s: subscription already activated by payment %s",
                payment_id,
                user_id,
                subscription.last_payment_id,
            )
            raise NotFoundError(SUBSCRIPTION_NOT_FOUND)

        now = self._clock()
        self._subscriptions.activate(
            user_id,
            now,
            plan.expires_at(now),
            last_payment_id=adopted_id,
        )
        logger.info(
            "Activated subscription of user %s from unrecorded payment %s (%s plan)",
            user_id,
            payment_id,
            plan.value,
        )
        return APPROVED


__all__ = [
    "PAYMENT_NOT_FOUND",
    "ReconciliationEngine",
    "SALE_NOT_FOUND",
    "SUBSCRIPTION_NOT_FOUND",
]
