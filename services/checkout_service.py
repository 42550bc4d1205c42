"""
Checkout service for creating PIX payment intents.

Handles:
- Product sale checkout (seller credential, sale + pending membership)
- Subscription checkout (platform credential, subscription upsert)

Validation and credential resolution happen before any processor call, so a
missing field or an unconfigured seller never reaches Mercado Pago.
"""

from __future__ import annotations

import logging
from typing import Optional

from domain.errors import NotFoundError, ValidationError
from domain.payment import PENDING, PaymentIntentResult
from domain.sale import Membership, SaleRecord
from domain.time import utc_now
from integrations.mercadopago_client import MercadoPagoClient
from repositories.interfaces import (
    MembershipRepository,
    ProductRepository,
    SaleRepository,
    SubscriptionRepository,
)
from services.credential_service import CredentialResolver
from services.payment_intent_service import MISSING_FIELDS, PaymentIntentBuilder, validate_buyer

logger = logging.getLogger(__name__)

PRODUCT_NOT_FOUND = "Product not found"


class CheckoutService:
    def __init__(
        self,
        *,
        products: ProductRepository,
        sales: SaleRepository,
        memberships: MembershipRepository,
        subscriptions: SubscriptionRepository,
        credentials: CredentialResolver,
        intents: PaymentIntentBuilder,
        processor: MercadoPagoClient,
    ) -> None:
        self._products = products
        self._sales = sales
        self._memberships = memberships
        self._subscriptions = subscriptions
        self._credentials = credentials
        self._intents = intents
        self._processor = processor

    def create_sale_payment(
        self,
        product_id: Optional[str],
        buyer_email: Optional[str],
        buyer_name: Optional[str],
    ) -> PaymentIntentResult:
        """
        Create a PIX payment for a product and record the pending sale.

        Process:
        1. Validate buyer fields
        2. Load the active product (404 if missing/inactive)
        3. Resolve the seller's credential (400 if absent)
        4. Create the payment with the processor
        5. Record the sale and a pending membership for the buyer

        Returns:
            PaymentIntentResult with the PIX payload for the buyer
        """

        product_id = (product_id or "").strip()
        if not product_id:
            raise ValidationError(MISSING_FIELDS)
        buyer = validate_buyer(buyer_email, buyer_name)

        product = self._products.find_active(product_id)
        if product is None:
            raise NotFoundError(PRODUCT_NOT_FOUND)

        access_token = self._credentials.for_seller(product.seller_id)
        intent = self._intents.for_sale(product, buyer.email, buyer.name)
        payment = self._processor.create_payment(intent.payload, access_token)
        result = PaymentIntentResult.from_payment(payment)

        self._sales.insert(
            SaleRecord(
                product_id=product.product_id,
                seller_id=product.seller_id,
                buyer_email=buyer.email,
                buyer_name=buyer.name,
                amount=product.price,
                payment_id=result.payment_id,
                payment_status=result.status,
                created_at=utc_now(),
            )
        )

        # An approved membership is never downgraded by a retried checkout.
        existing = self._memberships.find(product.product_id, buyer.email)
        if existing is None or not existing.grants_access():
            self._memberships.upsert(
                Membership(
                    product_id=product.product_id,
                    buyer_email=buyer.email,
                    status=result.status,
                    buyer_name=buyer.name,
                )
            )

        logger.info(
            "Created sale payment %s for product %s (status=%s)",
            result.payment_id,
            product.product_id,
            result.status,
        )
        return result

    def create_subscription_payment(
        self,
        user_id: Optional[str],
        buyer_email: Optional[str],
        buyer_name: Optional[str],
        plan_type: Optional[str] = None,
    ) -> PaymentIntentResult:
        """
        Create a PIX payment for a seller plan and upsert the subscription.

        The subscription restarts as pending with the new payment id; its
        previous activation window is cleared.
        """

        intent = self._intents.for_subscription(user_id, buyer_email, buyer_name, plan_type)
        access_token = self._credentials.for_platform()

        payment = self._processor.create_payment(
            intent.payload,
            access_token,
            idempotency_key=intent.idempotency_key,
        )
        result = PaymentIntentResult.from_payment(payment)

        user_id = (user_id or "").strip()
        self._subscriptions.upsert_pending(user_id, result.status or PENDING, result.payment_id)

        logger.info(
            "Created subscription payment %s for user %s (reference=%s, status=%s)",
            result.payment_id,
            user_id,
            intent.payload.get("external_reference"),
            result.status,
        )
        return result


__all__ = ["CheckoutService", "PRODUCT_NOT_FOUND"]
