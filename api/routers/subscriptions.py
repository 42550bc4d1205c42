"""
Subscription API Endpoints.

Endpoints for seller plan payments, status checks and access gating.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import (
    get_checkout_service,
    get_reconciliation_engine,
    get_subscription_access_service,
)
from api.models import (
    CreateSubscriptionRequest,
    ErrorResponse,
    PaymentIntentResponse,
    StatusResponse,
    SubscriptionAccessResponse,
)
from domain.errors import StorefrontError, ValidationError
from services.checkout_service import CheckoutService
from services.reconciliation_service import ReconciliationEngine
from services.subscription_access_service import SubscriptionAccessService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/create-subscription",
    response_model=PaymentIntentResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Create Subscription Payment",
    description="Create a PIX payment for a seller plan using the platform credential."
)
def create_subscription(
    request: CreateSubscriptionRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
):
    """
    Create a PIX payment for a seller plan.

    **Plans:**
    - `trial`: R$ 2,00, 5 minutes of access
    - `monthly` (default): R$ 37,90, 30 days of access

    **Example request:**
    ```json
    {"userId": "u1", "buyerEmail": "e@x.com", "buyerName": "John", "planType": "trial"}
    ```

    **Success response:**
    ```json
    {"payment_id": "123", "status": "pending", "qr_code": "...", "qr_code_base64": "..."}
    ```
    """
    try:
        result = checkout.create_subscription_payment(
            request.user_id,
            request.buyer_email,
            request.buyer_name,
            request.plan_type,
        )
    except StorefrontError:
        raise
    except Exception as e:
        logger.exception("create-subscription failed")
        raise StorefrontError(f"Failed to create subscription: {str(e)}") from e

    return PaymentIntentResponse(
        payment_id=result.payment_id,
        status=result.status,
        qr_code=result.qr_code,
        qr_code_base64=result.qr_code_base64,
    )


@router.get(
    "/check-subscription-status",
    response_model=StatusResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Check Subscription Status",
    description="Reconcile a seller subscription by user id and/or payment id."
)
def check_subscription_status(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    payment_id: Optional[str] = Query(default=None, alias="paymentId"),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
):
    """
    Reconcile the subscription's last payment with Mercado Pago.

    Looks up by `userId` first, then by `paymentId`. On approval the
    subscription becomes active with a window computed from the plan.
    """
    if not user_id and not payment_id:
        raise ValidationError("Missing paymentId or userId")

    try:
        status = engine.reconcile_subscription(user_id=user_id, payment_id=payment_id)
    except StorefrontError:
        raise
    except Exception as e:
        logger.exception("check-subscription-status failed")
        raise StorefrontError(f"Failed to check subscription status: {str(e)}") from e

    return StatusResponse(status=status)


@router.get(
    "/subscription-access",
    response_model=SubscriptionAccessResponse,
    summary="Subscription Access",
    description="Whether a seller currently holds an active, unexpired subscription."
)
def subscription_access(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    access: SubscriptionAccessService = Depends(get_subscription_access_service),
):
    """
    Recompute subscription activity from `expires_at`.

    A stored `active` whose window has elapsed is reported, and persisted,
    as `expired`.
    """
    if not user_id:
        raise ValidationError("Missing userId")

    try:
        result = access.check_access(user_id)
    except StorefrontError:
        raise
    except Exception as e:
        logger.exception("subscription-access failed for user %s", user_id)
        raise StorefrontError(f"Failed to check subscription access: {str(e)}") from e

    return SubscriptionAccessResponse(
        active=result.active,
        status=result.status,
        expires_at=result.expires_at,
    )
