"""
Product Payment API Endpoints.

Endpoints for creating product PIX payments and checking their status.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_checkout_service, get_reconciliation_engine
from api.models import (
    CreatePaymentRequest,
    ErrorResponse,
    PaymentIntentResponse,
    RefreshMembershipRequest,
    StatusResponse,
)
from domain.errors import StorefrontError, ValidationError
from services.checkout_service import CheckoutService
from services.reconciliation_service import ReconciliationEngine

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/create-payment",
    response_model=PaymentIntentResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Create Product Payment",
    description="Create a PIX payment for a product using the seller's Mercado Pago credential."
)
def create_payment(
    request: CreatePaymentRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
):
    """
    Create a PIX payment for a product.

    **Process:**
    1. Validates buyer email and name
    2. Loads the product (must exist and be active)
    3. Resolves the seller's Mercado Pago credential
    4. Creates the payment and records a pending sale

    **Example request:**
    ```json
    {"productId": "8a1f...", "buyerEmail": "buyer@example.com", "buyerName": "Maria"}
    ```

    **Errors:**
    - 400 `{"error": "Missing required fields"}`
    - 400 `{"error": "Mercado Pago not configured for seller"}`
    - 404 `{"error": "Product not found"}`
    - processor status `{"error": "Mercado Pago API error", "details": ...}`
    """
    try:
        result = checkout.create_sale_payment(
            request.product_id,
            request.buyer_email,
            request.buyer_name,
        )
    except StorefrontError:
        raise
    except Exception as e:
        logger.exception("create-payment failed")
        raise StorefrontError(f"Failed to create payment: {str(e)}") from e

    return PaymentIntentResponse(
        payment_id=result.payment_id,
        status=result.status,
        qr_code=result.qr_code,
        qr_code_base64=result.qr_code_base64,
    )


@router.get(
    "/check-payment-status",
    response_model=StatusResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Check Payment Status",
    description="Polled by the payment page: reconciles a sale with Mercado Pago and returns its status."
)
def check_payment_status(
    payment_id: Optional[str] = Query(default=None, alias="paymentId"),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
):
    """
    Reconcile the sale created for `paymentId`.

    The buyer's membership to the product is updated alongside the sale.

    **Example usage:**
    ```
    GET /api/check-payment-status?paymentId=123
    ```
    """
    if not payment_id:
        raise ValidationError("Missing paymentId")

    try:
        status = engine.reconcile_sale(payment_id)
    except StorefrontError:
        raise
    except Exception as e:
        logger.exception("check-payment-status failed for payment %s", payment_id)
        raise StorefrontError(f"Failed to check payment status: {str(e)}") from e

    return StatusResponse(status=status)


@router.post(
    "/refresh-membership",
    response_model=StatusResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Refresh Membership",
    description="Manual refresh of a buyer's access to a product."
)
def refresh_membership(
    request: RefreshMembershipRequest,
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
):
    """
    Re-check the latest sale of a product to a buyer and update the membership.

    **Example request:**
    ```json
    {"productId": "8a1f...", "buyerEmail": "buyer@example.com"}
    ```
    """
    product_id = (request.product_id or "").strip()
    buyer_email = (request.buyer_email or "").strip()
    if not product_id or not buyer_email:
        raise ValidationError("Missing required fields")

    try:
        status = engine.refresh_membership(product_id, buyer_email)
    except StorefrontError:
        raise
    except Exception as e:
        logger.exception("refresh-membership failed for product %s", product_id)
        raise StorefrontError(f"Failed to refresh membership: {str(e)}") from e

    return StatusResponse(status=status)
