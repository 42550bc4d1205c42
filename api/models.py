"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Request fields use the storefront's camelCase names. They are optional at the
schema level so that missing values reach the services, which answer with the
storefront's own 400 error body instead of a schema error.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Checkout Models
# ============================================================================

class CreatePaymentRequest(BaseModel):
    """Buyer request for a product PIX payment."""
    product_id: Optional[str] = Field(default=None, alias="productId")
    buyer_email: Optional[str] = Field(default=None, alias="buyerEmail")
    buyer_name: Optional[str] = Field(default=None, alias="buyerName")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "productId": "8a1f3c52-2b7e-4d0a-9a55-1f2e3d4c5b6a",
                "buyerEmail": "buyer@example.com",
                "buyerName": "Maria"
            }
        }


class CreateSubscriptionRequest(BaseModel):
    """Seller request for a platform plan PIX payment."""
    user_id: Optional[str] = Field(default=None, alias="userId")
    buyer_email: Optional[str] = Field(default=None, alias="buyerEmail")
    buyer_name: Optional[str] = Field(default=None, alias="buyerName")
    plan_type: Optional[str] = Field(
        default=None,
        alias="planType",
        description='"trial" or "monthly" (default)'
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "userId": "u1",
                "buyerEmail": "seller@example.com",
                "buyerName": "John",
                "planType": "trial"
            }
        }


class PaymentIntentResponse(BaseModel):
    """PIX payload handed to the payer."""
    payment_id: Optional[str]
    status: str
    qr_code: Optional[str] = None
    qr_code_base64: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "payment_id": "123",
                "status": "pending",
                "qr_code": "00020126580014br.gov.bcb.pix...",
                "qr_code_base64": "iVBORw0KGgoAAAANSUhEUgAA..."
            }
        }


# ============================================================================
# Status Models
# ============================================================================

class RefreshMembershipRequest(BaseModel):
    """Buyer request to re-check access to a product."""
    product_id: Optional[str] = Field(default=None, alias="productId")
    buyer_email: Optional[str] = Field(default=None, alias="buyerEmail")

    class Config:
        populate_by_name = True


class StatusResponse(BaseModel):
    """Reconciled payment status."""
    status: str


class SubscriptionAccessResponse(BaseModel):
    """Recomputed subscription access for product-creation gating."""
    active: bool
    status: str
    expires_at: Optional[datetime] = None


class WebhookAck(BaseModel):
    """Acknowledgement returned to the processor for every notification."""
    ok: bool = True


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    details: Optional[Any] = None

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Mercado Pago not configured for seller"
            }
        }
