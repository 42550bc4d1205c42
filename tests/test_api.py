"""
Tests for the HTTP surface in `api/`.

Services run against the in-memory fakes from conftest.py through
app.dependency_overrides.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from domain.errors import UpstreamError
from domain.sale import SaleRecord
from domain.subscription import ACTIVE, Subscription

from conftest import PRODUCT_ID, SELLER_ID, T0


def test_health(api_client) -> None:
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_create_subscription_trial(api_client, subscriptions, processor) -> None:
    response = api_client.post(
        "/api/create-subscription",
        json={"userId": "u1", "buyerEmail": "e@x.com", "buyerName": "John", "planType": "trial"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["payment_id"] == "123"
    assert body["status"] == "pending"
    assert body["qr_code"] == "code"
    assert body["qr_code_base64"] == "b64"

    payload = processor.create_calls[0]["payload"]
    assert payload["transaction_amount"] == 2.0
    assert payload["description"] == "Plano de teste - 5 minutos"
    assert payload["external_reference"] == "subscription-u1-trial"

    subscription = subscriptions.find_by_user_id("u1")
    assert subscription.status == "pending"
    assert subscription.last_payment_id == "123"


def test_create_subscription_missing_fields(api_client, processor) -> None:
    response = api_client.post("/api/create-subscription", json={"userId": "u1"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}
    assert processor.create_calls == []


def test_create_payment(api_client, sales) -> None:
    response = api_client.post(
        "/api/create-payment",
        json={"productId": PRODUCT_ID, "buyerEmail": "buyer@example.com", "buyerName": "Maria"},
    )

    assert response.status_code == 200
    assert response.json()["payment_id"] == "123"
    assert sales.find_by_payment_id("123").payment_status == "pending"


def test_create_payment_without_seller_credential(api_client, credentials, sales, processor) -> None:
    credentials.tokens.clear()

    response = api_client.post(
        "/api/create-payment",
        json={"productId": PRODUCT_ID, "buyerEmail": "buyer@example.com", "buyerName": "Maria"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Mercado Pago not configured for seller"}
    assert processor.create_calls == []
    assert sales.sales == []


def test_create_payment_unknown_product(api_client) -> None:
    response = api_client.post(
        "/api/create-payment",
        json={"productId": "missing", "buyerEmail": "buyer@example.com", "buyerName": "Maria"},
    )

    assert response.status_code == 404
    assert response.json() == {"error": "Product not found"}


def test_create_payment_invalid_email(api_client) -> None:
    response = api_client.post(
        "/api/create-payment",
        json={"productId": PRODUCT_ID, "buyerEmail": "nope", "buyerName": "Maria"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid buyer email"}


def test_create_payment_malformed_body(api_client) -> None:
    response = api_client.post(
        "/api/create-payment",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


def test_create_payment_processor_error_keeps_processor_status(api_client, processor) -> None:
    processor.error = UpstreamError(
        "Mercado Pago API error",
        status_code=400,
        details={"message": "payer.email invalid"},
    )

    response = api_client.post(
        "/api/create-payment",
        json={"productId": PRODUCT_ID, "buyerEmail": "buyer@example.com", "buyerName": "Maria"},
    )

    assert response.status_code == 400
    assert response.json() == {
        "error": "Mercado Pago API error",
        "details": {"message": "payer.email invalid"},
    }


def test_check_payment_status(api_client, sales, memberships, processor) -> None:
    sales.insert(
        SaleRecord(
            product_id=PRODUCT_ID,
            seller_id=SELLER_ID,
            buyer_email="buyer@example.com",
            buyer_name="Maria",
            amount=Decimal("49.90"),
            payment_id="123",
            payment_status="pending",
            created_at=T0,
        )
    )
    processor.payments["123"] = {"id": 123, "status": "approved"}

    response = api_client.get("/api/check-payment-status", params={"paymentId": "123"})

    assert response.status_code == 200
    assert response.json() == {"status": "approved"}
    assert memberships.find(PRODUCT_ID, "buyer@example.com").status == "approved"

    response = api_client.post(
        "/api/refresh-membership",
        json={"productId": PRODUCT_ID, "buyerEmail": "buyer@example.com"},
    )
    assert response.status_code == 200
    assert response.json() == {"status": "approved"}


def test_check_payment_status_missing_id(api_client) -> None:
    response = api_client.get("/api/check-payment-status")

    assert response.status_code == 400
    assert response.json() == {"error": "Missing paymentId"}


def test_check_payment_status_unknown_sale(api_client) -> None:
    response = api_client.get("/api/check-payment-status", params={"paymentId": "999"})

    assert response.status_code == 404
    assert response.json() == {"error": "Sale not found"}


def test_refresh_membership_missing_fields(api_client) -> None:
    response = api_client.post("/api/refresh-membership", json={"productId": PRODUCT_ID})

    assert response.status_code == 400


def test_check_subscription_status_activates(api_client, subscriptions, processor) -> None:
    subscriptions.upsert_pending("u1", "pending", "123")
    processor.payments["123"] = {
        "id": 123,
        "status": "approved",
        "transaction_amount": 2,
        "external_reference": "subscription-u1-trial",
    }

    response = api_client.get("/api/check-subscription-status", params={"userId": "u1"})

    assert response.status_code == 200
    assert response.json() == {"status": "approved"}
    assert subscriptions.find_by_user_id("u1").expires_at == T0 + timedelta(minutes=5)


def test_check_subscription_status_requires_an_identifier(api_client) -> None:
    response = api_client.get("/api/check-subscription-status")

    assert response.status_code == 400
    assert response.json() == {"error": "Missing paymentId or userId"}


def test_check_subscription_status_unknown(api_client) -> None:
    response = api_client.get("/api/check-subscription-status", params={"paymentId": "999"})

    assert response.status_code == 404
    assert response.json() == {"error": "Subscription not found"}


def test_subscription_access(api_client, subscriptions, clock) -> None:
    subscriptions.add(
        Subscription(
            user_id="u1",
            status=ACTIVE,
            last_payment_id="123",
            activated_at=T0,
            expires_at=T0 + timedelta(minutes=5),
        )
    )

    response = api_client.get("/api/subscription-access", params={"userId": "u1"})
    assert response.status_code == 200
    assert response.json()["active"] is True
    assert response.json()["status"] == "active"

    clock.now = T0 + timedelta(minutes=5)
    response = api_client.get("/api/subscription-access", params={"userId": "u1"})
    assert response.json()["active"] is False
    assert response.json()["status"] == "expired"


def test_subscription_access_missing_user(api_client) -> None:
    response = api_client.get("/api/subscription-access")

    assert response.status_code == 400
    assert response.json() == {"error": "Missing userId"}
