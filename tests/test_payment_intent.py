"""
Tests for `services/payment_intent_service.py`.

Covers contract rules:
- Subscription intents carry the plan's amount and description, a
  "-trial"-suffixed external_reference only for the trial plan, and an
  idempotency key.
- Sale intents carry the product price and name and no idempotency key.
- notification_url is attached only for a valid absolute base URL.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from domain.errors import ValidationError
from domain.sale import Product
from domain.subscription import PlanType, infer_plan_type
from services.payment_intent_service import (
    INVALID_EMAIL,
    MISSING_FIELDS,
    PaymentIntentBuilder,
    resolve_notification_url,
    validate_buyer,
)

PRODUCT = Product(product_id="prod-1", seller_id="seller-1", name="Curso de PIX", price=Decimal("49.90"))


def _builder(base_url=None) -> PaymentIntentBuilder:
    return PaymentIntentBuilder(base_url, idempotency_key_factory=lambda: "idem-1")


def test_trial_subscription_intent() -> None:
    intent = _builder().for_subscription("u1", "e@x.com", "John", "trial")

    assert intent.payload == {
        "transaction_amount": 2.0,
        "description": "Plano de teste - 5 minutos",
        "payment_method_id": "pix",
        "payer": {"email": "e@x.com", "first_name": "John"},
        "external_reference": "subscription-u1-trial",
    }
    assert intent.idempotency_key == "idem-1"


@pytest.mark.parametrize("plan_type", [None, "", "monthly", "annual"])
def test_monthly_subscription_intent_is_the_default(plan_type) -> None:
    intent = _builder().for_subscription("u1", "e@x.com", "John", plan_type)

    assert intent.payload["transaction_amount"] == 37.9
    assert intent.payload["description"] == "Assinatura Mensal"
    assert intent.payload["external_reference"] == "subscription-u1"


@pytest.mark.parametrize("plan_type", ["trial", "monthly"])
def test_subscription_intent_plan_can_be_inferred_back(plan_type: str) -> None:
    intent = _builder().for_subscription("u1", "e@x.com", "John", plan_type)
    expected = PlanType.parse(plan_type)

    assert infer_plan_type(external_reference=intent.payload["external_reference"]) is expected
    assert infer_plan_type(amount=intent.payload["transaction_amount"]) is expected
    assert Decimal(str(intent.payload["transaction_amount"])) == expected.price


def test_each_subscription_intent_gets_a_fresh_idempotency_key() -> None:
    builder = PaymentIntentBuilder()

    first = builder.for_subscription("u1", "e@x.com", "John")
    second = builder.for_subscription("u1", "e@x.com", "John")

    assert first.idempotency_key and second.idempotency_key
    assert first.idempotency_key != second.idempotency_key


def test_sale_intent() -> None:
    intent = _builder().for_sale(PRODUCT, " buyer@example.com ", " Maria ")

    assert intent.payload == {
        "transaction_amount": 49.9,
        "description": "Curso de PIX",
        "payment_method_id": "pix",
        "payer": {"email": "buyer@example.com", "first_name": "Maria"},
    }
    assert intent.idempotency_key is None


def test_notification_url_attached_to_both_intents() -> None:
    builder = _builder("https://loja.example.com/some/page?x=1")

    sale = builder.for_sale(PRODUCT, "buyer@example.com", "Maria")
    subscription = builder.for_subscription("u1", "e@x.com", "John")

    assert sale.payload["notification_url"] == "https://loja.example.com/api/mp-webhook"
    assert subscription.payload["notification_url"] == "https://loja.example.com/api/mp-webhook"


@pytest.mark.parametrize(
    "base_url, expected",
    [
        ("https://loja.example.com", "https://loja.example.com/api/mp-webhook"),
        ("http://localhost:3000/", "http://localhost:3000/api/mp-webhook"),
        ("https://app.vercel.app/path", "https://app.vercel.app/api/mp-webhook"),
        ("loja.example.com", None),
        ("ftp://loja.example.com", None),
        ("https://", None),
        ("", None),
        (None, None),
    ],
)
def test_resolve_notification_url(base_url, expected) -> None:
    assert resolve_notification_url(base_url) == expected


def test_invalid_base_url_omits_notification_url() -> None:
    intent = _builder("not a url").for_subscription("u1", "e@x.com", "John")

    assert "notification_url" not in intent.payload


@pytest.mark.parametrize(
    "email, name",
    [(None, "John"), ("e@x.com", None), ("", "John"), ("e@x.com", "   ")],
)
def test_missing_buyer_fields_rejected(email, name) -> None:
    with pytest.raises(ValidationError) as exc:
        validate_buyer(email, name)

    assert exc.value.message == MISSING_FIELDS
    assert exc.value.status_code == 400


def test_malformed_email_rejected() -> None:
    with pytest.raises(ValidationError) as exc:
        validate_buyer("not-an-email", "John")

    assert exc.value.message == INVALID_EMAIL


def test_subscription_requires_user_id() -> None:
    with pytest.raises(ValidationError) as exc:
        _builder().for_subscription(" ", "e@x.com", "John", "trial")

    assert exc.value.message == MISSING_FIELDS
