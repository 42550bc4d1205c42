"""
Pytest configuration and shared fakes.

Adds the project root to the Python path so tests can import domain,
repositories, services, etc., and provides in-memory repositories plus a
scripted processor so the payment core runs without Supabase or Mercado Pago.
"""

import sys
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.errors import UpstreamError  # noqa: E402
from domain.payment import ProcessorPayment  # noqa: E402
from domain.sale import Membership, Product, SaleRecord  # noqa: E402
from domain.subscription import ACTIVE, Subscription  # noqa: E402
from services.checkout_service import CheckoutService  # noqa: E402
from services.credential_service import CredentialResolver  # noqa: E402
from services.payment_intent_service import PaymentIntentBuilder  # noqa: E402
from services.reconciliation_service import ReconciliationEngine  # noqa: E402
from services.subscription_access_service import SubscriptionAccessService  # noqa: E402

T0 = datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc)

SELLER_ID = "seller-1"
SELLER_TOKEN = "seller-token"
PLATFORM_TOKEN = "platform-token"
PRODUCT_ID = "prod-1"


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class InMemoryProductRepository:
    def __init__(self) -> None:
        self.products: Dict[str, Product] = {}

    def add(self, product: Product) -> None:
        self.products[product.product_id] = product

    def find_active(self, product_id: str) -> Optional[Product]:
        product = self.products.get(product_id)
        if product is None or not product.is_active:
            return None
        return product


class InMemoryCredentialRepository:
    def __init__(self) -> None:
        self.tokens: Dict[str, str] = {}

    def get_access_token(self, seller_id: str) -> Optional[str]:
        return self.tokens.get(seller_id)


class InMemorySaleRepository:
    def __init__(self) -> None:
        self.sales: List[SaleRecord] = []
        self.status_updates: List[tuple] = []

    def insert(self, sale: SaleRecord) -> SaleRecord:
        stored = replace(sale, sale_id=sale.sale_id or f"sale-{len(self.sales) + 1}")
        self.sales.append(stored)
        return stored

    def find_by_payment_id(self, payment_id: str) -> Optional[SaleRecord]:
        for sale in self.sales:
            if sale.payment_id == payment_id:
                return sale
        return None

    def find_latest_for_buyer(self, product_id: str, buyer_email: str) -> Optional[SaleRecord]:
        matches = [
            sale for sale in self.sales
            if sale.product_id == product_id and sale.buyer_email == buyer_email
        ]
        return matches[-1] if matches else None

    def find_approved_for_buyer(self, product_id: str, buyer_email: str) -> Optional[SaleRecord]:
        matches = [
            sale for sale in self.sales
            if sale.product_id == product_id and sale.buyer_email == buyer_email and sale.payment_status == "approved"
        ]
        return matches[-1] if matches else None

    def update_status(self, payment_id: str, payment_status: str) -> None:
        self.status_updates.append((payment_id, payment_status))
        self.sales = [
            replace(sale, payment_status=payment_status) if sale.payment_id == payment_id else sale
            for sale in self.sales
        ]


class InMemoryMembershipRepository:
    def __init__(self) -> None:
        self.memberships: Dict[tuple, Membership] = {}

    def find(self, product_id: str, buyer_email: str) -> Optional[Membership]:
        return self.memberships.get((product_id, buyer_email))

    def upsert(self, membership: Membership) -> None:
        self.memberships[(membership.product_id, membership.buyer_email)] = membership


class InMemorySubscriptionRepository:
    def __init__(self) -> None:
        self.subscriptions: Dict[str, Subscription] = {}
        self.writes: List[tuple] = []

    def add(self, subscription: Subscription) -> None:
        self.subscriptions[subscription.user_id] = subscription

    def find_by_user_id(self, user_id: str) -> Optional[Subscription]:
        return self.subscriptions.get(user_id)

    def find_by_payment_id(self, payment_id: str) -> Optional[Subscription]:
        for subscription in self.subscriptions.values():
            if subscription.last_payment_id == payment_id:
                return subscription
        return None

    def upsert_pending(self, user_id: str, status: str, last_payment_id: Optional[str]) -> None:
        self.writes.append(("upsert_pending", user_id, status, last_payment_id))
        self.subscriptions[user_id] = Subscription(
            user_id=user_id,
            status=status,
            last_payment_id=last_payment_id,
        )

    def update_status(self, user_id: str, status: str) -> None:
        self.writes.append(("update_status", user_id, status))
        self.subscriptions[user_id] = replace(self.subscriptions[user_id], status=status)

    def activate(self, user_id, activated_at, expires_at, last_payment_id=None) -> None:
        self.writes.append(("activate", user_id, activated_at, expires_at, last_payment_id))
        current = self.subscriptions[user_id]
        self.subscriptions[user_id] = replace(
            current,
            status=ACTIVE,
            activated_at=activated_at,
            expires_at=expires_at,
            last_payment_id=last_payment_id or current.last_payment_id,
        )


class FakeProcessor:
    """
    Scripted stand-in for MercadoPagoClient.

    Created payments get sequential ids starting at 123 and are registered as
    pending in ``payments`` so a later get_payment finds them.
    """

    def __init__(self) -> None:
        self.payments: Dict[str, Dict[str, Any]] = {}
        self.next_id = 123
        self.create_calls: List[Dict[str, Any]] = []
        self.get_calls: List[tuple] = []
        self.error: Optional[UpstreamError] = None

    def create_payment(self, payload, access_token, idempotency_key=None) -> ProcessorPayment:
        self.create_calls.append(
            {"payload": payload, "access_token": access_token, "idempotency_key": idempotency_key}
        )
        if self.error is not None:
            raise self.error
        payment_id = self.next_id
        self.next_id += 1
        response = {
            "id": payment_id,
            "status": "pending",
            "transaction_amount": payload.get("transaction_amount"),
            "external_reference": payload.get("external_reference"),
            "point_of_interaction": {
                "transaction_data": {"qr_code": "code", "qr_code_base64": "b64"},
            },
        }
        self.payments.setdefault(str(payment_id), dict(response))
        return ProcessorPayment.from_response(response)

    def get_payment(self, payment_id, access_token) -> ProcessorPayment:
        self.get_calls.append((payment_id, access_token))
        if self.error is not None:
            raise self.error
        if payment_id not in self.payments:
            raise UpstreamError(
                "Mercado Pago API error",
                status_code=404,
                details={"message": "Payment not found", "status": 404},
            )
        return ProcessorPayment.from_response(self.payments[payment_id])


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(T0)


@pytest.fixture
def products() -> InMemoryProductRepository:
    repo = InMemoryProductRepository()
    repo.add(Product(product_id=PRODUCT_ID, seller_id=SELLER_ID, name="Curso de PIX", price=Decimal("49.90")))
    return repo


@pytest.fixture
def credentials() -> InMemoryCredentialRepository:
    repo = InMemoryCredentialRepository()
    repo.tokens[SELLER_ID] = SELLER_TOKEN
    return repo


@pytest.fixture
def sales() -> InMemorySaleRepository:
    return InMemorySaleRepository()


@pytest.fixture
def memberships() -> InMemoryMembershipRepository:
    return InMemoryMembershipRepository()


@pytest.fixture
def subscriptions() -> InMemorySubscriptionRepository:
    return InMemorySubscriptionRepository()


@pytest.fixture
def processor() -> FakeProcessor:
    return FakeProcessor()


@pytest.fixture
def resolver(credentials) -> CredentialResolver:
    return CredentialResolver(credentials, PLATFORM_TOKEN)


@pytest.fixture
def engine(sales, memberships, subscriptions, resolver, processor, clock) -> ReconciliationEngine:
    return ReconciliationEngine(
        sales=sales,
        memberships=memberships,
        subscriptions=subscriptions,
        credentials=resolver,
        processor=processor,
        clock=clock,
    )


@pytest.fixture
def checkout(products, sales, memberships, subscriptions, resolver, processor) -> CheckoutService:
    return CheckoutService(
        products=products,
        sales=sales,
        memberships=memberships,
        subscriptions=subscriptions,
        credentials=resolver,
        intents=PaymentIntentBuilder("https://loja.example.com", idempotency_key_factory=lambda: "idem-1"),
        processor=processor,
    )


@pytest.fixture
def access(subscriptions, clock) -> SubscriptionAccessService:
    return SubscriptionAccessService(subscriptions, clock=clock)


@pytest.fixture
def api_client(checkout, engine, access):
    """TestClient with every service dependency replaced by the fakes above."""

    from fastapi.testclient import TestClient

    from api.dependencies import (
        get_checkout_service,
        get_reconciliation_engine,
        get_reconciliation_engine_factory,
        get_subscription_access_service,
    )
    from api.main import app

    app.dependency_overrides[get_checkout_service] = lambda: checkout
    app.dependency_overrides[get_reconciliation_engine] = lambda: engine
    app.dependency_overrides[get_reconciliation_engine_factory] = lambda: (lambda: engine)
    app.dependency_overrides[get_subscription_access_service] = lambda: access
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()