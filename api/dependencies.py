"""
Service wiring for the API.

Everything is built once per process from Settings and handed to the routers
through FastAPI dependencies; tests replace these providers with
app.dependency_overrides.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Callable

from config.settings import Settings, load_settings
from integrations.mercadopago_client import MercadoPagoClient
from repositories.client import create_supabase_client
from repositories.membership_repository import SupabaseMembershipRepository
from repositories.product_repository import (
    SupabaseCredentialRepository,
    SupabaseProductRepository,
)
from repositories.sale_repository import SupabaseSaleRepository
from repositories.subscription_repository import SupabaseSubscriptionRepository
from services.checkout_service import CheckoutService
from services.credential_service import CredentialResolver
from services.payment_intent_service import PaymentIntentBuilder
from services.reconciliation_service import ReconciliationEngine
from services.subscription_access_service import SubscriptionAccessService


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def _supabase():
    return create_supabase_client(get_settings())


@lru_cache(maxsize=1)
def _processor() -> MercadoPagoClient:
    return MercadoPagoClient.from_settings(get_settings())


def _credential_resolver() -> CredentialResolver:
    return CredentialResolver(
        SupabaseCredentialRepository(_supabase()),
        get_settings().mp_platform_access_token,
    )


@lru_cache(maxsize=1)
def get_checkout_service() -> CheckoutService:
    client = _supabase()
    return CheckoutService(
        products=SupabaseProductRepository(client),
        sales=SupabaseSaleRepository(client),
        memberships=SupabaseMembershipRepository(client),
        subscriptions=SupabaseSubscriptionRepository(client),
        credentials=_credential_resolver(),
        intents=PaymentIntentBuilder(get_settings().webhook_base_url),
        processor=_processor(),
    )


@lru_cache(maxsize=1)
def get_reconciliation_engine() -> ReconciliationEngine:
    client = _supabase()
    return ReconciliationEngine(
        sales=SupabaseSaleRepository(client),
        memberships=SupabaseMembershipRepository(client),
        subscriptions=SupabaseSubscriptionRepository(client),
        credentials=_credential_resolver(),
        processor=_processor(),
    )


def get_reconciliation_engine_factory() -> Callable[[], ReconciliationEngine]:
    """
    Deferred engine construction for the webhook gateway.

    The webhook must acknowledge even when the engine cannot be built (e.g.
    missing Supabase settings), so it builds the engine inside its own error
    handling instead of through a failing dependency.
    """

    return get_reconciliation_engine


@lru_cache(maxsize=1)
def get_subscription_access_service() -> SubscriptionAccessService:
    return SubscriptionAccessService(SupabaseSubscriptionRepository(_supabase()))


def close_resources() -> None:
    """Release the processor connection pool on shutdown."""

    if _processor.cache_info().currsize:
        _processor().close()
    _processor.cache_clear()
