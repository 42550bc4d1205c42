"""
Product and seller-credential lookups (read-only).

Products and Mercado Pago credentials are managed by sellers through the
storefront UI; the payment core only reads them.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.sale import Product

_PRODUCTS_TABLE: str = "products"
_MP_CONFIG_TABLE: str = "mercado_pago_config"


def _row_to_product(row: Mapping[str, Any]) -> Product:
    return Product(
        product_id=str(row["id"]),
        seller_id=str(row["user_id"]),
        name=str(row.get("name") or ""),
        price=Decimal(str(row["price"])),
        is_active=bool(row.get("is_active", True)),
        description=row.get("description"),
    )


class SupabaseProductRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def find_active(self, product_id: str) -> Optional[Product]:
        """
        Retrieve an active product by id.

        Returns:
            Product or None when missing or deactivated by the seller
        """

        response = (
            self._client.table(_PRODUCTS_TABLE)
            .select("id,name,price,user_id,is_active,description")
            .eq("id", product_id)
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to get product: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return _row_to_product(rows[0])


class SupabaseCredentialRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def get_access_token(self, seller_id: str) -> Optional[str]:
        response = (
            self._client.table(_MP_CONFIG_TABLE)
            .select("access_token")
            .eq("user_id", seller_id)
            .limit(1)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to get Mercado Pago config: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        token = rows[0].get("access_token")
        return str(token) if token else None


__all__ = ["SupabaseCredentialRepository", "SupabaseProductRepository"]
