"""
Credential resolution for processor calls.

- Product sales are charged with the seller's own Mercado Pago token. A seller
  without one cannot sell; there is no fallback to the platform token.
- Subscriptions are charged with the single platform token from settings.
"""

from __future__ import annotations

from typing import Optional

from domain.errors import ConfigurationError
from repositories.interfaces import CredentialRepository

SELLER_NOT_CONFIGURED = "Mercado Pago not configured for seller"
PLATFORM_NOT_CONFIGURED = "Mercado Pago platform token not configured"


class CredentialResolver:
    def __init__(self, credentials: CredentialRepository, platform_access_token: Optional[str]) -> None:
        self._credentials = credentials
        self._platform_access_token = platform_access_token

    def for_seller(self, seller_id: str) -> str:
        """
        Access token authorizing a product sale of ``seller_id``.

        Raises:
            ConfigurationError (400): the seller has no stored credential
        """

        token = self._credentials.get_access_token(seller_id)
        if not token:
            raise ConfigurationError(SELLER_NOT_CONFIGURED, status_code=400)
        return token

    def for_platform(self) -> str:
        """
        Access token authorizing subscription payments.

        Raises:
            ConfigurationError (500): MP_PLATFORM_ACCESS_TOKEN is unset
        """

        if not self._platform_access_token:
            raise ConfigurationError(PLATFORM_NOT_CONFIGURED, status_code=500)
        return self._platform_access_token

    @property
    def has_platform_credential(self) -> bool:
        return bool(self._platform_access_token)


__all__ = ["CredentialResolver", "PLATFORM_NOT_CONFIGURED", "SELLER_NOT_CONFIGURED"]
