"""
Mercado Pago payments API client.

Thin wrapper over POST /v1/payments and GET /v1/payments/{id}. The access
token is supplied per call because sales are charged with the seller's own
credential while subscriptions use the platform credential.

No retries happen here: a failed call surfaces as UpstreamError and the
payment is reconciled again on the next poll, webhook or refresh.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional
from urllib.parse import quote

import httpx

from config.settings import DEFAULT_HTTP_TIMEOUT_SECONDS, DEFAULT_MP_API_BASE_URL, Settings
from domain.errors import UpstreamError
from domain.payment import ProcessorPayment

logger = logging.getLogger(__name__)

_PAYMENTS_PATH = "/v1/payments"
_UPSTREAM_ERROR_MESSAGE = "Mercado Pago API error"


def _response_body(response: httpx.Response) -> Any:
    """Processor body, verbatim: decoded JSON when possible, text otherwise."""

    try:
        return response.json()
    except ValueError:
        return response.text


class MercadoPagoClient:
    """Payments API client bound to one HTTP connection pool."""

    def __init__(
        self,
        base_url: str = DEFAULT_MP_API_BASE_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._http = http_client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "MercadoPagoClient":
        return cls(base_url=settings.mp_api_base_url, timeout=settings.http_timeout_seconds)

    def close(self) -> None:
        self._http.close()

    def _request(
        self,
        method: str,
        path: str,
        access_token: str,
        *,
        json: Optional[Mapping[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> ProcessorPayment:
        headers = {"Authorization": f"Bearer {access_token}"}
        if idempotency_key:
            headers["X-Idempotency-Key"] = idempotency_key

        try:
            response = self._http.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Mercado Pago %s %s failed: %s", method, path, exc)
            raise UpstreamError(
                _UPSTREAM_ERROR_MESSAGE,
                status_code=502,
                details=str(exc),
            ) from exc

        if not response.is_success:
            body = _response_body(response)
            logger.warning(
                "Mercado Pago %s %s returned %s", method, path, response.status_code
            )
            raise UpstreamError(
                _UPSTREAM_ERROR_MESSAGE,
                status_code=response.status_code,
                details=body,
            )

        data = _response_body(response)
        if not isinstance(data, Mapping):
            raise UpstreamError(
                _UPSTREAM_ERROR_MESSAGE,
                status_code=502,
                details=data,
            )
        return ProcessorPayment.from_response(data)

    def create_payment(
        self,
        payload: Mapping[str, Any],
        access_token: str,
        idempotency_key: Optional[str] = None,
    ) -> ProcessorPayment:
        """Create a payment; returns the processor's payment object."""

        return self._request(
            "POST",
            _PAYMENTS_PATH,
            access_token,
            json=payload,
            idempotency_key=idempotency_key,
        )

    def get_payment(self, payment_id: str, access_token: str) -> ProcessorPayment:
        """Fetch the current state of a payment."""

        return self._request("GET", f"{_PAYMENTS_PATH}/{quote(payment_id, safe='')}", access_token)


__all__ = ["MercadoPagoClient"]
