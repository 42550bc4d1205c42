"""
Domain: error taxonomy shared by services and gateways.

Each error carries the HTTP status a user-facing gateway should answer with.
The webhook gateway swallows all of them and always acknowledges receipt.
"""

from __future__ import annotations

from typing import Any, Optional


class StorefrontError(Exception):
    """Base class for errors raised by the storefront payment core."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(StorefrontError):
    """Missing or malformed input."""

    status_code = 400


class ConfigurationError(StorefrontError):
    """A processor credential or required setting is absent."""

    status_code = 500


class NotFoundError(StorefrontError):
    """Unknown product, sale or subscription."""

    status_code = 404


class UpstreamError(StorefrontError):
    """
    The payment processor answered with a non-success status.

    ``status_code`` is the processor's HTTP status and ``details`` its response
    body, verbatim, for diagnostics.
    """

    status_code = 502


__all__ = [
    "StorefrontError",
    "ValidationError",
    "ConfigurationError",
    "NotFoundError",
    "UpstreamError",
]
