"""
Mercado Pago notification parsing.

Notifications arrive in several shapes depending on the product and API
version that emitted them:

- {"type": "payment", "data": {"id": "123"}}     (webhooks v1)
- {"id": "123", "topic": "payment"}              (legacy IPN body)
- {"resource": {"id": "123"}}
- {"payment": {"id": "123"}}
- ?id=123&topic=payment  or  ?data.id=123 / ?data_id=123  (query string)

The body paths are tried first, in the order above, then the query string.
The first non-empty value wins.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

_BODY_PATHS = (
    ("data", "id"),
    ("id",),
    ("resource", "id"),
    ("payment", "id"),
)

_QUERY_KEYS = ("id", "data_id", "data.id")


def _dig(body: Mapping[str, Any], path: Iterable[str]) -> Any:
    value: Any = body
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _as_payment_id(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (bool, Mapping, list)):
        return None
    text = str(value).strip()
    return text or None


def extract_payment_id(
    body: Any = None,
    query: Optional[Mapping[str, Any]] = None,
) -> Optional[str]:
    """Payment id carried by a notification, or None when there is none."""

    if isinstance(body, Mapping):
        for path in _BODY_PATHS:
            payment_id = _as_payment_id(_dig(body, path))
            if payment_id:
                return payment_id

    if query:
        for key in _QUERY_KEYS:
            value = query.get(key)
            if isinstance(value, (list, tuple)):
                value = value[0] if value else None
            payment_id = _as_payment_id(value)
            if payment_id:
                return payment_id

    return None


__all__ = ["extract_payment_id"]
