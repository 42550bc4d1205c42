"""
Application settings.

Settings are read from the environment exactly once, by load_settings(), and
the resulting object is passed explicitly to every component that needs a
value. Business logic never calls os.getenv.

Environment variables:
- SUPABASE_URL: Supabase project URL
- SUPABASE_SERVICE_ROLE_KEY: server-side Supabase key (SUPABASE_KEY accepted)
- MP_PLATFORM_ACCESS_TOKEN: platform Mercado Pago credential (subscriptions)
- WEBHOOK_BASE_URL: public base URL for processor notifications
  (falls back to https://$VERCEL_URL; absent means polling-only operation)
- MP_API_BASE_URL: processor API base (default https://api.mercadopago.com)
- HTTP_TIMEOUT_SECONDS: per-call processor timeout (default 15)
- LOG_LEVEL: logging level (default INFO)
- ALLOWED_ORIGINS: comma-separated CORS origins (default "*")
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

DEFAULT_MP_API_BASE_URL = "https://api.mercadopago.com"
DEFAULT_HTTP_TIMEOUT_SECONDS = 15.0

_ENV_PATH = Path(__file__).parent.parent / ".env"


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = field(default=None, repr=False)
    mp_platform_access_token: Optional[str] = field(default=None, repr=False)
    webhook_base_url: Optional[str] = None
    mp_api_base_url: str = DEFAULT_MP_API_BASE_URL
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    log_level: str = "INFO"
    allowed_origins: Tuple[str, ...] = ("*",)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    return text or None


def _parse_timeout(value: Optional[str]) -> float:
    text = _clean(value)
    if text is None:
        return DEFAULT_HTTP_TIMEOUT_SECONDS
    try:
        timeout = float(text)
    except ValueError:
        raise ValueError(f"HTTP_TIMEOUT_SECONDS must be a number, got {value!r}") from None
    if timeout <= 0:
        raise ValueError("HTTP_TIMEOUT_SECONDS must be > 0")
    return timeout


def settings_from_mapping(env: Mapping[str, str]) -> Settings:
    """Build Settings from an environment-like mapping."""

    webhook_base_url = _clean(env.get("WEBHOOK_BASE_URL"))
    vercel_url = _clean(env.get("VERCEL_URL"))
    if webhook_base_url is None and vercel_url is not None:
        webhook_base_url = f"https://{vercel_url}"

    origins = tuple(
        origin.strip()
        for origin in (env.get("ALLOWED_ORIGINS") or "*").split(",")
        if origin.strip()
    )

    return Settings(
        supabase_url=_clean(env.get("SUPABASE_URL")),
        supabase_key=_clean(env.get("SUPABASE_SERVICE_ROLE_KEY")) or _clean(env.get("SUPABASE_KEY")),
        mp_platform_access_token=_clean(env.get("MP_PLATFORM_ACCESS_TOKEN")),
        webhook_base_url=webhook_base_url,
        mp_api_base_url=_clean(env.get("MP_API_BASE_URL")) or DEFAULT_MP_API_BASE_URL,
        http_timeout_seconds=_parse_timeout(env.get("HTTP_TIMEOUT_SECONDS")),
        log_level=(_clean(env.get("LOG_LEVEL")) or "INFO").upper(),
        allowed_origins=origins or ("*",),
    )


def load_settings() -> Settings:
    """Load the project .env (if present) and read Settings from os.environ."""

    load_dotenv(dotenv_path=_ENV_PATH)
    return settings_from_mapping(os.environ)


__all__ = ["Settings", "load_settings", "settings_from_mapping"]
