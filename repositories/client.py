"""
Supabase client initialization.

This module contains *only* the database connection setup. Repositories
receive the client through their constructor; nothing here reads the
environment directly (see config/settings.py).
"""

from __future__ import annotations

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from config.settings import Settings
from domain.errors import ConfigurationError


def create_supabase_client(settings: Settings) -> Client:
    """
    Create the official Supabase client from explicit settings.

    Raises:
        ConfigurationError: if the Supabase URL or key is missing
    """

    if not settings.supabase_url:
        raise ConfigurationError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not settings.supabase_key:
        raise ConfigurationError(
            "Missing environment variable: SUPABASE_SERVICE_ROLE_KEY. "
            "Set it to your Supabase server-side API key."
        )

    return create_client(settings.supabase_url, settings.supabase_key)


__all__ = ["create_supabase_client"]
