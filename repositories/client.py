"""
Supabase client initialization.

This module contains *only* the database connection setup and exposes
`get_supabase()`, which returns the single process-wide client for other
repository modules to use.

The client is created on first use rather than at import so that modules can
be imported (and tested against a fake) without credentials.

Environment variables required (see `settings.py`):
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase service key (server-side only, bypasses RLS)
"""

from __future__ import annotations

from functools import lru_cache

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from settings import get_settings


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Create (once) and return the Supabase client."""

    settings = get_settings()

    if not settings.supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not settings.supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase service key."
        )

    return create_client(settings.supabase_url, settings.supabase_key)


__all__ = ["get_supabase"]
