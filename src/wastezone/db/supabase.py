"""Supabase client for the household-signal collaborator."""

import logging
from functools import lru_cache

from supabase import Client, create_client

from ..config import settings


@lru_cache()
def get_supabase_client() -> Client | None:
    """Shared Supabase client, or None when credentials are absent.

    Creating the client does not open a connection; failures surface on the
    first query, where :class:`SupabaseSignalSource` retries them.
    """
    if not (settings.supabase_url and settings.supabase_key):
        logging.info("Supabase credentials not configured; household signals are accepted via the API only")
        return None
    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as exc:
        logging.error(f"Could not create Supabase client for {settings.supabase_url}: {exc}")
        return None
