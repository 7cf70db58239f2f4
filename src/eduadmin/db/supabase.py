"""Supabase client shared by the instructor, institution, policy and travel tables."""

import logging
from functools import lru_cache

from supabase import Client, create_client

from ..config import settings

logger = logging.getLogger(__name__)


def is_supabase_configured() -> bool:
    return bool(settings.supabase_url and settings.supabase_key)


@lru_cache()
def get_supabase_client() -> Client | None:
    """Return the cached Supabase client, or None when running without a database.

    Creating the client does not open a connection; query failures surface
    from the individual table calls.
    """
    if not is_supabase_configured():
        logger.warning("Supabase credentials not configured; travel data stays in memory")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error(f"Failed to create Supabase client: {e}")
        return None
