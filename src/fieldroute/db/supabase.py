"""Supabase client for the route store."""

import logging
from functools import lru_cache
from supabase import create_client, Client
from ..config import settings


def supabase_configured() -> bool:
    return bool(settings.supabase_url and settings.supabase_key)


@lru_cache()
def get_supabase_client() -> Client | None:
    """Get cached Supabase client instance.

    Returns:
        Supabase Client instance if configured, None otherwise.
        Note: This does not test the connection - use ``ping`` for that.
    """
    if not supabase_configured():
        logging.warning("Supabase credentials not configured (missing URL or key)")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logging.error(f"Failed to create Supabase client: {e}")
        return None


def ping(client: Client, table: str = "routes") -> dict:
    """Cheap round trip against ``table`` for health reporting."""
    try:
        client.table(table).select("id", count="exact").limit(1).execute()
        return {"connected": True, "table": table}
    except Exception as e:
        logging.warning(f"Supabase ping against '{table}' failed: {e}")
        return {"connected": False, "table": table, "error": str(e)}
