"""Persistence backends."""

import logging
from functools import lru_cache

from .memory import InMemoryRepository
from .repository import FieldDataRepository


@lru_cache(maxsize=1)
def get_repository() -> FieldDataRepository:
    """Supabase when configured, otherwise a process-local store."""
    from .database import SupabaseRepository

    try:
        return SupabaseRepository()
    except ValueError:
        logging.warning("Supabase not configured - using in-memory repository")
        return InMemoryRepository()


__all__ = ["FieldDataRepository", "InMemoryRepository", "get_repository"]
