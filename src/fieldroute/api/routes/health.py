"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...persistence import FieldDataRepository, InMemoryRepository
from ..dependencies import get_repository

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database(repository: FieldDataRepository = Depends(get_repository)) -> dict:
    """Report which store is in use and whether Supabase answers."""
    client = getattr(repository, "client", None)
    if isinstance(repository, InMemoryRepository) or client is None:
        return {
            "configured": False,
            "backend": "memory",
            "message": "Supabase not configured. Set FIELDROUTE_SUPABASE_URL and FIELDROUTE_SUPABASE_KEY environment variables.",
        }

    from ...db.supabase import ping

    result = ping(client)
    return {
        "configured": True,
        "backend": "supabase",
        **result,
    }
