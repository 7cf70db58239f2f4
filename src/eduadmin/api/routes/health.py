"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...db.supabase import get_supabase_client, is_supabase_configured

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_snapshot_generator():
    """Lazy import to avoid startup failures."""
    from ..dependencies import get_snapshot_generator
    return get_snapshot_generator()


@router.get("/health/map", status_code=status.HTTP_200_OK)
def health_map() -> dict:
    """Report whether map snapshots can be generated."""
    try:
        generator = _get_snapshot_generator()
        return {"service": "kakao-static-map", "configured": generator.is_configured}
    except Exception as e:
        return {"service": "kakao-static-map", "configured": False, "error": str(e)}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def health_database() -> dict:
    """Report whether the Supabase store is configured."""
    if not is_supabase_configured():
        return {"service": "supabase", "configured": False, "connected": False}
    return {"service": "supabase", "configured": True, "connected": get_supabase_client() is not None}
