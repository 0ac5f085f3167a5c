"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_backend_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.routing.backend_client import check_health as backend_health_check
    return backend_health_check


@router.get("/health/backend", status_code=status.HTTP_200_OK)
async def health_backend() -> dict:
    """Check that the marker/directions backend answers."""
    try:
        backend_health_check = _get_backend_health_check()
        status_flag = await backend_health_check()
        return {"service": "backend", "healthy": status_flag}
    except Exception as e:
        return {"service": "backend", "healthy": False, "error": str(e)}
