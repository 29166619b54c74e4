"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_geocoding_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.geocoding.client import check_health as geocoding_health_check
    return geocoding_health_check


@router.get("/health/geocoding", status_code=status.HTTP_200_OK)
def health_geocoding() -> dict:
    """Check the geocoding provider answers."""
    try:
        return {"service": "geocoding", "healthy": _get_geocoding_health_check()()}
    except Exception as e:
        return {"service": "geocoding", "healthy": False, "error": str(e)}


@router.get("/health/pricing", status_code=status.HTTP_200_OK)
def health_pricing(request: Request) -> dict:
    """Report whether a pricing snapshot is loaded and what it contains."""
    calculator = request.app.state.calculator
    if not calculator.is_initialized:
        return {
            "initialized": False,
            "message": "Pricing configuration not loaded. Check CP_SUPABASE_URL and CP_SUPABASE_KEY.",
        }
    snapshot = calculator.snapshot
    return {
        "initialized": True,
        "zones": [
            {"name": zone.name, "min_distance": zone.min_distance, "max_distance": zone.max_distance}
            for zone in snapshot.zones
        ],
        "adjustments": len(snapshot.adjustments),
        "promotions": len(snapshot.promotions),
        "loaded_at": snapshot.loaded_at.isoformat(),
    }
