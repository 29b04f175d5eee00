"""Liveness and collaborator health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...config import settings
from ...services.engine import WasteEngine
from ...services.routing.osrm_client import check_health
from ..dependencies import get_engine

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Liveness probe; touches nothing but the process."""
    return {"status": "ok"}


@router.get("/health/osrm", status_code=status.HTTP_200_OK)
def health_osrm() -> dict:
    if not settings.osrm_base_url:
        # Routes still work, just without road geometry.
        return {"service": "osrm", "configured": False, "healthy": False}
    return {"service": "osrm", "configured": True, "healthy": check_health()}


@router.get("/health/engine", status_code=status.HTTP_200_OK)
def health_engine(engine: WasteEngine = Depends(get_engine)) -> dict:
    """Simulation status: zone and signal counts, tick progress."""
    return {"service": "engine", "healthy": True, **engine.status()}
