"""Zone snapshot, hotspot, route and collection endpoints."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...errors import SignalNotFoundError, ZoneNotFoundError
from ...models.domain import WorkerPosition
from ...schemas.routing import RouteRequest, RouteResponse
from ...schemas.signals import HouseholdSignalModel
from ...schemas.worker import CollectRequest, CollectResponse, ProximityModel
from ...schemas.zones import HotspotsResponse, ZoneStateModel, ZonesResponse
from ...services.engine import WasteEngine
from ..dependencies import get_engine

router = APIRouter(prefix="/waste", tags=["waste"])


def _now() -> datetime:
    return datetime.now(timezone.utc)


@router.get("/zones", response_model=ZonesResponse, status_code=status.HTTP_200_OK)
def get_zones(engine: WasteEngine = Depends(get_engine)) -> ZonesResponse:
    zones = [ZoneStateModel.from_state(state) for state in engine.get_zones()]
    return ZonesResponse(zones=zones, count=len(zones), timestamp=_now())


@router.get("/zones/{zone_id}", response_model=ZoneStateModel, status_code=status.HTTP_200_OK)
def get_zone(zone_id: str, engine: WasteEngine = Depends(get_engine)) -> ZoneStateModel:
    try:
        return ZoneStateModel.from_state(engine.get_zone(zone_id))
    except ZoneNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get("/hotspots", response_model=HotspotsResponse, status_code=status.HTTP_200_OK)
def get_hotspots(
    limit: int = Query(default=5, ge=1, le=100, description="Number of hotspots to return"),
    engine: WasteEngine = Depends(get_engine),
) -> HotspotsResponse:
    hotspots = [ZoneStateModel.from_state(state) for state in engine.get_hotspots(limit)]
    return HotspotsResponse(hotspots=hotspots, timestamp=_now())


@router.post("/tick", response_model=ZonesResponse, status_code=status.HTTP_200_OK)
def tick(engine: WasteEngine = Depends(get_engine)) -> ZonesResponse:
    """Advance the simulation immediately, for hosts that run without the background ticker."""
    zones = [ZoneStateModel.from_state(state) for state in engine.tick()]
    return ZonesResponse(zones=zones, count=len(zones), timestamp=_now())


@router.post("/optimize-route", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def optimize_route(payload: RouteRequest, engine: WasteEngine = Depends(get_engine)) -> RouteResponse:
    try:
        summary = engine.optimize_route(
            payload.worker_lat,
            payload.worker_lng,
            zone_ids=payload.zone_ids,
            include_signals=payload.include_signals,
            include_geometry=payload.include_geometry,
        )
    except ZoneNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize route: {str(exc)}",
        ) from exc
    return RouteResponse.from_summary(summary, timestamp=_now())


@router.post("/collect/{target_id}", response_model=CollectResponse, status_code=status.HTTP_200_OK)
def collect(
    target_id: str,
    payload: CollectRequest | None = None,
    engine: WasteEngine = Depends(get_engine),
) -> CollectResponse:
    """Confirm a collection. With a worker position the geofence is enforced first."""
    payload = payload or CollectRequest()
    worker = None
    if payload.worker_lat is not None or payload.worker_lng is not None:
        if payload.worker_lat is None or payload.worker_lng is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="worker_lat and worker_lng must be provided together",
            )
        worker = WorkerPosition(lat=payload.worker_lat, lon=payload.worker_lng)

    try:
        outcome = engine.collect(target_id, payload.amount, worker=worker, radius_meters=payload.radius_meters)
    except (ZoneNotFoundError, SignalNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    proximity = ProximityModel.from_result(outcome.proximity) if outcome.proximity else None
    if not outcome.accepted:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": f"Worker must be within {proximity.radius_meters:.0f}m of {target_id}",
                "proximity": proximity.model_dump(),
            },
        )

    if outcome.is_household:
        message = f"Household pickup confirmed for {target_id}"
    else:
        message = f"Collected {outcome.amount if outcome.amount is not None else 'all'} from {target_id}"
    return CollectResponse(
        target_id=target_id,
        is_household=outcome.is_household,
        amount=outcome.amount,
        zone=ZoneStateModel.from_state(outcome.zone) if outcome.zone else None,
        signal=HouseholdSignalModel.from_signal(outcome.signal) if outcome.signal else None,
        proximity=proximity,
        message=message,
        timestamp=_now(),
    )
