"""Field-worker endpoints: geofence verification and nearby pickups."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...schemas.signals import NearbySignalModel, NearbySignalsRequest, NearbySignalsResponse
from ...schemas.worker import ProximityModel, VerifyRequest
from ...services.engine import WasteEngine
from ..dependencies import get_engine

router = APIRouter(prefix="/worker", tags=["worker"])


@router.post("/verify", response_model=ProximityModel, status_code=status.HTTP_200_OK)
def verify(payload: VerifyRequest, engine: WasteEngine = Depends(get_engine)) -> ProximityModel:
    """Check the worker is within the radius of the target.

    An out-of-range worker is a normal answer (``within_range: false``), not an error.
    """
    try:
        result = engine.verify_proximity(
            payload.worker_lat,
            payload.worker_lng,
            payload.target_lat,
            payload.target_lng,
            payload.radius_meters,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ProximityModel.from_result(result)


@router.post("/nearby-signals", response_model=NearbySignalsResponse, status_code=status.HTTP_200_OK)
def nearby_signals(payload: NearbySignalsRequest, engine: WasteEngine = Depends(get_engine)) -> NearbySignalsResponse:
    try:
        results = engine.nearby_signals(payload.lat, payload.lng, payload.radius_meters, payload.limit)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    households = [NearbySignalModel.from_nearby(item) for item in results]
    return NearbySignalsResponse(households=households, count=len(households))
