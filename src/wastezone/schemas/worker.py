"""Proximity verification and collection schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..services.proximity import ProximityResult
from .signals import HouseholdSignalModel
from .zones import ZoneStateModel


class VerifyRequest(BaseModel):
    worker_lat: float
    worker_lng: float
    target_lat: float
    target_lng: float
    radius_meters: Optional[float] = Field(default=None, gt=0, description="Defaults to the configured radius.")


class ProximityModel(BaseModel):
    within_range: bool
    distance_meters: float
    radius_meters: float
    meters_to_move: float

    @classmethod
    def from_result(cls, result: ProximityResult) -> "ProximityModel":
        return cls(
            within_range=result.within_range,
            distance_meters=round(result.distance_meters, 2),
            radius_meters=result.radius_meters,
            meters_to_move=round(result.meters_to_move, 2),
        )


class CollectRequest(BaseModel):
    amount: Optional[float] = Field(default=None, ge=0, description="Weight/volume collected; logged.")
    worker_lat: Optional[float] = None
    worker_lng: Optional[float] = None
    radius_meters: Optional[float] = Field(default=None, gt=0)


class CollectResponse(BaseModel):
    target_id: str
    is_household: bool
    amount: Optional[float] = None
    zone: Optional[ZoneStateModel] = None
    signal: Optional[HouseholdSignalModel] = None
    proximity: Optional[ProximityModel] = None
    message: str
    timestamp: datetime
