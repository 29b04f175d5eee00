"""Household signal request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field

from ..models.domain import HouseholdSignal
from ..services.signals.adapter import NearbySignal


class SignalIngestRequest(BaseModel):
    id: str = Field(..., description="Household identifier; a 'household_' prefix is added if missing.")
    lat: Optional[float] = None
    lng: Optional[float] = None
    location: Optional[Any] = Field(
        default=None,
        description="Alternative to lat/lng: WKT, hex WKB, GeoJSON point or {x, y}.",
    )
    nickname: Optional[str] = None
    ward_number: Optional[Union[int, str]] = None
    waste_types: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    status: str = "pending"


class HouseholdSignalModel(BaseModel):
    id: str
    household_id: str
    name: str
    lat: float
    lon: float
    ward: Optional[str] = None
    waste_types: List[str]
    created_at: datetime
    status: str
    risk_level: str = "CRITICAL"
    is_household_signal: bool = True

    @classmethod
    def from_signal(cls, signal: HouseholdSignal) -> "HouseholdSignalModel":
        return cls(
            id=signal.id,
            household_id=signal.household_id,
            name=signal.name,
            lat=signal.lat,
            lon=signal.lon,
            ward=signal.ward,
            waste_types=list(signal.waste_types),
            created_at=signal.created_at,
            status=signal.status,
            risk_level=signal.risk_level.value,
        )


class SignalsResponse(BaseModel):
    signals: List[HouseholdSignalModel]
    count: int
    timestamp: datetime


class NearbySignalsRequest(BaseModel):
    lat: float
    lng: float
    radius_meters: Optional[float] = Field(default=None, gt=0)
    limit: Optional[int] = Field(default=None, ge=1, le=500)


class SignalPredictionModel(BaseModel):
    predicted_volume_kg: float
    urgency: str
    priority_score: int


class NearbySignalModel(BaseModel):
    signal: HouseholdSignalModel
    distance_meters: float
    prediction: SignalPredictionModel

    @classmethod
    def from_nearby(cls, item: NearbySignal) -> "NearbySignalModel":
        return cls(
            signal=HouseholdSignalModel.from_signal(item.signal),
            distance_meters=round(item.distance_meters, 1),
            prediction=SignalPredictionModel(
                predicted_volume_kg=item.prediction.predicted_volume_kg,
                urgency=item.prediction.urgency,
                priority_score=item.prediction.priority_score,
            ),
        )


class NearbySignalsResponse(BaseModel):
    households: List[NearbySignalModel]
    count: int


class SignalRefreshResponse(BaseModel):
    refreshed: bool
    degraded: bool
    active: int
    rejected: List[str]
    warning: Optional[str] = None
