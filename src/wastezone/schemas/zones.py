"""Zone snapshot response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from ..models.domain import RiskLevel, ZoneState


class ZoneStateModel(BaseModel):
    id: str
    name: str
    lat: float
    lon: float
    ward: Optional[str] = None
    bin_capacity: float
    generation_rate: float
    current_fill: float
    last_collection_time: datetime
    fill_percentage: float
    risk_level: RiskLevel
    hotspot_score: float
    predicted_overflow_minutes: Optional[int] = None

    @classmethod
    def from_state(cls, state: ZoneState) -> "ZoneStateModel":
        overflow = state.predicted_overflow_minutes
        return cls(
            id=state.id,
            name=state.name,
            lat=state.lat,
            lon=state.lon,
            ward=state.ward,
            bin_capacity=state.bin_capacity,
            generation_rate=state.generation_rate,
            current_fill=round(state.current_fill, 3),
            last_collection_time=state.last_collection_time,
            fill_percentage=round(state.fill_percentage, 1),
            risk_level=state.risk_level,
            hotspot_score=round(state.hotspot_score, 3),
            predicted_overflow_minutes=round(overflow) if overflow is not None else None,
        )


class ZonesResponse(BaseModel):
    zones: List[ZoneStateModel]
    count: int
    timestamp: datetime


class HotspotsResponse(BaseModel):
    hotspots: List[ZoneStateModel]
    timestamp: datetime
