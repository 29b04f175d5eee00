"""Routing request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ..services.engine import RouteSummary
from ..services.routing.models import RouteStop


class RouteRequest(BaseModel):
    worker_lat: float = Field(..., description="Worker latitude in degrees.")
    worker_lng: float = Field(..., description="Worker longitude in degrees.")
    zone_ids: Optional[List[str]] = Field(
        default=None,
        description="Restrict the route to these zones. All zones are used when omitted.",
    )
    include_signals: bool = Field(default=True, description="Include active household signals.")
    include_geometry: bool = Field(default=False, description="Ask the road router for path geometry.")


class RouteStopModel(BaseModel):
    sequence: int
    id: str
    kind: Literal["zone", "signal"]
    name: str
    lat: float
    lon: float
    risk_level: str
    hotspot_score: Optional[float] = None
    distance_from_previous_km: float
    estimated_minutes: int

    @classmethod
    def from_stop(cls, stop: RouteStop) -> "RouteStopModel":
        point = stop.point
        score = point.priority_score
        return cls(
            sequence=stop.sequence,
            id=stop.id,
            kind=stop.kind,
            name=getattr(point, "name", stop.id),
            lat=point.lat,
            lon=point.lon,
            risk_level=point.risk_level.value,
            # Signals carry an infinite score, which JSON cannot represent.
            hotspot_score=round(score, 3) if stop.kind == "zone" else None,
            distance_from_previous_km=round(stop.distance_from_previous_km, 6),
            estimated_minutes=stop.estimated_minutes,
        )


class RouteResponse(BaseModel):
    route: List[RouteStopModel]
    total_distance_km: float
    total_time_min: int
    hotspot_count: int
    signal_count: int
    degraded: bool
    warnings: List[str]
    geometry: Optional[List[tuple[float, float]]] = None
    timestamp: datetime

    @classmethod
    def from_summary(cls, summary: RouteSummary, timestamp: datetime) -> "RouteResponse":
        result = summary.route
        return cls(
            route=[RouteStopModel.from_stop(stop) for stop in result.stops],
            total_distance_km=round(result.total_distance_km, 6),
            total_time_min=result.total_time_min,
            hotspot_count=summary.hotspot_count,
            signal_count=summary.signal_count,
            degraded=result.degraded,
            warnings=[str(warning) for warning in result.warnings],
            geometry=result.geometry,
            timestamp=timestamp,
        )
