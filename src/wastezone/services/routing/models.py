"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ...errors import DegradedResultWarning
from ...models.domain import RoutablePoint


@dataclass(frozen=True, slots=True)
class RouteStop:
    sequence: int
    point: RoutablePoint
    distance_from_previous_km: float
    estimated_minutes: int

    @property
    def id(self) -> str:
        return self.point.id

    @property
    def kind(self) -> str:
        return self.point.kind


@dataclass(slots=True)
class RouteResult:
    stops: List[RouteStop]
    total_distance_km: float
    total_time_min: int
    degraded: bool = False
    warnings: List[DegradedResultWarning] = field(default_factory=list)
    geometry: Optional[List[tuple[float, float]]] = None

    @property
    def signal_count(self) -> int:
        return sum(1 for stop in self.stops if stop.kind == "signal")

    def mark_degraded(self, message: str) -> None:
        self.degraded = True
        self.warnings.append(DegradedResultWarning(message))
