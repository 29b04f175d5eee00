"""Priority-stratified nearest-neighbour route construction."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Sequence

from ...errors import OutOfRangeError, ValidationError
from ...models.domain import PriorityTier, RoutablePoint, WorkerPosition
from ..geospatial import haversine_km, is_valid_coordinate, travel_minutes
from .models import RouteResult, RouteStop

logger = logging.getLogger(__name__)

DEFAULT_AVERAGE_SPEED_KMPH = 24.0


class RouteOptimizer:
    """Orders stops tier by tier: household signals, then CRITICAL, HIGH, MEDIUM, LOW zones.

    Inside a tier the next stop is the closest unvisited point to the current
    position (ties broken by id), so every signal is visited before any zone
    and geography only decides order among equals. Pure and deterministic.
    """

    def __init__(self, average_speed_kmph: float = DEFAULT_AVERAGE_SPEED_KMPH) -> None:
        if average_speed_kmph <= 0:
            raise OutOfRangeError(f"average_speed_kmph must be positive, got {average_speed_kmph}")
        self.average_speed_kmph = average_speed_kmph

    def _validate(self, worker: WorkerPosition, points: Sequence[RoutablePoint]) -> None:
        if not is_valid_coordinate(worker.lat, worker.lon):
            raise ValidationError(f"Invalid worker position: ({worker.lat}, {worker.lon})")
        seen: set[str] = set()
        for point in points:
            if not is_valid_coordinate(point.lat, point.lon):
                raise ValidationError(f"Invalid coordinates for stop {point.id}: ({point.lat}, {point.lon})")
            if point.id in seen:
                raise ValidationError(f"Duplicate stop id: {point.id}")
            seen.add(point.id)

    def optimize(self, worker: WorkerPosition, points: Sequence[RoutablePoint]) -> RouteResult:
        self._validate(worker, points)

        tiers: dict[PriorityTier, list[RoutablePoint]] = defaultdict(list)
        for point in points:
            tiers[point.priority_tier].append(point)

        stops: list[RouteStop] = []
        total_distance = 0.0
        total_minutes = 0
        current_lat, current_lon = worker.lat, worker.lon

        for tier in sorted(tiers):
            remaining = list(tiers[tier])
            while remaining:
                distance, nearest = min(
                    ((haversine_km(current_lat, current_lon, point.lat, point.lon), point) for point in remaining),
                    key=lambda item: (item[0], item[1].id),
                )
                remaining.remove(nearest)
                minutes = travel_minutes(distance, self.average_speed_kmph)
                total_distance += distance
                total_minutes += minutes
                stops.append(
                    RouteStop(
                        sequence=len(stops) + 1,
                        point=nearest,
                        distance_from_previous_km=distance,
                        estimated_minutes=minutes,
                    )
                )
                current_lat, current_lon = nearest.lat, nearest.lon

        logger.debug("Built route with %d stops, %.3f km", len(stops), total_distance)
        return RouteResult(stops=stops, total_distance_km=total_distance, total_time_min=total_minutes)
