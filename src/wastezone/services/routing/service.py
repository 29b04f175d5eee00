"""Route planning orchestration: optimizer plus the optional road-router collaborator."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

import httpx

from ...models.domain import RoutablePoint, WorkerPosition
from .models import RouteResult
from .optimizer import RouteOptimizer
from .osrm_client import OSRMClient

logger = logging.getLogger(__name__)

RoadRouterFactory = Callable[[], OSRMClient]


def attach_road_geometry(
    result: RouteResult,
    worker: WorkerPosition,
    road_router_factory: RoadRouterFactory = OSRMClient,
) -> RouteResult:
    """Fill ``result.geometry`` from the road router, degrading to straight lines on failure.

    The stop order and straight-line legs are kept either way; only the
    geometry and the degraded flag change.
    """
    if not result.stops:
        return result

    waypoints = [(worker.lat, worker.lon), *((stop.point.lat, stop.point.lon) for stop in result.stops)]
    try:
        router = road_router_factory()
    except ValueError as exc:
        logger.warning(f"Road router unavailable: {exc}. Returning straight-line route.")
        result.mark_degraded(f"Road routing unavailable: {exc}")
        result.geometry = waypoints
        return result

    try:
        result.geometry = router.route_geometry(waypoints)
    except (ConnectionError, ValueError, httpx.HTTPError, KeyError, IndexError) as exc:
        logger.warning(f"OSRM route request failed: {exc}. Using straight-line geometry.")
        result.mark_degraded(f"Road routing failed: {exc}")
        result.geometry = waypoints
    return result


def plan_route(
    optimizer: RouteOptimizer,
    worker: WorkerPosition,
    points: Sequence[RoutablePoint],
    *,
    include_geometry: bool = False,
    road_router_factory: RoadRouterFactory = OSRMClient,
) -> RouteResult:
    result = optimizer.optimize(worker, points)
    if include_geometry:
        attach_road_geometry(result, worker, road_router_factory)
    logger.info(
        "Planned route: %d stops (%d signals), %.2f km, %d min%s",
        len(result.stops),
        result.signal_count,
        result.total_distance_km,
        result.total_time_min,
        " [degraded]" if result.degraded else "",
    )
    return result
