"""Route optimization services."""

from .models import RouteResult, RouteStop
from .optimizer import RouteOptimizer
from .service import attach_road_geometry, plan_route

__all__ = ["RouteOptimizer", "RouteResult", "RouteStop", "attach_road_geometry", "plan_route"]
