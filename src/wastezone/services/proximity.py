"""Geofence check gating collection and verification actions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..errors import OutOfRangeError, ValidationError
from .geospatial import haversine_m, is_valid_coordinate

DEFAULT_VERIFICATION_RADIUS_METERS = 50.0


class Located(Protocol):
    @property
    def lat(self) -> float: ...

    @property
    def lon(self) -> float: ...


@dataclass(frozen=True, slots=True)
class ProximityResult:
    within_range: bool
    distance_meters: float
    radius_meters: float

    @property
    def meters_to_move(self) -> float:
        return max(0.0, self.distance_meters - self.radius_meters)


class ProximityVerifier:
    """Haversine geofence. The boundary is inclusive: ``distance == radius`` is in range.

    Being out of range is an ordinary outcome, reported through
    ``within_range``; only malformed input raises.
    """

    def __init__(self, default_radius_meters: float = DEFAULT_VERIFICATION_RADIUS_METERS) -> None:
        self.default_radius_meters = self._check_radius(default_radius_meters)

    @staticmethod
    def _check_radius(radius_meters: float) -> float:
        if not radius_meters > 0:
            raise OutOfRangeError(f"Verification radius must be positive, got {radius_meters}")
        return float(radius_meters)

    def verify(self, worker: Located, target: Located, radius_meters: float | None = None) -> ProximityResult:
        radius = self.default_radius_meters if radius_meters is None else self._check_radius(radius_meters)
        for label, point in (("worker", worker), ("target", target)):
            if not is_valid_coordinate(point.lat, point.lon):
                raise ValidationError(f"Invalid {label} position: ({point.lat}, {point.lon})")
        distance = haversine_m(worker.lat, worker.lon, target.lat, target.lon)
        return ProximityResult(within_range=distance <= radius, distance_meters=distance, radius_meters=radius)
