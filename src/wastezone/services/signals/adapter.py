"""Normalization and bookkeeping for household "waste ready" signals."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Sequence

from shapely import wkb, wkt
from shapely.errors import ShapelyError
from shapely.geometry import Point, shape

from ...errors import SignalNotFoundError, ValidationError
from ...models.domain import HouseholdSignal, WorkerPosition
from ..geospatial import haversine_m, is_valid_coordinate, point_in_polygon, validate_coordinate
from ..simulation.scoring import ScoringStrategy, SignalPrediction, WeightedHotspotScoring
from ..simulation.simulator import Clock, utcnow

logger = logging.getLogger(__name__)

SIGNAL_ID_PREFIX = "household_"


@dataclass(frozen=True, slots=True)
class NearbySignal:
    signal: HouseholdSignal
    distance_meters: float
    prediction: SignalPrediction


def _geometry_to_lat_lon(geometry: Any) -> Optional[tuple[float, float]]:
    if not isinstance(geometry, Point) or geometry.is_empty:
        return None
    return float(geometry.y), float(geometry.x)


def parse_location(location: Any) -> Optional[tuple[float, float]]:
    """Parse a PostGIS-style location into ``(lat, lon)``.

    Accepts WKT/EWKT (``POINT(lng lat)``), hex WKB/EWKB, GeoJSON points and
    ``{"x": lng, "y": lat}`` mappings. Returns None when nothing usable is found.
    """
    if location is None:
        return None
    try:
        if isinstance(location, str):
            text = location.strip()
            if not text:
                return None
            if text.upper().startswith("SRID="):
                text = text.split(";", 1)[-1]
            if text.upper().startswith("POINT"):
                return _geometry_to_lat_lon(wkt.loads(text))
            if all(char in "0123456789abcdefABCDEF" for char in text):
                return _geometry_to_lat_lon(wkb.loads(text, hex=True))
            return None
        if isinstance(location, Mapping):
            if "coordinates" in location:
                if "type" in location:
                    return _geometry_to_lat_lon(shape(location))
                lng, lat = location["coordinates"][:2]
                return float(lat), float(lng)
            if "x" in location and "y" in location:
                return float(location["y"]), float(location["x"])
    except (ShapelyError, ValueError, TypeError, KeyError) as exc:
        logger.debug("Unparseable location %r: %s", location, exc)
    return None


def _parse_timestamp(value: Any, default: datetime) -> datetime:
    if value is None or value == "":
        return default
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, (int, float)):
        # Epoch milliseconds, as emitted by browser clients.
        moment = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValidationError(f"Invalid created_at timestamp: {value!r}") from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _extract_coordinates(raw: Mapping[str, Any]) -> tuple[float, float]:
    lat = raw.get("lat", raw.get("latitude"))
    lon = raw.get("lng", raw.get("lon", raw.get("longitude")))
    if lat is None or lon is None:
        parsed = parse_location(raw.get("location"))
        if parsed is None:
            raise ValidationError("Household signal has no usable location.")
        lat, lon = parsed
    try:
        lat_f, lon_f = float(lat), float(lon)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Household signal coordinates are not numeric: ({lat}, {lon})") from exc
    return lat_f, lon_f


class SignalAdapter:
    """Turns raw household events into routable :class:`HouseholdSignal` entries.

    Holds the set of currently active signals. A signal leaves the set the
    moment its collection is confirmed; there is no decay.
    """

    def __init__(
        self,
        *,
        service_area: Sequence[tuple[float, float]] | None = None,
        scoring: ScoringStrategy | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.service_area = tuple(service_area or ())
        self.scoring = scoring or WeightedHotspotScoring()
        self._clock = clock
        self._lock = threading.Lock()
        self._signals: dict[str, HouseholdSignal] = {}

    def normalize(self, raw: Mapping[str, Any]) -> HouseholdSignal:
        """Validate a raw event and build a signal without registering it."""
        if not isinstance(raw, Mapping):
            raise ValidationError("Household signal payload must be a mapping.")
        identifier = raw.get("household_id") or raw.get("id")
        if identifier is None or str(identifier).strip() == "":
            raise ValidationError("Household signal requires an id.")
        household_id = str(identifier).strip()
        if household_id.startswith(SIGNAL_ID_PREFIX):
            household_id = household_id[len(SIGNAL_ID_PREFIX):]

        lat, lon = _extract_coordinates(raw)
        if lat == 0 and lon == 0:
            raise ValidationError(f"Household {household_id} has no location (0, 0).")
        validate_coordinate(lat, lon, label=f"location for household {household_id}")
        if self.service_area and not point_in_polygon(lat, lon, self.service_area):
            raise ValidationError(f"Household {household_id} is outside the service area.")

        ward = raw.get("ward", raw.get("ward_number"))
        waste_types = raw.get("waste_types") or ()
        if isinstance(waste_types, str):
            waste_types = (waste_types,)
        name = raw.get("name") or raw.get("nickname") or "Household Pickup"

        return HouseholdSignal(
            id=f"{SIGNAL_ID_PREFIX}{household_id}",
            household_id=household_id,
            name=str(name),
            lat=lat,
            lon=lon,
            ward=None if ward is None else str(ward),
            waste_types=tuple(str(item) for item in waste_types),
            created_at=_parse_timestamp(raw.get("created_at"), self._clock()),
            status=str(raw.get("status") or "pending"),
        )

    def ingest(self, raw: Mapping[str, Any]) -> HouseholdSignal:
        signal = self.normalize(raw)
        with self._lock:
            replaced = signal.id in self._signals
            self._signals[signal.id] = signal
        logger.info("%s household signal %s", "Updated" if replaced else "Ingested", signal.id)
        return signal

    def replace_all(self, rows: Iterable[Mapping[str, Any]]) -> tuple[list[HouseholdSignal], list[str]]:
        """Swap the active set for ``rows``; invalid rows are skipped and reported."""
        accepted: dict[str, HouseholdSignal] = {}
        rejected: list[str] = []
        for row in rows:
            try:
                signal = self.normalize(row)
            except ValidationError as exc:
                rejected.append(str(exc))
                continue
            accepted[signal.id] = signal
        with self._lock:
            self._signals = accepted
        if rejected:
            logger.warning("Skipped %d invalid household signals", len(rejected))
        return list(accepted.values()), rejected

    def active(self) -> tuple[HouseholdSignal, ...]:
        with self._lock:
            return tuple(sorted(self._signals.values(), key=lambda signal: signal.id))

    def get(self, signal_id: str) -> HouseholdSignal:
        with self._lock:
            signal = self._signals.get(signal_id)
        if signal is None:
            raise SignalNotFoundError(signal_id)
        return signal

    def remove(self, signal_id: str) -> HouseholdSignal:
        with self._lock:
            signal = self._signals.pop(signal_id, None)
        if signal is None:
            raise SignalNotFoundError(signal_id)
        logger.info("Removed household signal %s", signal_id)
        return signal

    def nearby(self, position: WorkerPosition, radius_meters: float, limit: int) -> list[NearbySignal]:
        """Active signals within ``radius_meters``, highest priority first, then closest."""
        if not is_valid_coordinate(position.lat, position.lon):
            raise ValidationError(f"Invalid worker position: ({position.lat}, {position.lon})")
        now = self._clock()
        results: list[NearbySignal] = []
        for signal in self.active():
            distance = haversine_m(position.lat, position.lon, signal.lat, signal.lon)
            if distance > radius_meters:
                continue
            prediction = self.scoring.score_signal(signal, distance_meters=distance, now=now)
            results.append(NearbySignal(signal=signal, distance_meters=distance, prediction=prediction))
        results.sort(key=lambda item: (-item.prediction.priority_score, item.distance_meters, item.signal.id))
        return results[:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._signals)
