"""In-memory zone registry with a single-writer lock and atomically swapped snapshots."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterable, Iterator

from ...errors import OutOfRangeError, ValidationError, ZoneNotFoundError
from ...models.domain import Zone, ZoneState
from ..geospatial import validate_coordinate

logger = logging.getLogger(__name__)


def validate_zone(zone: Zone) -> None:
    """Reject malformed zone definitions at load time."""
    if not zone.id:
        raise ValidationError("Zone id must be a non-empty string.")
    validate_coordinate(zone.lat, zone.lon, label=f"location for zone {zone.id}")
    if zone.bin_capacity <= 0:
        raise OutOfRangeError(f"Zone {zone.id}: bin_capacity must be positive, got {zone.bin_capacity}")
    if zone.generation_rate < 0:
        raise OutOfRangeError(f"Zone {zone.id}: generation_rate must be >= 0, got {zone.generation_rate}")
    if zone.current_fill < 0:
        raise OutOfRangeError(f"Zone {zone.id}: current_fill must be >= 0, got {zone.current_fill}")


class ZoneStore:
    """Owns the mutable zone records.

    Writers go through :meth:`transaction`, which holds the lock for the whole
    mutation and must end with :meth:`publish`. Readers only ever see the last
    published snapshot, a tuple of frozen ``ZoneState`` objects, so they never
    block on a tick and never observe a half-updated zone.
    """

    def __init__(self, zones: Iterable[Zone] = ()) -> None:
        self._lock = threading.Lock()
        self._zones: dict[str, Zone] = {}
        self._snapshot: tuple[ZoneState, ...] = ()
        for zone in zones:
            self._add(zone)

    def _add(self, zone: Zone) -> None:
        validate_zone(zone)
        if zone.id in self._zones:
            raise OutOfRangeError(f"Duplicate zone id: {zone.id}")
        zone.current_fill = min(zone.current_fill, zone.bin_capacity)
        self._zones[zone.id] = zone

    def add(self, zone: Zone) -> None:
        """Register a zone. It appears in snapshots after the next publish."""
        with self._lock:
            self._add(zone)
        logger.info("Registered zone %s (%s)", zone.id, zone.name)

    @contextmanager
    def transaction(self) -> Iterator[dict[str, Zone]]:
        with self._lock:
            yield self._zones

    def publish(self, states: Iterable[ZoneState]) -> tuple[ZoneState, ...]:
        if not self._lock.locked():
            raise RuntimeError("ZoneStore.publish must be called inside transaction()")
        snapshot = tuple(sorted(states, key=lambda state: state.id))
        self._snapshot = snapshot
        return snapshot

    def snapshot(self) -> tuple[ZoneState, ...]:
        return self._snapshot

    def get(self, zone_id: str) -> ZoneState:
        for state in self._snapshot:
            if state.id == zone_id:
                return state
        raise ZoneNotFoundError(zone_id)

    def __contains__(self, zone_id: object) -> bool:
        return any(state.id == zone_id for state in self._snapshot)

    def __len__(self) -> int:
        return len(self._snapshot)
