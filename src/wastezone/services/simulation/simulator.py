"""Zone fill simulation: waste accrual, reclassification and collection resets."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Literal, Optional

from ...errors import OutOfRangeError, ValidationError, ZoneNotFoundError
from ...models.domain import Zone, ZoneState
from .scoring import RiskThresholds, ScoringStrategy, WeightedHotspotScoring, days_since, fill_percentage
from .store import ZoneStore

logger = logging.getLogger(__name__)

ResetPolicy = Literal["subtract", "zero"]
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ZoneSimulator:
    """Advances every zone in a :class:`ZoneStore` on each tick.

    ``generation_rate`` is expressed in capacity units per tick; the number of
    elapsed ticks is derived from the clock so a late tick still accrues the
    right amount. Fill is clamped at ``bin_capacity``: a full bin stays full
    until collected.
    """

    def __init__(
        self,
        store: ZoneStore,
        *,
        scoring: ScoringStrategy | None = None,
        thresholds: RiskThresholds | None = None,
        tick_interval_seconds: float = 3.0,
        reset_policy: ResetPolicy = "subtract",
        default_amount: float = 100.0,
        clock: Clock = utcnow,
    ) -> None:
        if tick_interval_seconds <= 0:
            raise OutOfRangeError(f"tick_interval_seconds must be positive, got {tick_interval_seconds}")
        if reset_policy not in ("subtract", "zero"):
            raise OutOfRangeError(f"Unknown collection reset policy: {reset_policy}")
        if default_amount < 0:
            raise OutOfRangeError(f"default_amount must be >= 0, got {default_amount}")
        self.store = store
        self.scoring = scoring or WeightedHotspotScoring()
        self.thresholds = thresholds or RiskThresholds()
        self.tick_interval_seconds = tick_interval_seconds
        self.reset_policy: ResetPolicy = reset_policy
        self.default_amount = default_amount
        self._clock = clock
        self._last_tick = clock()
        self.tick_count = 0
        self.last_tick_at: Optional[datetime] = None
        self.refresh()

    def now(self) -> datetime:
        return self._clock()

    def build_state(self, zone: Zone, now: datetime) -> ZoneState:
        percentage = fill_percentage(zone)
        return ZoneState(
            id=zone.id,
            name=zone.name,
            lat=zone.lat,
            lon=zone.lon,
            bin_capacity=zone.bin_capacity,
            generation_rate=zone.generation_rate,
            current_fill=zone.current_fill,
            last_collection_time=zone.last_collection_time,
            ward=zone.ward,
            fill_percentage=percentage,
            risk_level=self.thresholds.classify(percentage),
            hotspot_score=self.scoring.hotspot_score(
                fill_percentage=percentage,
                days_since_collection=days_since(zone.last_collection_time, now),
            ),
            predicted_overflow_minutes=self.scoring.predict_overflow_minutes(
                zone,
                fill_percentage=percentage,
                tick_interval_seconds=self.tick_interval_seconds,
            ),
        )

    def _publish(self, zones: dict[str, Zone], now: datetime) -> tuple[ZoneState, ...]:
        return self.store.publish(self.build_state(zone, now) for zone in zones.values())

    def refresh(self) -> tuple[ZoneState, ...]:
        """Recompute derived fields without accruing waste."""
        with self.store.transaction() as zones:
            return self._publish(zones, self._clock())

    def tick(self) -> tuple[ZoneState, ...]:
        with self.store.transaction() as zones:
            now = self._clock()
            elapsed_seconds = max(0.0, (now - self._last_tick).total_seconds())
            elapsed_ticks = elapsed_seconds / self.tick_interval_seconds
            for zone in zones.values():
                zone.current_fill = min(
                    zone.bin_capacity,
                    zone.current_fill + zone.generation_rate * elapsed_ticks,
                )
            self._last_tick = now
            self.tick_count += 1
            self.last_tick_at = now
            snapshot = self._publish(zones, now)
        logger.debug("Tick %d advanced %d zones by %.2f ticks", self.tick_count, len(snapshot), elapsed_ticks)
        return snapshot

    def collect(self, zone_id: str, amount: float | None = None) -> ZoneState:
        """Apply the configured reset policy to a zone and stamp the collection time.

        ``subtract`` removes ``amount`` (``default_amount`` when omitted) and
        clamps at zero. ``zero`` empties the bin whatever the amount; the amount is
        only logged.
        """
        if amount is not None and amount < 0:
            raise ValidationError(f"Collected amount must be >= 0, got {amount}")
        with self.store.transaction() as zones:
            zone = zones.get(zone_id)
            if zone is None:
                raise ZoneNotFoundError(zone_id)
            now = self._clock()
            before = zone.current_fill
            if self.reset_policy == "zero":
                zone.current_fill = 0.0
            else:
                removed = self.default_amount if amount is None else amount
                zone.current_fill = max(0.0, zone.current_fill - removed)
            after = zone.current_fill
            zone.last_collection_time = now
            snapshot = self._publish(zones, now)
        logger.info(
            "Collected zone %s: reported amount=%s, fill %.1f -> %.1f (%s policy)",
            zone_id,
            amount,
            before,
            after,
            self.reset_policy,
        )
        return next(state for state in snapshot if state.id == zone_id)
