"""The simulation and routing engine that request handlers share."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..config import Settings, settings
from ..errors import ValidationError, ZoneNotFoundError
from ..models.domain import HouseholdSignal, RoutablePoint, WorkerPosition, Zone, ZoneState
from ..data.zones_repository import build_zones, load_zone_definitions
from .hotspots import HotspotRanker, rank_hotspots
from .proximity import ProximityResult, ProximityVerifier
from .routing.models import RouteResult
from .routing.optimizer import RouteOptimizer
from .routing.osrm_client import OSRMClient
from .routing.service import RoadRouterFactory, plan_route
from .signals.adapter import SIGNAL_ID_PREFIX, NearbySignal, SignalAdapter
from .signals.source import SignalSource
from .simulation.scoring import RiskThresholds, WeightedHotspotScoring
from .simulation.simulator import Clock, ZoneSimulator, utcnow
from .simulation.store import ZoneStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RouteSummary:
    route: RouteResult
    hotspot_count: int
    signal_count: int


@dataclass(frozen=True, slots=True)
class CollectionOutcome:
    target_id: str
    accepted: bool
    is_household: bool
    amount: Optional[float]
    zone: Optional[ZoneState] = None
    signal: Optional[HouseholdSignal] = None
    proximity: Optional[ProximityResult] = None


class WasteEngine:
    """Owns zone state and active signals; built once by the host process.

    ``tick`` is the only periodic writer. Everything else is request driven
    and reads the latest published snapshot.
    """

    def __init__(
        self,
        store: ZoneStore,
        simulator: ZoneSimulator,
        signals: SignalAdapter,
        optimizer: RouteOptimizer,
        verifier: ProximityVerifier,
        *,
        signal_source: SignalSource | None = None,
        road_router_factory: RoadRouterFactory = OSRMClient,
        hotspot_limit: int = 5,
        nearby_radius_meters: float = 2000.0,
        nearby_limit: int = 50,
    ) -> None:
        self.store = store
        self.simulator = simulator
        self.signals = signals
        self.optimizer = optimizer
        self.verifier = verifier
        self.ranker = HotspotRanker(store)
        self.signal_source = signal_source
        self.road_router_factory = road_router_factory
        self.hotspot_limit = hotspot_limit
        self.nearby_radius_meters = nearby_radius_meters
        self.nearby_limit = nearby_limit

    @classmethod
    def from_settings(
        cls,
        config: Settings = settings,
        *,
        zones: Iterable[Zone] | None = None,
        clock: Clock = utcnow,
        signal_source: SignalSource | None = None,
        road_router_factory: RoadRouterFactory = OSRMClient,
    ) -> "WasteEngine":
        scoring = WeightedHotspotScoring(
            fill_weight=config.hotspot_fill_weight,
            staleness_weight=config.hotspot_staleness_weight,
            overflow_threshold=config.overflow_prediction_threshold,
        )
        if zones is None:
            zones = build_zones(
                load_zone_definitions(config.zones_file),
                now=clock(),
                initial_fill_fraction=config.initial_fill_fraction,
                staleness_minutes=config.initial_staleness_minutes,
                seed=config.simulation_seed,
            )
        store = ZoneStore(zones)
        simulator = ZoneSimulator(
            store,
            scoring=scoring,
            thresholds=RiskThresholds(*config.risk_thresholds),
            tick_interval_seconds=config.tick_interval_seconds,
            reset_policy=config.collection_reset_policy,
            default_amount=config.default_collect_amount,
            clock=clock,
        )
        engine = cls(
            store,
            simulator,
            SignalAdapter(service_area=config.service_area, scoring=scoring, clock=clock),
            RouteOptimizer(average_speed_kmph=config.average_speed_kmph),
            ProximityVerifier(default_radius_meters=config.verification_radius_meters),
            signal_source=signal_source,
            road_router_factory=road_router_factory,
            hotspot_limit=config.route_hotspot_limit,
            nearby_radius_meters=config.nearby_signal_radius_meters,
            nearby_limit=config.nearby_signal_limit,
        )
        logger.info("Engine ready with %d zones", len(store))
        return engine

    # Simulation ---------------------------------------------------------

    def tick(self) -> tuple[ZoneState, ...]:
        return self.simulator.tick()

    def get_zones(self) -> tuple[ZoneState, ...]:
        return self.store.snapshot()

    def get_zone(self, zone_id: str) -> ZoneState:
        return self.store.get(zone_id)

    def get_hotspots(self, n: int = 5) -> list[ZoneState]:
        return self.ranker.top(n)

    # Routing ------------------------------------------------------------

    def optimize_route(
        self,
        worker_lat: float,
        worker_lng: float,
        *,
        zone_ids: Sequence[str] | None = None,
        include_signals: bool = True,
        include_geometry: bool = False,
    ) -> RouteSummary:
        worker = WorkerPosition(lat=worker_lat, lon=worker_lng)
        snapshot = self.store.snapshot()
        zones: list[ZoneState] = list(snapshot)
        if zone_ids is not None:
            wanted = set(zone_ids)
            unknown = wanted - {zone.id for zone in snapshot}
            if unknown:
                raise ZoneNotFoundError(", ".join(sorted(unknown)))
            zones = [zone for zone in snapshot if zone.id in wanted]

        points: list[RoutablePoint] = [*zones]
        if include_signals:
            points.extend(self.signals.active())

        route = plan_route(
            self.optimizer,
            worker,
            points,
            include_geometry=include_geometry,
            road_router_factory=self.road_router_factory,
        )
        hotspot_ids = {zone.id for zone in rank_hotspots(snapshot, self.hotspot_limit)} if snapshot else set()
        return RouteSummary(
            route=route,
            hotspot_count=sum(1 for stop in route.stops if stop.id in hotspot_ids),
            signal_count=route.signal_count,
        )

    # Proximity and collection -------------------------------------------

    def verify_proximity(
        self,
        worker_lat: float,
        worker_lng: float,
        target_lat: float,
        target_lng: float,
        radius_meters: float | None = None,
    ) -> ProximityResult:
        return self.verifier.verify(
            WorkerPosition(lat=worker_lat, lon=worker_lng),
            WorkerPosition(lat=target_lat, lon=target_lng),
            radius_meters,
        )

    def collect(
        self,
        target_id: str,
        amount: float | None = None,
        *,
        worker: WorkerPosition | None = None,
        radius_meters: float | None = None,
    ) -> CollectionOutcome:
        """Confirm a collection against a zone or a household signal.

        With a worker position the geofence is checked first; an out-of-range
        worker gets ``accepted=False`` and nothing is mutated.
        """
        is_household = target_id.startswith(SIGNAL_ID_PREFIX)
        target: RoutablePoint = self.signals.get(target_id) if is_household else self.store.get(target_id)

        proximity = None
        if worker is not None:
            proximity = self.verifier.verify(worker, target, radius_meters)
            if not proximity.within_range:
                logger.info(
                    "Rejected collection of %s: worker %.1fm away (radius %.0fm)",
                    target_id,
                    proximity.distance_meters,
                    proximity.radius_meters,
                )
                return CollectionOutcome(
                    target_id=target_id,
                    accepted=False,
                    is_household=is_household,
                    amount=amount,
                    proximity=proximity,
                )

        if is_household:
            signal = self.signals.remove(target_id)
            logger.info("Household pickup confirmed for %s (amount=%s)", target_id, amount)
            return CollectionOutcome(
                target_id=target_id,
                accepted=True,
                is_household=True,
                amount=amount,
                signal=signal,
                proximity=proximity,
            )

        zone = self.simulator.collect(target_id, amount)
        return CollectionOutcome(
            target_id=target_id,
            accepted=True,
            is_household=False,
            amount=amount,
            zone=zone,
            proximity=proximity,
        )

    # Household signals --------------------------------------------------

    def ingest_signal(self, raw: Mapping[str, Any]) -> HouseholdSignal:
        return self.signals.ingest(raw)

    def active_signals(self) -> tuple[HouseholdSignal, ...]:
        return self.signals.active()

    def remove_signal(self, signal_id: str) -> HouseholdSignal:
        return self.signals.remove(signal_id)

    def nearby_signals(
        self,
        lat: float,
        lng: float,
        radius_meters: float | None = None,
        limit: int | None = None,
    ) -> list[NearbySignal]:
        radius = self.nearby_radius_meters if radius_meters is None else radius_meters
        if not radius > 0:
            raise ValidationError(f"Search radius must be positive, got {radius}")
        count = self.nearby_limit if limit is None else limit
        if count < 1:
            raise ValidationError(f"Result limit must be >= 1, got {count}")
        return self.signals.nearby(WorkerPosition(lat=lat, lon=lng), radius, count)

    def refresh_signals(self) -> dict[str, Any]:
        """Replace active signals with the source's current view.

        When the source is unreachable the last known signals stay active and
        the result is flagged as degraded.
        """
        if self.signal_source is None:
            return {"refreshed": False, "degraded": False, "active": len(self.signals), "rejected": []}
        try:
            rows = self.signal_source.fetch_ready()
        except ConnectionError as exc:
            logger.warning(f"Household signal source unavailable: {exc}. Keeping {len(self.signals)} cached signals.")
            return {
                "refreshed": False,
                "degraded": True,
                "active": len(self.signals),
                "rejected": [],
                "warning": str(exc),
            }
        accepted, rejected = self.signals.replace_all(rows)
        return {"refreshed": True, "degraded": False, "active": len(accepted), "rejected": rejected}

    def status(self) -> dict[str, Any]:
        last_tick = self.simulator.last_tick_at
        return {
            "zones": len(self.store),
            "active_signals": len(self.signals),
            "tick_count": self.simulator.tick_count,
            "last_tick_at": last_tick.isoformat() if last_tick else None,
            "tick_interval_seconds": self.simulator.tick_interval_seconds,
            "reset_policy": self.simulator.reset_policy,
        }
