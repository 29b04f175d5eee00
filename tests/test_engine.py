import pytest

from conftest import make_zone
from wastezone.config import Settings
from wastezone.errors import SignalNotFoundError, ValidationError, ZoneNotFoundError
from wastezone.models.domain import WorkerPosition
from wastezone.services.engine import WasteEngine

WORKER_LAT, WORKER_LNG = 9.9940, 76.5370


def _unconfigured_router():
    raise ValueError("OSRM base URL is not configured.")


class DummySource:
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error

    def fetch_ready(self):
        if self.error:
            raise self.error
        return list(self.rows)


def _engine(clock, *, source=None, **overrides) -> WasteEngine:
    zones = [
        make_zone("zone_a", 9.9943, 76.5373, fill=95.0),
        make_zone("zone_b", 9.9950, 76.5400, fill=30.0),
        make_zone("zone_c", 9.9960, 76.5390, fill=60.0),
    ]
    return WasteEngine.from_settings(
        Settings(**overrides),
        zones=zones,
        clock=clock,
        signal_source=source,
        road_router_factory=_unconfigured_router,
    )


def test_signal_leads_route_before_critical_zone(clock):
    engine = _engine(clock)
    engine.ingest_signal({"id": "h1", "lat": 9.9945, "lng": 76.5375})

    summary = engine.optimize_route(WORKER_LAT, WORKER_LNG, zone_ids=["zone_a", "zone_b"])

    assert [stop.id for stop in summary.route.stops] == ["household_h1", "zone_a", "zone_b"]
    assert summary.signal_count == 1
    assert summary.hotspot_count == 2
    assert summary.route.degraded is False


def test_hotspot_count_uses_configured_limit(clock):
    engine = _engine(clock, route_hotspot_limit=1)

    summary = engine.optimize_route(WORKER_LAT, WORKER_LNG)

    assert len(summary.route.stops) == 3
    assert summary.hotspot_count == 1


def test_hotspot_count_ranks_the_routed_snapshot(clock, monkeypatch):
    engine = _engine(clock, route_hotspot_limit=1)
    monkeypatch.setattr(engine.ranker, "top", lambda n: pytest.fail("hotspots ranked from a second snapshot"))

    summary = engine.optimize_route(WORKER_LAT, WORKER_LNG)

    assert summary.hotspot_count == 1


def test_route_without_signals(clock):
    engine = _engine(clock)
    engine.ingest_signal({"id": "h1", "lat": 9.9945, "lng": 76.5375})

    summary = engine.optimize_route(WORKER_LAT, WORKER_LNG, include_signals=False)

    assert summary.signal_count == 0
    assert [stop.id for stop in summary.route.stops] == ["zone_a", "zone_c", "zone_b"]


def test_unknown_zone_filter(clock):
    with pytest.raises(ZoneNotFoundError):
        _engine(clock).optimize_route(WORKER_LAT, WORKER_LNG, zone_ids=["zone_a", "zone_x"])


def test_route_geometry_degrades_without_router(clock):
    summary = _engine(clock).optimize_route(WORKER_LAT, WORKER_LNG, include_geometry=True)

    assert summary.route.degraded is True
    assert summary.route.geometry[0] == (WORKER_LAT, WORKER_LNG)
    assert len(summary.route.geometry) == 4


def test_hotspots_and_zone_lookup(clock):
    engine = _engine(clock)

    assert [zone.id for zone in engine.get_hotspots(2)] == ["zone_a", "zone_c"]
    assert engine.get_zone("zone_b").fill_percentage == 30.0
    assert [zone.id for zone in engine.get_zones()] == ["zone_a", "zone_b", "zone_c"]
    with pytest.raises(ZoneNotFoundError):
        engine.get_zone("zone_x")


def test_tick_advances_zones(clock):
    engine = _engine(clock)
    clock.advance(30)

    engine.tick()

    assert engine.get_zone("zone_b").current_fill == pytest.approx(40.0)
    assert engine.status()["tick_count"] == 1


def test_collect_zone_without_position(clock):
    outcome = _engine(clock).collect("zone_a", 20.0)

    assert outcome.accepted is True
    assert outcome.is_household is False
    assert outcome.zone.current_fill == pytest.approx(75.0)
    assert outcome.proximity is None


def test_collect_rejected_when_worker_too_far(clock):
    engine = _engine(clock)

    outcome = engine.collect("zone_a", 20.0, worker=WorkerPosition(9.9990, 76.5373))

    assert outcome.accepted is False
    assert outcome.proximity.within_range is False
    assert outcome.proximity.distance_meters > 500
    assert engine.get_zone("zone_a").current_fill == 95.0


def test_collect_accepted_when_worker_on_site(clock):
    engine = _engine(clock)

    outcome = engine.collect("zone_a", worker=WorkerPosition(9.99432, 76.53732))

    assert outcome.accepted is True
    assert outcome.proximity.within_range is True
    assert engine.get_zone("zone_a").current_fill == 0.0
    assert engine.get_zone("zone_a").last_collection_time == clock.now


def test_collect_household_removes_signal(clock):
    engine = _engine(clock)
    engine.ingest_signal({"id": "h1", "lat": 9.9945, "lng": 76.5375})

    outcome = engine.collect("household_h1", 5.0, worker=WorkerPosition(9.9945, 76.5375))

    assert outcome.accepted is True
    assert outcome.is_household is True
    assert outcome.signal.household_id == "h1"
    assert engine.active_signals() == ()
    with pytest.raises(SignalNotFoundError):
        engine.collect("household_h1")


def test_collect_unknown_zone(clock):
    with pytest.raises(ZoneNotFoundError):
        _engine(clock).collect("zone_x")


def test_collect_without_amount_uses_configured_default(clock):
    engine = _engine(clock, default_collect_amount=20.0)

    state = engine.collect("zone_a").zone

    assert state.current_fill == pytest.approx(75.0)


def test_zero_reset_policy_from_settings(clock):
    engine = _engine(clock, collection_reset_policy="zero")
    assert engine.collect("zone_a", 1.0).zone.current_fill == 0.0


def test_verify_proximity_defaults_to_configured_radius(clock):
    engine = _engine(clock, verification_radius_meters=100)

    result = engine.verify_proximity(0.0, 0.0, 0.0, 0.00045)

    assert result.radius_meters == 100
    assert result.within_range is True


def test_nearby_signals_uses_defaults_and_rejects_bad_radius(clock):
    engine = _engine(clock)
    engine.ingest_signal({"id": "h1", "lat": 9.9945, "lng": 76.5375})
    engine.ingest_signal({"id": "h2", "lat": 10.20, "lng": 76.5375})

    nearby = engine.nearby_signals(WORKER_LAT, WORKER_LNG)

    assert [item.signal.id for item in nearby] == ["household_h1"]
    with pytest.raises(ValidationError):
        engine.nearby_signals(WORKER_LAT, WORKER_LNG, radius_meters=0)


@pytest.mark.parametrize("limit", [0, -3])
def test_nearby_signals_rejects_bad_limit(clock, limit):
    engine = _engine(clock)
    engine.ingest_signal({"id": "h1", "lat": 9.9945, "lng": 76.5375})

    with pytest.raises(ValidationError):
        engine.nearby_signals(WORKER_LAT, WORKER_LNG, limit=limit)


def test_refresh_replaces_signals_from_source(clock):
    source = DummySource(
        rows=[
            {"id": "h7", "location": "POINT(76.5375 9.9945)"},
            {"id": "h8", "location": None},
        ]
    )
    engine = _engine(clock, source=source)
    engine.ingest_signal({"id": "h1", "lat": 9.9945, "lng": 76.5375})

    result = engine.refresh_signals()

    assert result["refreshed"] is True
    assert result["active"] == 1
    assert len(result["rejected"]) == 1
    assert [signal.id for signal in engine.active_signals()] == ["household_h7"]


def test_refresh_keeps_cached_signals_when_source_is_down(clock):
    engine = _engine(clock, source=DummySource(error=ConnectionError("supabase down")))
    engine.ingest_signal({"id": "h1", "lat": 9.9945, "lng": 76.5375})

    result = engine.refresh_signals()

    assert result["degraded"] is True
    assert result["active"] == 1
    assert "supabase down" in result["warning"]


def test_refresh_without_source(clock):
    assert _engine(clock).refresh_signals()["refreshed"] is False


def test_status(clock):
    status = _engine(clock).status()

    assert status["zones"] == 3
    assert status["active_signals"] == 0
    assert status["tick_count"] == 0
    assert status["last_tick_at"] is None
    assert status["reset_policy"] == "subtract"
