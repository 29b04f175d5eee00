import pytest

from conftest import make_zone, zone_state
from wastezone.errors import ValidationError
from wastezone.models.domain import RiskLevel
from wastezone.services.hotspots import HotspotRanker, rank_hotspots
from wastezone.services.simulation import ZoneSimulator, ZoneStore


def test_ranks_by_score_descending_with_id_tiebreak():
    states = [
        zone_state("c", 9.9, 76.5, RiskLevel.LOW, score=10.0),
        zone_state("b", 9.9, 76.5, RiskLevel.LOW, score=80.0),
        zone_state("a", 9.9, 76.5, RiskLevel.LOW, score=80.0),
        zone_state("d", 9.9, 76.5, RiskLevel.LOW, score=50.0),
    ]

    assert [state.id for state in rank_hotspots(states, 10)] == ["a", "b", "d", "c"]
    assert [state.id for state in rank_hotspots(states, 2)] == ["a", "b"]


@pytest.mark.parametrize("n", [0, -1])
def test_rejects_non_positive_count(n):
    with pytest.raises(ValidationError):
        rank_hotspots([], n)


def test_ranker_reads_current_snapshot(clock):
    store = ZoneStore([make_zone("z1", fill=20.0), make_zone("z2", fill=90.0), make_zone("z3", fill=55.0)])
    ZoneSimulator(store, clock=clock)

    top = HotspotRanker(store).top(2)

    assert [state.id for state in top] == ["z2", "z3"]
