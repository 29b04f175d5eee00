"""Top-N hotspot selection."""

from __future__ import annotations

from typing import Iterable

from ..errors import ValidationError
from ..models.domain import ZoneState
from .simulation.store import ZoneStore


def rank_hotspots(states: Iterable[ZoneState], n: int) -> list[ZoneState]:
    """Zones by ``hotspot_score`` descending, ties by id, truncated to ``n``."""
    if n < 1:
        raise ValidationError(f"Hotspot count must be >= 1, got {n}")
    ranked = sorted(states, key=lambda state: state.id)
    ranked.sort(key=lambda state: state.hotspot_score, reverse=True)
    return ranked[:n]


class HotspotRanker:
    def __init__(self, store: ZoneStore) -> None:
        self.store = store

    def top(self, n: int) -> list[ZoneState]:
        return rank_hotspots(self.store.snapshot(), n)
