"""Zone fill simulation services."""

from .scoring import RiskThresholds, ScoringStrategy, SignalPrediction, WeightedHotspotScoring
from .simulator import ZoneSimulator, utcnow
from .store import ZoneStore, validate_zone
from .ticker import Ticker

__all__ = [
    "RiskThresholds",
    "ScoringStrategy",
    "SignalPrediction",
    "WeightedHotspotScoring",
    "ZoneSimulator",
    "ZoneStore",
    "Ticker",
    "utcnow",
    "validate_zone",
]
