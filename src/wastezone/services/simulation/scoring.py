"""Risk classification, hotspot scoring and overflow prediction strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...errors import OutOfRangeError
from ...models.domain import HouseholdSignal, RiskLevel, Zone

SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True, slots=True)
class RiskThresholds:
    """Fill percentage upper bounds (exclusive) for LOW, MEDIUM and HIGH."""

    low: float = 40.0
    medium: float = 70.0
    high: float = 90.0

    def __post_init__(self) -> None:
        if not 0 < self.low < self.medium < self.high <= 100:
            raise OutOfRangeError(
                f"Risk thresholds must increase within (0, 100]: {self.low}, {self.medium}, {self.high}"
            )

    def classify(self, fill_percentage: float) -> RiskLevel:
        if fill_percentage < self.low:
            return RiskLevel.LOW
        if fill_percentage < self.medium:
            return RiskLevel.MEDIUM
        if fill_percentage < self.high:
            return RiskLevel.HIGH
        return RiskLevel.CRITICAL


@dataclass(frozen=True, slots=True)
class SignalPrediction:
    predicted_volume_kg: float
    urgency: str
    priority_score: int


def fill_percentage(zone: Zone) -> float:
    return min(100.0, zone.current_fill / zone.bin_capacity * 100.0)


def days_since(moment: datetime, now: datetime) -> float:
    return max(0.0, (now - moment).total_seconds() / SECONDS_PER_DAY)


class ScoringStrategy(ABC):
    """Contract for urgency scoring.

    Swapping in a trained model means implementing this interface; the
    simulator and optimizer only ever see the numbers it returns.
    """

    @abstractmethod
    def hotspot_score(self, *, fill_percentage: float, days_since_collection: float) -> float:
        raise NotImplementedError

    @abstractmethod
    def predict_overflow_minutes(
        self,
        zone: Zone,
        *,
        fill_percentage: float,
        tick_interval_seconds: float,
    ) -> Optional[float]:
        raise NotImplementedError

    @abstractmethod
    def score_signal(
        self,
        signal: HouseholdSignal,
        *,
        distance_meters: float,
        now: datetime,
    ) -> SignalPrediction:
        raise NotImplementedError


class WeightedHotspotScoring(ScoringStrategy):
    """Linear fill/staleness score with a rate-based overflow estimate."""

    def __init__(
        self,
        fill_weight: float = 1.0,
        staleness_weight: float = 10.0,
        overflow_threshold: float = 70.0,
    ) -> None:
        if fill_weight < 0 or staleness_weight < 0:
            raise OutOfRangeError("Hotspot weights must be non-negative.")
        if not 0 <= overflow_threshold <= 100:
            raise OutOfRangeError(f"Overflow threshold must be within [0, 100], got {overflow_threshold}")
        self.fill_weight = fill_weight
        self.staleness_weight = staleness_weight
        self.overflow_threshold = overflow_threshold

    def hotspot_score(self, *, fill_percentage: float, days_since_collection: float) -> float:
        return fill_percentage * self.fill_weight + days_since_collection * self.staleness_weight

    def predict_overflow_minutes(
        self,
        zone: Zone,
        *,
        fill_percentage: float,
        tick_interval_seconds: float,
    ) -> Optional[float]:
        if fill_percentage <= self.overflow_threshold:
            return None
        remaining = max(0.0, zone.bin_capacity - zone.current_fill)
        if remaining == 0:
            return 0.0
        if zone.generation_rate <= 0:
            return None
        ticks_to_full = remaining / zone.generation_rate
        return ticks_to_full * tick_interval_seconds / 60.0

    def score_signal(
        self,
        signal: HouseholdSignal,
        *,
        distance_meters: float,
        now: datetime,
    ) -> SignalPrediction:
        score = 0
        if distance_meters < 300:
            score += 40
        elif distance_meters < 600:
            score += 30
        elif distance_meters < 1000:
            score += 20
        elif distance_meters < 1500:
            score += 10

        # Waiting time replaces the old random urgency bump: one point per 10 minutes, capped at 30.
        waited_minutes = max(0.0, (now - signal.created_at).total_seconds() / 60.0)
        score += min(30, int(waited_minutes // 10))

        if signal.ward is not None and str(signal.ward).isdigit() and int(signal.ward) % 3 == 0:
            score += 10

        if score >= 70:
            urgency = "critical"
        elif score >= 50:
            urgency = "high"
        elif score >= 30:
            urgency = "medium"
        else:
            urgency = "low"

        volume = min(15.0, 8.0 + 1.5 * len(signal.waste_types) + waited_minutes / 1440.0)
        return SignalPrediction(
            predicted_volume_kg=round(volume, 1),
            urgency=urgency,
            priority_score=score,
        )
