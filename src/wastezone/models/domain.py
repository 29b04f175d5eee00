"""Domain models for collection zones, household signals and worker positions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import ClassVar, Optional, Protocol


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class PriorityTier(IntEnum):
    """Route visitation tiers; lower values are visited first."""

    SIGNAL = 0
    CRITICAL = 1
    HIGH = 2
    MEDIUM = 3
    LOW = 4


RISK_TIERS: dict[RiskLevel, PriorityTier] = {
    RiskLevel.CRITICAL: PriorityTier.CRITICAL,
    RiskLevel.HIGH: PriorityTier.HIGH,
    RiskLevel.MEDIUM: PriorityTier.MEDIUM,
    RiskLevel.LOW: PriorityTier.LOW,
}


class RoutablePoint(Protocol):
    """Anything the route optimizer can visit."""

    kind: ClassVar[str]

    @property
    def id(self) -> str: ...

    @property
    def lat(self) -> float: ...

    @property
    def lon(self) -> float: ...

    @property
    def priority_tier(self) -> PriorityTier: ...

    @property
    def priority_score(self) -> float: ...


@dataclass(slots=True)
class Zone:
    """Mutable simulation record for a fixed collection point. Owned by the zone store."""

    id: str
    name: str
    lat: float
    lon: float
    bin_capacity: float
    generation_rate: float
    current_fill: float
    last_collection_time: datetime
    ward: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ZoneState:
    """Immutable view of a zone with its derived urgency fields."""

    kind: ClassVar[str] = "zone"

    id: str
    name: str
    lat: float
    lon: float
    bin_capacity: float
    generation_rate: float
    current_fill: float
    last_collection_time: datetime
    ward: Optional[str]
    fill_percentage: float
    risk_level: RiskLevel
    hotspot_score: float
    predicted_overflow_minutes: Optional[float]

    @property
    def priority_tier(self) -> PriorityTier:
        return RISK_TIERS[self.risk_level]

    @property
    def priority_score(self) -> float:
        return self.hotspot_score


@dataclass(frozen=True, slots=True)
class HouseholdSignal:
    """Citizen-triggered pickup request; always outranks ambient zone accrual."""

    kind: ClassVar[str] = "signal"

    id: str
    household_id: str
    name: str
    lat: float
    lon: float
    ward: Optional[str]
    waste_types: tuple[str, ...]
    created_at: datetime
    status: str = "pending"

    @property
    def risk_level(self) -> RiskLevel:
        return RiskLevel.CRITICAL

    @property
    def hotspot_score(self) -> float:
        return math.inf

    @property
    def priority_tier(self) -> PriorityTier:
        return PriorityTier.SIGNAL

    @property
    def priority_score(self) -> float:
        return math.inf


@dataclass(frozen=True, slots=True)
class WorkerPosition:
    lat: float
    lon: float
    accuracy_meters: Optional[float] = None
