from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from wastezone.models.domain import HouseholdSignal, RiskLevel, Zone, ZoneState

START = datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_zone(
    zone_id: str,
    lat: float = 9.87,
    lon: float = 76.5,
    *,
    capacity: float = 100.0,
    rate: float = 1.0,
    fill: float = 0.0,
    last_collection: Optional[datetime] = None,
) -> Zone:
    return Zone(
        id=zone_id,
        name=f"Zone {zone_id}",
        lat=lat,
        lon=lon,
        bin_capacity=capacity,
        generation_rate=rate,
        current_fill=fill,
        last_collection_time=last_collection or START - timedelta(days=1),
    )


def zone_state(zone_id: str, lat: float, lon: float, risk: RiskLevel, score: float = 0.0) -> ZoneState:
    fill = {RiskLevel.LOW: 10.0, RiskLevel.MEDIUM: 50.0, RiskLevel.HIGH: 80.0, RiskLevel.CRITICAL: 95.0}[risk]
    return ZoneState(
        id=zone_id,
        name=f"Zone {zone_id}",
        lat=lat,
        lon=lon,
        bin_capacity=100.0,
        generation_rate=1.0,
        current_fill=fill,
        last_collection_time=START,
        ward=None,
        fill_percentage=fill,
        risk_level=risk,
        hotspot_score=score or fill,
        predicted_overflow_minutes=None,
    )


def make_signal(household_id: str, lat: float, lon: float, created_at: datetime = START) -> HouseholdSignal:
    return HouseholdSignal(
        id=f"household_{household_id}",
        household_id=household_id,
        name=f"Household {household_id}",
        lat=lat,
        lon=lon,
        ward=None,
        waste_types=("general",),
        created_at=created_at,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
