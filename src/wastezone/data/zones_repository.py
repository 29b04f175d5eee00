"""Zone registry loader: CSV or Excel file, falling back to the built-in seed set."""

from __future__ import annotations

import csv
import functools
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from openpyxl import load_workbook

from ..config import settings
from ..errors import OutOfRangeError
from ..models.domain import Zone

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"id", "name", "lat", "lon", "bin_capacity", "generation_rate"}


@dataclass(frozen=True, slots=True)
class ZoneDefinition:
    """Static zone attributes as read from the registry."""

    id: str
    name: str
    lat: float
    lon: float
    bin_capacity: float
    generation_rate: float
    ward: Optional[str] = None
    current_fill: Optional[float] = None


# Collection points along the Piravom road network, snapped to OpenStreetMap nodes.
DEFAULT_ZONES: tuple[ZoneDefinition, ...] = (
    ZoneDefinition("zone_001", "Piravom Central Bus Stand", 9.8640844, 76.513132, 800, 0.148),
    ZoneDefinition("zone_002", "Kalampoor Junction", 9.8668764, 76.5065807, 750, 0.138),
    ZoneDefinition("zone_003", "Pazhoor Temple Road", 9.868886, 76.5021146, 900, 0.167),
    ZoneDefinition("zone_004", "Kakkad South Market", 9.8716402, 76.4974814, 700, 0.130),
    ZoneDefinition("zone_005", "Mulakulam Border", 9.8742306, 76.4943236, 650, 0.120),
    ZoneDefinition("zone_006", "Maneed Panchayat Office", 9.8733934, 76.4878778, 600, 0.111),
    ZoneDefinition("zone_007", "Pampakuda Main Junction", 9.8780133, 76.484395, 850, 0.157),
    ZoneDefinition("zone_008", "Namakuzhy High School", 9.8804917, 76.4809567, 500, 0.093),
    ZoneDefinition("zone_009", "Veliyanad Center", 9.8832796, 76.4769612, 700, 0.130),
    ZoneDefinition("zone_010", "Kochupilly Road", 9.8840637, 76.4729282, 450, 0.083),
    ZoneDefinition("zone_011", "Peppathy Junction", 9.8838035, 76.4688321, 480, 0.089),
    ZoneDefinition("zone_012", "Government Hospital Piravom", 9.8627133, 76.5261783, 550, 0.102),
)


def _coerce_float(value: Any, column: str, row_label: str) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    if value is None or str(value).strip() == "":
        raise ValueError(f"{row_label}: missing value for '{column}'")
    try:
        return float(str(value).replace(",", ""))
    except ValueError as exc:
        raise ValueError(f"{row_label}: unable to parse float from '{value}' in '{column}'") from exc


def _row_to_definition(row: Mapping[str, Any], row_label: str) -> ZoneDefinition:
    ward = row.get("ward")
    fill = row.get("current_fill")
    return ZoneDefinition(
        id=str(row["id"]).strip(),
        name=str(row["name"]).strip(),
        lat=_coerce_float(row["lat"], "lat", row_label),
        lon=_coerce_float(row["lon"], "lon", row_label),
        bin_capacity=_coerce_float(row["bin_capacity"], "bin_capacity", row_label),
        generation_rate=_coerce_float(row["generation_rate"], "generation_rate", row_label),
        ward=str(ward).strip() if ward not in (None, "") else None,
        current_fill=_coerce_float(fill, "current_fill", row_label) if fill not in (None, "") else None,
    )


def _check_header(header: Iterable[Any], source: Path) -> None:
    missing = REQUIRED_COLUMNS - {str(name).strip() for name in header if name is not None}
    if missing:
        raise ValueError(f"Zone file '{source}' missing columns: {', '.join(sorted(missing))}")


def _load_from_csv(source: Path) -> tuple[ZoneDefinition, ...]:
    with source.open(mode="r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise ValueError(f"Zone file '{source}' is missing a header row.")
        _check_header(reader.fieldnames, source)
        return tuple(
            _row_to_definition({key.strip(): value for key, value in row.items() if key}, f"{source.name} row {index}")
            for index, row in enumerate(reader, start=2)
            if any((value or "").strip() for value in row.values() if isinstance(value, str))
        )


def _load_from_workbook(source: Path) -> tuple[ZoneDefinition, ...]:
    wb = load_workbook(source, data_only=True, read_only=True)
    try:
        rows = wb.active.iter_rows(min_row=1, values_only=True)
        header = next(rows, None)
        if header is None:
            raise ValueError(f"Zone workbook '{source}' is empty.")
        _check_header(header, source)
        names = [str(name).strip() if name is not None else "" for name in header]
        definitions = []
        for index, values in enumerate(rows, start=2):
            if not any(value not in (None, "") for value in values):
                continue
            definitions.append(_row_to_definition(dict(zip(names, values)), f"{source.name} row {index}"))
        return tuple(definitions)
    finally:
        wb.close()


@functools.lru_cache(maxsize=4)
def load_zone_definitions(source: Optional[Path] = None) -> tuple[ZoneDefinition, ...]:
    """Load zone definitions from ``source`` (or the configured file), else the seed set."""

    path = source or settings.zones_file
    if path is None:
        return DEFAULT_ZONES
    if not path.exists():
        raise FileNotFoundError(f"Zone file not found: {path}")
    if path.suffix.lower() in {".xlsx", ".xlsm"}:
        definitions = _load_from_workbook(path)
    else:
        definitions = _load_from_csv(path)
    if not definitions:
        raise ValueError(f"Zone file '{path}' contains no zones.")
    logger.info("Loaded %d zones from %s", len(definitions), path)
    return definitions


def build_zones(
    definitions: Iterable[ZoneDefinition],
    *,
    now: datetime,
    initial_fill_fraction: float = 0.3,
    staleness_minutes: float = 120.0,
    seed: Optional[int] = None,
) -> list[Zone]:
    """Create fresh mutable zone records.

    Zones without an explicit ``current_fill`` start at a random fill in
    ``[0, initial_fill_fraction * capacity)``; pass ``seed`` for repeatable runs.
    """
    if not 0 <= initial_fill_fraction <= 1:
        raise OutOfRangeError(f"initial_fill_fraction must be within [0, 1], got {initial_fill_fraction}")
    rng = random.Random(seed)
    last_collection = now - timedelta(minutes=staleness_minutes)
    zones = []
    for definition in definitions:
        fill = definition.current_fill
        if fill is None:
            fill = rng.random() * definition.bin_capacity * initial_fill_fraction
        zones.append(
            Zone(
                id=definition.id,
                name=definition.name,
                lat=definition.lat,
                lon=definition.lon,
                bin_capacity=definition.bin_capacity,
                generation_rate=definition.generation_rate,
                current_fill=fill,
                last_collection_time=last_collection,
                ward=definition.ward,
            )
        )
    return zones
