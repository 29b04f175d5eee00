from datetime import timedelta

import pytest
from openpyxl import Workbook

from conftest import START
from wastezone.data import zones_repository
from wastezone.data.zones_repository import DEFAULT_ZONES, build_zones, load_zone_definitions
from wastezone.errors import OutOfRangeError

HEADER = ["id", "name", "lat", "lon", "bin_capacity", "generation_rate", "ward", "current_fill"]


@pytest.fixture(autouse=True)
def _clear_cache():
    load_zone_definitions.cache_clear()
    yield
    load_zone_definitions.cache_clear()


def test_default_seed_is_used_without_a_file(monkeypatch):
    monkeypatch.setattr(zones_repository.settings, "zones_file", None)

    definitions = load_zone_definitions()

    assert definitions == DEFAULT_ZONES
    assert len(definitions) == 12
    assert len({definition.id for definition in definitions}) == 12


def test_load_from_csv(tmp_path):
    path = tmp_path / "zones.csv"
    path.write_text(
        "id,name,lat,lon,bin_capacity,generation_rate,ward,current_fill\n"
        "z1,Market,9.87,76.49,\"1,000\",2.5,7,\n"
        "z2,Church,9.88,76.50,500,1,,120\n"
        ",,,,,,,\n",
        encoding="utf-8",
    )

    definitions = load_zone_definitions(path)

    assert [definition.id for definition in definitions] == ["z1", "z2"]
    assert definitions[0].bin_capacity == 1000.0
    assert definitions[0].ward == "7"
    assert definitions[0].current_fill is None
    assert definitions[1].ward is None
    assert definitions[1].current_fill == 120.0


def test_load_from_workbook(tmp_path):
    path = tmp_path / "zones.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.append(HEADER)
    ws.append(["z1", "Market", 9.87, 76.49, 1000, 2.5, 7, None])
    ws.append([None] * len(HEADER))
    ws.append(["z2", "Church", 9.88, 76.50, 500, 1, None, 40])
    wb.save(path)

    definitions = load_zone_definitions(path)

    assert [definition.id for definition in definitions] == ["z1", "z2"]
    assert definitions[0].ward == "7"
    assert definitions[1].current_fill == 40.0


def test_missing_columns_are_reported(tmp_path):
    path = tmp_path / "zones.csv"
    path.write_text("id,name,lat,lon\nz1,Market,9.87,76.49\n", encoding="utf-8")

    with pytest.raises(ValueError, match="bin_capacity"):
        load_zone_definitions(path)


def test_unparseable_number(tmp_path):
    path = tmp_path / "zones.csv"
    path.write_text("id,name,lat,lon,bin_capacity,generation_rate\nz1,Market,north,76.49,100,1\n", encoding="utf-8")

    with pytest.raises(ValueError, match="lat"):
        load_zone_definitions(path)


def test_empty_file_and_missing_file(tmp_path):
    empty = tmp_path / "empty.csv"
    empty.write_text(",".join(HEADER) + "\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_zone_definitions(empty)

    with pytest.raises(FileNotFoundError):
        load_zone_definitions(tmp_path / "absent.csv")


def test_build_zones_is_repeatable_with_seed():
    first = build_zones(DEFAULT_ZONES, now=START, seed=42)
    second = build_zones(DEFAULT_ZONES, now=START, seed=42)

    assert [zone.current_fill for zone in first] == [zone.current_fill for zone in second]
    for zone in first:
        assert 0 <= zone.current_fill < zone.bin_capacity * 0.3
        assert zone.last_collection_time == START - timedelta(minutes=120)


def test_build_zones_keeps_explicit_fill():
    definition = zones_repository.ZoneDefinition(
        id="z1", name="Market", lat=9.87, lon=76.49, bin_capacity=100, generation_rate=1, current_fill=65
    )

    (zone,) = build_zones([definition], now=START, seed=1)

    assert zone.current_fill == 65


def test_build_zones_rejects_bad_fraction():
    with pytest.raises(OutOfRangeError):
        build_zones(DEFAULT_ZONES, now=START, initial_fill_fraction=1.5)
