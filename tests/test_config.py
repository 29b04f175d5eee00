import pydantic
import pytest

from wastezone.config import Settings


def test_defaults():
    config = Settings()
    assert config.tick_interval_seconds == 3.0
    assert config.risk_thresholds == (40.0, 70.0, 90.0)
    assert config.collection_reset_policy == "subtract"
    assert config.verification_radius_meters == 50.0
    assert config.average_speed_kmph == 24.0


def test_list_values_from_strings():
    config = Settings(
        risk_thresholds="30, 60, 80",
        frontend_allowed_origins="http://a.test, http://b.test",
        service_area="[[9.80, 76.40], [9.80, 76.60], [9.95, 76.60]]",
    )

    assert config.risk_thresholds == (30.0, 60.0, 80.0)
    assert config.frontend_allowed_origins == ("http://a.test", "http://b.test")
    assert config.service_area == ((9.80, 76.40), (9.80, 76.60), (9.95, 76.60))


def test_json_array_origins():
    assert Settings(frontend_allowed_origins='["http://a.test"]').frontend_allowed_origins == ("http://a.test",)


@pytest.mark.parametrize(
    "overrides",
    [
        {"risk_thresholds": "70,40,90"},
        {"service_area": "[[9.8, 76.4], [9.9, 76.5]]"},
        {"tick_interval_seconds": 0},
        {"collection_reset_policy": "halve"},
        {"verification_radius_meters": -1},
    ],
)
def test_invalid_settings_are_rejected(overrides):
    with pytest.raises(pydantic.ValidationError):
        Settings(**overrides)


def test_list_values_from_environment(monkeypatch):
    monkeypatch.setenv("WZ_RISK_THRESHOLDS", "30,60,80")
    monkeypatch.setenv("WZ_FRONTEND_ALLOWED_ORIGINS", "http://a.test,http://b.test")
    monkeypatch.setenv("WZ_SERVICE_AREA", "[[9.8, 76.4], [9.8, 76.6], [9.95, 76.6]]")
    monkeypatch.setenv("WZ_DEFAULT_COLLECT_AMOUNT", "40")

    config = Settings()

    assert config.risk_thresholds == (30.0, 60.0, 80.0)
    assert config.frontend_allowed_origins == ("http://a.test", "http://b.test")
    assert config.service_area == ((9.8, 76.4), (9.8, 76.6), (9.95, 76.6))
    assert config.default_collect_amount == 40.0


def test_json_thresholds_from_environment(monkeypatch):
    monkeypatch.setenv("WZ_RISK_THRESHOLDS", "[35, 65, 85]")
    assert Settings().risk_thresholds == (35.0, 65.0, 85.0)
