"""Service configuration, read from WZ_* environment variables or a .env file."""

import json
from pathlib import Path
from typing import Annotated, Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Simulation, scoring, routing and collaborator settings."""

    model_config = SettingsConfigDict(
        env_prefix="WZ_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Waste Zone Simulation & Routing API"
    api_prefix: str = "/api"
    zones_file: Optional[Path] = Field(
        default=None,
        description="Zone registry (.csv or .xlsx). The built-in seed set is used when unset.",
    )

    # Simulation cadence
    tick_interval_seconds: float = Field(default=3.0, gt=0.0)
    ticker_enabled: bool = Field(default=True, description="Run the background tick thread.")
    initial_fill_fraction: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Upper bound of the seeded starting fill, as a fraction of capacity.",
    )
    initial_staleness_minutes: float = Field(default=120.0, ge=0.0)
    simulation_seed: Optional[int] = Field(default=None, description="Seed for the initial fill levels.")

    # Risk and hotspot scoring
    risk_thresholds: Annotated[tuple[float, float, float], NoDecode] = Field(
        default=(40.0, 70.0, 90.0),
        description="Fill percentage upper bounds for LOW, MEDIUM and HIGH.",
    )
    hotspot_fill_weight: float = Field(default=1.0, ge=0.0)
    hotspot_staleness_weight: float = Field(default=10.0, ge=0.0)
    overflow_prediction_threshold: float = Field(default=70.0, ge=0.0, le=100.0)
    route_hotspot_limit: int = Field(default=5, ge=1)

    # Collection
    collection_reset_policy: Literal["subtract", "zero"] = Field(
        default="subtract",
        description="'subtract' removes the collected amount (clamped at 0); 'zero' empties the bin.",
    )
    default_collect_amount: float = Field(
        default=100.0,
        ge=0.0,
        description="Amount removed under the subtract policy when a collection reports none.",
    )

    # Routing and proximity
    average_speed_kmph: float = Field(default=24.0, gt=0.0)
    verification_radius_meters: float = Field(default=50.0, gt=0.0)
    nearby_signal_radius_meters: float = Field(default=2000.0, gt=0.0)
    nearby_signal_limit: int = Field(default=50, ge=1)
    service_area: Annotated[tuple[tuple[float, float], ...], NoDecode] = Field(
        default=(),
        description="Optional polygon of (lat, lon) pairs; signals outside it are rejected.",
    )

    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing road geometry.",
    )
    osrm_timeout_seconds: float = Field(default=10.0, gt=0.0)
    osrm_max_retries: int = Field(default=3, ge=0)
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)

    frontend_allowed_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )
    signals_table: str = Field(default="households")
    signal_refresh_interval_seconds: float = Field(
        default=60.0,
        ge=0.0,
        description="Cadence for pulling waste-ready households from the source; 0 disables it.",
    )
    signal_source_max_retries: int = Field(default=3, ge=0)
    signal_source_backoff_seconds: float = Field(default=1.0, ge=0.0)

    @field_validator("zones_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Optional[Path]:
        if value in (None, ""):
            return None
        return Path(str(value)).expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: Any) -> tuple[str, ...]:
        return tuple(str(item) for item in _split_env_list(value))

    @field_validator("risk_thresholds", mode="before")
    @classmethod
    def _parse_thresholds(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(float(item) for item in _split_env_list(value))
        return value

    @field_validator("risk_thresholds")
    @classmethod
    def _validate_thresholds(cls, value: tuple[float, float, float]) -> tuple[float, float, float]:
        low, medium, high = value
        if not 0 < low < medium < high <= 100:
            raise ValueError("risk_thresholds must be strictly increasing within (0, 100]")
        return value

    @field_validator("service_area", mode="before")
    @classmethod
    def _parse_polygon(cls, value: Any) -> Any:
        """Polygon vertices as a JSON array of ``[lat, lon]`` pairs."""
        if value in (None, ""):
            return ()
        if isinstance(value, str):
            return tuple(tuple(float(c) for c in pair) for pair in json.loads(value))
        return value

    @field_validator("service_area")
    @classmethod
    def _validate_polygon(cls, value: tuple[tuple[float, float], ...]) -> tuple[tuple[float, float], ...]:
        if value and len(value) < 3:
            raise ValueError("service_area needs at least three (lat, lon) vertices")
        return value


def _split_env_list(value: Any) -> list[Any]:
    """Accept a list, a JSON array string or a comma-separated string."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    text = str(value).strip()
    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return parsed
    return [item.strip() for item in text.split(",") if item.strip()]


settings = Settings()
