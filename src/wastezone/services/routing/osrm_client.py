"""HTTP client for the OSRM road-routing collaborator."""

from __future__ import annotations

import logging
import time
from typing import Any, Sequence

import httpx

from ...config import settings

logger = logging.getLogger(__name__)

# Two Piravom junctions inside the default service area.
HEALTH_PROBE = ((9.8640844, 76.513132), (9.8668764, 76.5065807))


def _coordinate_path(coordinates: Sequence[tuple[float, float]]) -> str:
    # OSRM wants "lon,lat;lon,lat;..."
    return ";".join(f"{lon},{lat}" for lat, lon in coordinates)


class OSRMClient:
    """Thin wrapper over the OSRM ``route`` service.

    Transient failures (timeouts, connection errors, 5xx/4xx responses) are
    retried with exponential backoff. A well-formed "no route" answer is
    raised as ``ValueError`` straight away since retrying cannot change it.
    """

    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            transport=self._transport,
        )

    def _backoff(self, attempt: int, reason: Exception) -> None:
        wait_time = self.backoff_seconds * (2 ** (attempt - 1))
        logger.debug(f"OSRM request failed ({reason}); retry {attempt}/{self.max_retries} in {wait_time:.1f}s")
        time.sleep(wait_time)

    def _get_json(self, url: str, params: dict[str, str]) -> dict[str, Any]:
        attempt = 0
        with self._get_client() as client:
            while True:
                attempt += 1
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    return response.json()
                except (httpx.HTTPStatusError, httpx.TimeoutException) as exc:
                    if attempt > self.max_retries:
                        logger.warning(f"OSRM gave up after {attempt} attempts: {exc}")
                        raise
                    self._backoff(attempt, exc)
                except (httpx.TransportError, OSError) as exc:
                    if attempt > self.max_retries:
                        raise ConnectionError(f"Failed to connect to OSRM service at {self.base_url}: {exc}") from exc
                    self._backoff(attempt, exc)

    def route(self, coordinates: Sequence[tuple[float, float]]) -> dict[str, Any]:
        """Road route through ``coordinates`` (``(lat, lon)`` pairs), in visiting order.

        Returns the raw OSRM payload; ``routes[0].geometry`` is an encoded polyline.
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM route.")

        url = f"{self.base_url}/route/v1/{self.profile}/{_coordinate_path(coordinates)}"
        data = self._get_json(url, {"overview": "full", "geometries": "polyline", "steps": "false"})
        if data.get("code") != "Ok" or not data.get("routes"):
            reason = data.get("message", data.get("code", "unknown error"))
            raise ValueError(f"OSRM route request failed: {reason}")
        return data

    def route_geometry(self, coordinates: Sequence[tuple[float, float]]) -> list[tuple[float, float]]:
        """Road geometry for the waypoints as decoded (lat, lon) pairs."""
        data = self.route(coordinates)
        return decode_polyline(data["routes"][0]["geometry"])


def _read_varint(encoded: str, index: int) -> tuple[int, int]:
    shift = result = 0
    while True:
        chunk = ord(encoded[index]) - 63
        index += 1
        result |= (chunk & 0x1F) << shift
        shift += 5
        if chunk < 0x20:
            break
    value = ~(result >> 1) if result & 1 else result >> 1
    return value, index


def decode_polyline(encoded: str, precision: int = 5) -> list[tuple[float, float]]:
    """Decode an encoded polyline (precision 5, as OSRM emits) to ``(lat, lon)`` pairs."""
    factor = 10**precision
    points: list[tuple[float, float]] = []
    index = lat = lon = 0
    while index < len(encoded):
        d_lat, index = _read_varint(encoded, index)
        d_lon, index = _read_varint(encoded, index)
        lat += d_lat
        lon += d_lon
        points.append((lat / factor, lon / factor))
    return points


def check_health(base_url: str | None = None) -> bool:
    """True when OSRM answers a two-point route request with ``Ok``."""
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    url = f"{base.rstrip('/')}/route/v1/{settings.osrm_profile}/{_coordinate_path(HEALTH_PROBE)}"
    try:
        response = httpx.get(url, params={"overview": "false"}, timeout=5.0)
        response.raise_for_status()
        return response.json().get("code") == "Ok"
    except (httpx.HTTPError, ValueError):
        return False
