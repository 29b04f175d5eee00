"""Exception types raised by the simulation and routing core."""

from __future__ import annotations


class WasteEngineError(Exception):
    """Base class for engine errors."""


class ValidationError(WasteEngineError, ValueError):
    """Malformed input rejected before any computation (coordinates, counts, payloads)."""


class OutOfRangeError(WasteEngineError, ValueError):
    """A configured quantity (radius, capacity, speed, rate) is outside its allowed range."""


class ZoneNotFoundError(WasteEngineError, KeyError):
    def __init__(self, zone_id: str) -> None:
        super().__init__(zone_id)
        self.zone_id = zone_id

    def __str__(self) -> str:
        return f"Zone {self.zone_id} not found"


class SignalNotFoundError(WasteEngineError, KeyError):
    def __init__(self, signal_id: str) -> None:
        super().__init__(signal_id)
        self.signal_id = signal_id

    def __str__(self) -> str:
        return f"Household signal {self.signal_id} not found"


class DegradedResultWarning(UserWarning):
    """Attached to a route result when an external collaborator was unavailable.

    Never raised: the optimizer still returns a valid ordering with
    straight-line distances.
    """
