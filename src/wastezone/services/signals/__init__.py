"""Household signal services."""

from .adapter import NearbySignal, SignalAdapter, parse_location
from .source import SignalSource, SupabaseSignalSource, household_row_to_raw

__all__ = [
    "NearbySignal",
    "SignalAdapter",
    "SignalSource",
    "SupabaseSignalSource",
    "household_row_to_raw",
    "parse_location",
]
