"""Waste zone simulation and collection route optimization service."""

__version__ = "0.1.0"
