"""Route group exports."""

from . import health, signals, waste, worker

__all__ = ["health", "signals", "waste", "worker"]
