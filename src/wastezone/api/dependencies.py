"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from ..services.engine import WasteEngine


def get_engine(request: Request) -> WasteEngine:
    """The engine built by ``create_app`` for this application instance."""
    return request.app.state.engine
