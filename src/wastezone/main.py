"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import health, signals, waste, worker
from .config import settings
from .services.engine import WasteEngine
from .services.signals.source import SupabaseSignalSource
from .services.simulation.ticker import Ticker

logger = logging.getLogger(__name__)


def _default_signal_source():
    try:
        return SupabaseSignalSource()
    except ValueError as exc:
        logger.info(f"Household signal source disabled: {exc}")
        return None


def create_app(
    engine: WasteEngine | None = None,
    *,
    run_ticker: bool | None = None,
    signal_refresh_seconds: float | None = None,
) -> FastAPI:
    engine = engine or WasteEngine.from_settings(settings, signal_source=_default_signal_source())
    run_ticker = settings.ticker_enabled if run_ticker is None else run_ticker
    if signal_refresh_seconds is None:
        signal_refresh_seconds = settings.signal_refresh_interval_seconds

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        tickers: list[Ticker] = []
        if run_ticker:
            tickers.append(Ticker(engine.tick, settings.tick_interval_seconds))
        if engine.signal_source is not None:
            await run_in_threadpool(engine.refresh_signals)
            if run_ticker and signal_refresh_seconds > 0:
                tickers.append(Ticker(engine.refresh_signals, signal_refresh_seconds, name="signal-refresh"))
        for ticker in tickers:
            ticker.start()
        try:
            yield
        finally:
            for ticker in tickers:
                ticker.stop()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.engine = engine
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Root endpoint for diagnostics
    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(waste.router, prefix=settings.api_prefix)
    app.include_router(worker.router, prefix=settings.api_prefix)
    app.include_router(signals.router, prefix=settings.api_prefix)
    return app


app = create_app()
