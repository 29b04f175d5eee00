"""Household "waste ready" signal endpoints."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from ...errors import SignalNotFoundError
from ...schemas.signals import (
    HouseholdSignalModel,
    SignalIngestRequest,
    SignalRefreshResponse,
    SignalsResponse,
)
from ...services.engine import WasteEngine
from ..dependencies import get_engine

router = APIRouter(prefix="/signals", tags=["signals"])


@router.get("", response_model=SignalsResponse, status_code=status.HTTP_200_OK)
def list_signals(engine: WasteEngine = Depends(get_engine)) -> SignalsResponse:
    signals = [HouseholdSignalModel.from_signal(signal) for signal in engine.active_signals()]
    return SignalsResponse(signals=signals, count=len(signals), timestamp=datetime.now(timezone.utc))


@router.post("", response_model=HouseholdSignalModel, status_code=status.HTTP_201_CREATED)
def ingest_signal(payload: SignalIngestRequest, engine: WasteEngine = Depends(get_engine)) -> HouseholdSignalModel:
    try:
        signal = engine.ingest_signal(payload.model_dump(exclude_none=True))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return HouseholdSignalModel.from_signal(signal)


@router.delete("/{signal_id}", response_model=HouseholdSignalModel, status_code=status.HTTP_200_OK)
def remove_signal(signal_id: str, engine: WasteEngine = Depends(get_engine)) -> HouseholdSignalModel:
    try:
        return HouseholdSignalModel.from_signal(engine.remove_signal(signal_id))
    except SignalNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("/refresh", response_model=SignalRefreshResponse, status_code=status.HTTP_200_OK)
def refresh_signals(engine: WasteEngine = Depends(get_engine)) -> SignalRefreshResponse:
    """Pull the current waste-ready households from the signal source."""
    try:
        return SignalRefreshResponse(**engine.refresh_signals())
    except Exception as exc:
        logging.exception(f"Error refreshing household signals: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to refresh household signals: {str(exc)}",
        ) from exc
