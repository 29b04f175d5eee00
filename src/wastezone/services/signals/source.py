"""Household-signal source backed by the Supabase ``households`` table."""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Protocol

from ...config import settings
from ...db.supabase import get_supabase_client

logger = logging.getLogger(__name__)

ACTIVE_SIGNAL_STATUSES = ("pending", "acknowledged")

HOUSEHOLD_COLUMNS = """
    id,
    nickname,
    ward_number,
    waste_ready,
    location,
    signals (
        id,
        waste_types,
        status,
        created_at
    )
"""


class SignalSource(Protocol):
    def fetch_ready(self) -> list[dict[str, Any]]: ...


def household_row_to_raw(row: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten a household row and its active signal into the adapter's raw shape."""
    signals = row.get("signals") or []
    active = next(
        (item for item in signals if isinstance(item, Mapping) and item.get("status") in ACTIVE_SIGNAL_STATUSES),
        None,
    )
    return {
        "id": row.get("id"),
        "nickname": row.get("nickname") or "Household",
        "ward_number": row.get("ward_number"),
        "location": row.get("location"),
        "waste_types": (active or {}).get("waste_types") or [],
        "created_at": (active or {}).get("created_at"),
        "status": (active or {}).get("status") or "pending",
    }


class SupabaseSignalSource:
    """Fetches every household currently flagged ``waste_ready``.

    Retries with exponential backoff; raises ``ConnectionError`` once the
    attempts are exhausted so the caller can keep its last known signals.
    """

    def __init__(
        self,
        client: Any | None = None,
        table: str | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.client = client if client is not None else get_supabase_client()
        if self.client is None:
            raise ValueError("Supabase is not configured (set WZ_SUPABASE_URL and WZ_SUPABASE_KEY).")
        self.table = table or settings.signals_table
        self.max_retries = max_retries if max_retries is not None else settings.signal_source_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.signal_source_backoff_seconds

    def fetch_ready(self) -> list[dict[str, Any]]:
        attempt = 0
        while True:
            try:
                response = (
                    self.client.table(self.table)
                    .select(HOUSEHOLD_COLUMNS)
                    .eq("waste_ready", True)
                    .execute()
                )
                rows = response.data or []
                logger.info("Fetched %d waste-ready households from %s", len(rows), self.table)
                return [household_row_to_raw(row) for row in rows]
            except Exception as exc:
                attempt += 1
                if attempt > self.max_retries:
                    raise ConnectionError(f"Failed to fetch household signals: {exc}") from exc
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                logger.debug(
                    f"Household query failed, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {exc}"
                )
                time.sleep(wait_time)
