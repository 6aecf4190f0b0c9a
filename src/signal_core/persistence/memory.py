"""In-memory signal repository, used when no database is configured."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from signal_core.models import Signal, SignalStatus


class InMemorySignalRepository:
    """Dict-backed repository; stores copies so callers can't mutate stored rows."""

    def __init__(self) -> None:
        self._rows: dict[str, Signal] = {}

    async def save_signal(self, signal: Signal) -> None:
        self._rows[signal.id] = signal.model_copy(deep=True)

    async def update_signal_status(
        self,
        signal_id: str,
        status: SignalStatus,
        *,
        current_price: Decimal | None = None,
        closed_at: datetime | None = None,
    ) -> None:
        row = self._rows.get(signal_id)
        if row is None:
            raise KeyError(signal_id)
        row.status = status
        if current_price is not None:
            row.current_price = current_price
        if closed_at is not None:
            row.closed_at = closed_at

    async def list_active_signals(self) -> list[Signal]:
        return [
            s.model_copy(deep=True)
            for s in self._rows.values()
            if s.status is SignalStatus.ACTIVE
        ]

    async def get_signal(self, signal_id: str) -> Signal | None:
        row = self._rows.get(signal_id)
        return row.model_copy(deep=True) if row is not None else None
