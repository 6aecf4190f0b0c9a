"""Signal repository protocol for storage-agnostic persistence.

Any backend (PostgreSQL, in-memory, a hosted row store) can implement this
protocol to be used by the lifecycle manager and the monitor.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Protocol, runtime_checkable

from signal_core.models import Signal, SignalStatus


@runtime_checkable
class SignalRepository(Protocol):
    """Protocol that signal storage backends must implement."""

    async def save_signal(self, signal: Signal) -> None:
        """Persist a new or updated signal."""
        ...

    async def update_signal_status(
        self,
        signal_id: str,
        status: SignalStatus,
        *,
        current_price: Decimal | None = None,
        closed_at: datetime | None = None,
    ) -> None:
        """Record a status transition for an existing signal."""
        ...

    async def list_active_signals(self) -> list[Signal]:
        """All signals whose status is still ACTIVE."""
        ...
