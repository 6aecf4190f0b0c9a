"""SQLAlchemy signal repository — blocking session work runs in a worker thread."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session, sessionmaker

from signal_core.db.tables.signals import SignalRow
from signal_core.models import (
    Direction,
    Priority,
    ScoreBreakdown,
    Signal,
    SignalStatus,
)


def _utc(dt: datetime) -> datetime:
    """SQLite drops tzinfo; stored timestamps are always UTC."""
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def signal_to_row(signal: Signal) -> SignalRow:
    return SignalRow(
        id=signal.id,
        symbol=signal.symbol,
        direction=signal.direction.value,
        entry_price=signal.entry_price,
        current_price=signal.current_price,
        target_price=signal.target_price,
        stop_loss=signal.stop_loss,
        timeframe=signal.timeframe,
        created_at=signal.created_at,
        expires_at=signal.expires_at,
        closed_at=signal.closed_at,
        score=signal.score,
        probability=signal.probability,
        risk_reward_ratio=signal.risk_reward_ratio,
        status=signal.status.value,
        priority=signal.priority.value,
        reasons=list(signal.reasons),
        breakdown=signal.breakdown.model_dump(mode="json") if signal.breakdown else None,
    )


def row_to_signal(row: SignalRow) -> Signal:
    return Signal(
        id=row.id,
        symbol=row.symbol,
        direction=Direction(row.direction),
        entry_price=Decimal(str(row.entry_price)),
        current_price=Decimal(str(row.current_price)),
        target_price=Decimal(str(row.target_price)),
        stop_loss=Decimal(str(row.stop_loss)),
        timeframe=row.timeframe,
        created_at=_utc(row.created_at),
        expires_at=_utc(row.expires_at),
        closed_at=_utc(row.closed_at) if row.closed_at else None,
        score=float(row.score),
        probability=float(row.probability),
        risk_reward_ratio=float(row.risk_reward_ratio),
        status=SignalStatus(row.status),
        priority=Priority(row.priority),
        reasons=list(row.reasons or []),
        breakdown=ScoreBreakdown.model_validate(row.breakdown) if row.breakdown else None,
    )


class SqlSignalRepository:
    """Signal repository on top of a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    # ── Blocking implementations ──────────────────────────────

    def _save(self, signal: Signal) -> None:
        with self._session_factory() as session:
            session.merge(signal_to_row(signal))
            session.commit()

    def _update_status(
        self,
        signal_id: str,
        status: SignalStatus,
        current_price: Decimal | None,
        closed_at: datetime | None,
    ) -> None:
        with self._session_factory() as session:
            row = session.get(SignalRow, signal_id)
            if row is None:
                raise KeyError(signal_id)
            row.status = status.value
            if current_price is not None:
                row.current_price = current_price
            if closed_at is not None:
                row.closed_at = closed_at
            session.commit()

    def _list_active(self) -> list[Signal]:
        with self._session_factory() as session:
            rows = (
                session.query(SignalRow)
                .filter(SignalRow.status == SignalStatus.ACTIVE.value)
                .order_by(SignalRow.created_at)
                .all()
            )
            return [row_to_signal(r) for r in rows]

    # ── Async protocol ────────────────────────────────────────

    async def save_signal(self, signal: Signal) -> None:
        await asyncio.to_thread(self._save, signal)

    async def update_signal_status(
        self,
        signal_id: str,
        status: SignalStatus,
        *,
        current_price: Decimal | None = None,
        closed_at: datetime | None = None,
    ) -> None:
        await asyncio.to_thread(self._update_status, signal_id, status, current_price, closed_at)

    async def list_active_signals(self) -> list[Signal]:
        return await asyncio.to_thread(self._list_active)
