"""Signal lifecycle manager — per-signal polling tasks and the resolution state machine.

Each admitted signal gets its own asyncio task that ticks every
``poll_interval_s``. A tick checks expiry, then launches an independent
price fetch, so a slow fetch never holds up the expiry check of this or any
other signal. Fetches are numbered when they start; a completion older than
the newest one already applied is dropped (last writer wins by initiation).

The manager is the only component that mutates a tracked signal. Readers get
deep copies.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import structlog

from signal_core.errors import InvariantViolation, ProviderUnavailable, SignalCoreError
from signal_core.exchange.base import MarketDataProvider
from signal_core.models import Direction, Signal, SignalStatus, TargetLevels
from signal_core.persistence.base import SignalRepository
from signal_core.strategy.targets import check_levels

log = structlog.get_logger("lifecycle")

SignalCallback = Callable[[Signal], Any]
ErrorCallback = Callable[[Exception], Any]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def evaluate_price(signal: Signal, price: Decimal) -> SignalStatus:
    """State a price tick would move an ACTIVE signal to (ACTIVE if nothing crossed)."""
    if signal.direction is Direction.LONG:
        if price >= signal.target_price:
            return SignalStatus.TARGET_HIT
        if price <= signal.stop_loss:
            return SignalStatus.STOP_HIT
    elif signal.direction is Direction.SHORT:
        if price <= signal.target_price:
            return SignalStatus.TARGET_HIT
        if price >= signal.stop_loss:
            return SignalStatus.STOP_HIT
    return SignalStatus.ACTIVE


async def invoke_callback(callback: Callable[[Any], Any] | None, arg: Any, event: str) -> None:
    """Run a sync or async hosting-application callback; its failures are logged, never raised."""
    if callback is None:
        return
    try:
        result = callback(arg)
        if inspect.isawaitable(result):
            await result
    except Exception:
        log.exception("callback_failed", callback_event=event)


@dataclass(eq=False)
class _Tracked:
    """Table entry owning one signal's poll task and its in-flight fetches."""

    signal: Signal
    poll_task: asyncio.Task | None = None
    fetches: set[asyncio.Task] = field(default_factory=set)
    issued_seq: int = 0
    applied_seq: int = 0
    finalizer: asyncio.Task | None = None
    finalized: asyncio.Event = field(default_factory=asyncio.Event)

    def cancel_tasks(self) -> list[asyncio.Task]:
        """Cancel the poll task and fetches, sparing the task running finalization."""
        current = asyncio.current_task()
        cancelled = []
        for task in [self.poll_task, *self.fetches]:
            if task is None or task is current or task is self.finalizer or task.done():
                continue
            task.cancel()
            cancelled.append(task)
        return cancelled


class SignalLifecycleManager:
    """Owns the active-signal table and drives every signal to a terminal status."""

    def __init__(
        self,
        provider: MarketDataProvider,
        repository: SignalRepository,
        *,
        poll_interval_s: float = 0.5,
        max_inflight_fetches: int = 3,
        on_signal_complete: SignalCallback | None = None,
        on_signal_update: SignalCallback | None = None,
        on_error: ErrorCallback | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._provider = provider
        self._repository = repository
        self._poll_interval_s = poll_interval_s
        self._max_inflight = max_inflight_fetches
        self._on_signal_complete = on_signal_complete
        self._on_signal_update = on_signal_update
        self._on_error = on_error
        self._clock = clock

        self._table: dict[str, _Tracked] = {}
        self._running = False

    # ── Read side (snapshot copies) ───────────────────────────

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def active_count(self) -> int:
        """Signals still ACTIVE; one being finalized no longer holds a slot."""
        return sum(1 for t in list(self._table.values()) if t.signal.is_active)

    def active_signals(self) -> list[Signal]:
        return [
            t.signal.model_copy(deep=True)
            for t in list(self._table.values())
            if t.signal.is_active
        ]

    def active_symbols(self) -> set[str]:
        return {t.signal.symbol for t in list(self._table.values()) if t.signal.is_active}

    def get(self, signal_id: str) -> Signal | None:
        tracked = self._table.get(signal_id)
        return tracked.signal.model_copy(deep=True) if tracked is not None else None

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> None:
        """Start polling every admitted signal."""
        if self._running:
            return
        self._running = True
        for tracked in list(self._table.values()):
            self._spawn_poll(tracked)
        log.info("lifecycle_started", tracked=len(self._table))

    async def stop(self) -> None:
        """Cancel every poll task and in-flight fetch and wait for them to unwind.

        Completions already being finalized are allowed to finish so their
        callbacks and status writes are not lost. Signals still ACTIVE stay
        ACTIVE in the repository and can be restored later.
        """
        self._running = False
        current = asyncio.current_task()
        pending: list[asyncio.Task] = []
        in_flight = []
        for tracked in list(self._table.values()):
            pending.extend(tracked.cancel_tasks())
            if tracked.finalizer is not None and tracked.finalizer is not current:
                in_flight.append(tracked.finalized.wait())
        await asyncio.gather(*pending, return_exceptions=True)
        await asyncio.gather(*in_flight)
        self._table.clear()
        log.info("lifecycle_stopped", cancelled_tasks=len(pending))

    async def __aenter__(self) -> SignalLifecycleManager:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ── Admission / cancellation ──────────────────────────────

    async def admit(self, signal: Signal, *, persist: bool = True) -> bool:
        """Take ownership of *signal* and start tracking it.

        Returns False if a signal with the same id is already tracked.

        Raises:
            InvariantViolation: the signal is not ACTIVE, or its stop, entry
                and target are not ordered for its direction.
        """
        if signal.status is not SignalStatus.ACTIVE:
            raise InvariantViolation(
                f"cannot admit signal in status {signal.status.value}",
                symbol=signal.symbol,
                signal_id=signal.id,
            )
        levels = TargetLevels(
            entry=signal.entry_price, target=signal.target_price, stop=signal.stop_loss
        )
        try:
            check_levels(signal.direction, levels)
        except InvariantViolation as exc:
            exc.symbol, exc.signal_id = signal.symbol, signal.id
            raise
        if signal.id in self._table:
            return False
        if persist:
            await self._repository.save_signal(signal)
            if signal.id in self._table:
                return False

        tracked = _Tracked(signal=signal.model_copy(deep=True))
        self._table[signal.id] = tracked
        if self._running:
            self._spawn_poll(tracked)
        log.info(
            "signal_admitted",
            signal_id=signal.id,
            symbol=signal.symbol,
            direction=signal.direction.value,
            entry=str(signal.entry_price),
            target=str(signal.target_price),
            stop=str(signal.stop_loss),
            expires_at=signal.expires_at.isoformat(),
        )
        return True

    async def cancel(self, signal_id: str) -> bool:
        """Move an ACTIVE signal to CANCELLED. Unknown or resolved ids return False."""
        tracked = self._table.get(signal_id)
        if tracked is None or not tracked.signal.is_active:
            return False
        await self._finalize(tracked, SignalStatus.CANCELLED)
        return True

    # ── Polling ───────────────────────────────────────────────

    def _spawn_poll(self, tracked: _Tracked) -> None:
        if tracked.poll_task is None or tracked.poll_task.done():
            tracked.poll_task = asyncio.create_task(
                self._poll(tracked), name=f"poll-{tracked.signal.id}"
            )

    async def _poll(self, tracked: _Tracked) -> None:
        signal = tracked.signal
        try:
            while signal.is_active:
                if self._clock() >= signal.expires_at:
                    await self._finalize(tracked, SignalStatus.EXPIRED)
                    break
                if len(tracked.fetches) < self._max_inflight:
                    tracked.issued_seq += 1
                    task = asyncio.create_task(
                        self._fetch(tracked, tracked.issued_seq),
                        name=f"fetch-{signal.id}-{tracked.issued_seq}",
                    )
                    tracked.fetches.add(task)
                    task.add_done_callback(tracked.fetches.discard)
                await asyncio.sleep(self._poll_interval_s)
        finally:
            # Fetches must not outlive their poll task
            for task in list(tracked.fetches):
                if task is not tracked.finalizer:
                    task.cancel()

    async def _fetch(self, tracked: _Tracked, seq: int) -> None:
        signal = tracked.signal
        try:
            price = await self._provider.get_current_price(signal.symbol)
        except ProviderUnavailable as exc:
            exc.signal_id = exc.signal_id or signal.id
            await self._report(exc)
            return
        except Exception as exc:
            log.exception("price_fetch_failed", signal_id=signal.id, symbol=signal.symbol)
            await self._report(exc)
            return

        if not signal.is_active:
            return
        if seq <= tracked.applied_seq:
            log.debug("stale_price_discarded", signal_id=signal.id, seq=seq, applied=tracked.applied_seq)
            return
        tracked.applied_seq = seq
        await self._apply_price(tracked, price)

    async def _apply_price(self, tracked: _Tracked, price: Decimal) -> None:
        signal = tracked.signal
        changed = price != signal.current_price
        signal.current_price = price

        if self._clock() >= signal.expires_at:
            await self._finalize(tracked, SignalStatus.EXPIRED)
            return
        status = evaluate_price(signal, price)
        if status is not SignalStatus.ACTIVE:
            await self._finalize(tracked, status)
        elif changed:
            await invoke_callback(self._on_signal_update, signal.model_copy(deep=True), "signal_update")

    # ── Resolution ────────────────────────────────────────────

    async def _finalize(self, tracked: _Tracked, status: SignalStatus) -> None:
        """Freeze the signal in *status*, notify once, persist, then drop it from the table."""
        signal = tracked.signal
        if not signal.is_active:
            return
        signal.status = status
        signal.closed_at = self._clock()
        tracked.finalizer = asyncio.current_task()
        tracked.cancel_tasks()

        log.info(
            "signal_completed",
            signal_id=signal.id,
            symbol=signal.symbol,
            status=status.value,
            price=str(signal.current_price),
        )
        await invoke_callback(self._on_signal_complete, signal.model_copy(deep=True), "signal_complete")

        try:
            await self._repository.update_signal_status(
                signal.id,
                status,
                current_price=signal.current_price,
                closed_at=signal.closed_at,
            )
        except Exception as exc:
            log.exception("status_update_failed", signal_id=signal.id)
            await self._report(exc)
        finally:
            self._remove(signal.id)
            tracked.finalized.set()

    def _remove(self, signal_id: str) -> None:
        """Drop a signal from the table; removing an absent id is a no-op."""
        tracked = self._table.pop(signal_id, None)
        if tracked is None:
            return
        log.debug("signal_removed", signal_id=signal_id)

    async def _report(self, exc: Exception) -> None:
        if isinstance(exc, SignalCoreError):
            log.warning(
                "signal_poll_error",
                error=str(exc),
                error_type=type(exc).__name__,
                symbol=exc.symbol,
                signal_id=exc.signal_id,
            )
        await invoke_callback(self._on_error, exc, "error")
