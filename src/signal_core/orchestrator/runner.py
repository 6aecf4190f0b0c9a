"""Orchestrator runner — outer scan cycle that scores symbols and fills signal slots."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from signal_core.config.loader import load_config
from signal_core.config.schema import AppConfig
from signal_core.db.engine import get_session_factory, init_engine, init_schema
from signal_core.errors import InvariantViolation, SignalCoreError
from signal_core.exchange.base import MarketDataProvider
from signal_core.exchange.binance import BinanceClient
from signal_core.lifecycle import SignalLifecycleManager, invoke_callback, utc_now
from signal_core.lifecycle.manager import ErrorCallback, SignalCallback
from signal_core.logging.setup import bind_cycle_context, clear_cycle_context, setup_logging
from signal_core.models import Signal
from signal_core.orchestrator.snapshot import build_snapshot
from signal_core.persistence.base import SignalRepository
from signal_core.persistence.memory import InMemorySignalRepository
from signal_core.persistence.sql import SqlSignalRepository
from signal_core.strategy.pipeline import Evaluation, evaluate_snapshot
from signal_core.strategy.scoring import Scorer

log = structlog.get_logger("orchestrator")

REJECT_NO_DIRECTION = "no_direction"
REJECT_LOW_SCORE = "below_threshold"
REJECT_RISK_REWARD = "risk_reward_out_of_band"
REJECT_SYMBOL_ACTIVE = "symbol_active"
REJECT_NO_SLOT = "no_free_slot"


@dataclass
class CycleReport:
    """Outcome of one scan cycle."""

    cycle: int
    started_at: datetime
    evaluated: list[str] = field(default_factory=list)
    rejected: dict[str, str] = field(default_factory=dict)
    admitted: list[Signal] = field(default_factory=list)
    errors: dict[str, Exception] = field(default_factory=dict)
    finished_at: datetime | None = None


async def evaluate_symbol(
    provider: MarketDataProvider,
    symbol: str,
    config: AppConfig,
    scorer: Scorer,
    now: datetime,
) -> Evaluation:
    """Fetch market data for *symbol* and run it through the scoring pipeline."""
    snapshot = await build_snapshot(provider, symbol, config.exchange, now=now)
    return evaluate_snapshot(snapshot, config, scorer, now)


def rank_candidates(candidates: list[Signal]) -> list[Signal]:
    """Best first: probability, then score, then symbol for a stable order."""
    return sorted(candidates, key=lambda s: (-s.probability, -s.score, s.symbol))


class SignalMonitor:
    """Runs scan cycles and hands accepted candidates to the lifecycle manager.

    Completed signals wake the outer loop early so their slot is refilled
    without waiting a full ``cycle_interval_s``; the first admission after a
    completion is reported through ``on_signal_replaced``.
    """

    def __init__(
        self,
        config: AppConfig,
        provider: MarketDataProvider,
        repository: SignalRepository,
        *,
        on_signal_complete: SignalCallback | None = None,
        on_signal_replaced: SignalCallback | None = None,
        on_error: ErrorCallback | None = None,
        on_signal_update: SignalCallback | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config
        self._provider = provider
        self._repository = repository
        self._on_signal_complete = on_signal_complete
        self._on_signal_replaced = on_signal_replaced
        self._on_error = on_error
        self._clock = clock

        self.scorer = Scorer(config.scoring, config.indicators)
        self.manager = SignalLifecycleManager(
            provider,
            repository,
            poll_interval_s=config.monitor.poll_interval_s,
            max_inflight_fetches=config.monitor.max_inflight_fetches,
            on_signal_complete=self._handle_complete,
            on_signal_update=on_signal_update,
            on_error=on_error,
            clock=clock,
        )

        self._pending_replacements: deque[Signal] = deque()
        self._refill = asyncio.Event()
        self._cycle_lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None
        self._cycle = 0
        self._running = False
        self.last_cycle_at: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> None:
        """Restore ACTIVE signals, start tracking, then start the scan loop."""
        if self._running:
            return
        restored = 0
        for signal in await self._repository.list_active_signals():
            try:
                admitted = await self.manager.admit(signal, persist=False)
            except InvariantViolation as exc:
                log.warning(
                    "restore_rejected", signal_id=signal.id, symbol=signal.symbol, error=str(exc)
                )
                await invoke_callback(self._on_error, exc, "error")
                continue
            if admitted:
                restored += 1
        log.info("signals_restored", count=restored)

        await self.manager.start()
        self._running = True
        self._loop_task = asyncio.create_task(self._loop(), name="monitor-loop")
        log.info(
            "monitor_started",
            symbols=self.config.symbols,
            cycle_interval_s=self.config.monitor.cycle_interval_s,
            max_active=self.config.monitor.max_active_signals,
        )

    async def stop(self) -> None:
        """Cancel the scan loop, then every per-signal task."""
        self._running = False
        task, self._loop_task = self._loop_task, None
        try:
            if task is not None and task is not asyncio.current_task():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
        finally:
            await self.manager.stop()
        log.info("monitor_stopped", cycles=self._cycle)

    async def __aenter__(self) -> SignalMonitor:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def _loop(self) -> None:
        interval = self.config.monitor.cycle_interval_s
        while self._running:
            self._refill.clear()
            try:
                await self.run_cycle()
            except Exception as exc:
                log.exception("cycle_error")
                await invoke_callback(self._on_error, exc, "error")
            try:
                await asyncio.wait_for(self._refill.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

    # ── Cycle ─────────────────────────────────────────────────

    async def run_cycle(self) -> CycleReport:
        """Evaluate every configured symbol once and admit the best candidates."""
        async with self._cycle_lock:
            self._cycle += 1
            bind_cycle_context(self._cycle)
            try:
                return await self._run_cycle()
            finally:
                clear_cycle_context()

    async def _run_cycle(self) -> CycleReport:
        now = self._clock()
        report = CycleReport(cycle=self._cycle, started_at=now)
        semaphore = asyncio.Semaphore(self.config.monitor.max_concurrency)

        async def evaluate(symbol: str) -> Evaluation | None:
            async with semaphore:
                return await self._evaluate_isolated(symbol, now, report)

        results = await asyncio.gather(*(evaluate(s) for s in self.config.symbols))
        candidates = self._filter(
            [r for r in results if r is not None],
            report,
        )
        await self._admit_ranked(candidates, report)

        report.finished_at = self._clock()
        self.last_cycle_at = report.finished_at
        log.info(
            "cycle_completed",
            evaluated=len(report.evaluated),
            admitted=len(report.admitted),
            rejected=len(report.rejected),
            errors=len(report.errors),
            active=self.manager.active_count,
        )
        return report

    async def _evaluate_isolated(
        self, symbol: str, now: datetime, report: CycleReport
    ) -> Evaluation | None:
        try:
            evaluation = await evaluate_symbol(self._provider, symbol, self.config, self.scorer, now)
        except SignalCoreError as exc:
            if exc.symbol is None:
                exc.symbol = symbol
            log.warning(
                "symbol_skipped",
                symbol=symbol,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            report.errors[symbol] = exc
            await invoke_callback(self._on_error, exc, "error")
            return None
        except Exception as exc:
            log.exception("symbol_failed", symbol=symbol)
            report.errors[symbol] = exc
            await invoke_callback(self._on_error, exc, "error")
            return None
        report.evaluated.append(symbol)
        return evaluation

    def _filter(self, evaluations: list[Evaluation], report: CycleReport) -> list[Signal]:
        threshold = self.config.monitor.score_threshold
        band = self.config.monitor.risk_reward
        accepted: list[Signal] = []
        for evaluation in evaluations:
            signal = evaluation.signal
            if signal is None:
                reason = REJECT_NO_DIRECTION
            elif signal.score < threshold:
                reason = REJECT_LOW_SCORE
            elif not band.contains(signal.risk_reward_ratio):
                reason = REJECT_RISK_REWARD
            else:
                accepted.append(signal)
                continue
            report.rejected[evaluation.symbol] = reason
            log.debug(
                "candidate_rejected",
                symbol=evaluation.symbol,
                reason=reason,
                score=evaluation.breakdown.total_score,
                direction=evaluation.breakdown.direction.value,
            )
        return accepted

    async def _admit_ranked(self, candidates: list[Signal], report: CycleReport) -> None:
        limit = self.config.monitor.max_active_signals
        for signal in rank_candidates(candidates):
            if signal.symbol in self.manager.active_symbols():
                report.rejected[signal.symbol] = REJECT_SYMBOL_ACTIVE
                continue
            if self.manager.active_count >= limit:
                report.rejected[signal.symbol] = REJECT_NO_SLOT
                continue
            try:
                admitted = await self.manager.admit(signal)
            except Exception as exc:
                if isinstance(exc, SignalCoreError) and exc.symbol is None:
                    exc.symbol = signal.symbol
                log.exception("admission_failed", symbol=signal.symbol, signal_id=signal.id)
                report.errors[signal.symbol] = exc
                await invoke_callback(self._on_error, exc, "error")
                continue
            if not admitted:
                continue
            report.admitted.append(signal)
            if self._pending_replacements:
                replaced = self._pending_replacements.popleft()
                log.info(
                    "signal_replaced",
                    signal_id=signal.id,
                    symbol=signal.symbol,
                    replaced_id=replaced.id,
                    replaced_symbol=replaced.symbol,
                )
                await invoke_callback(self._on_signal_replaced, signal, "signal_replaced")

    async def _handle_complete(self, signal: Signal) -> None:
        self._pending_replacements.append(signal)
        self._refill.set()
        await invoke_callback(self._on_signal_complete, signal, "signal_complete")


async def run_monitor(config: AppConfig, *, once: bool = False) -> None:
    """Build the Binance client and repository from *config* and run until cancelled."""
    repository = _build_repository(config)
    async with BinanceClient(
        base_url=config.exchange.base_url,
        timeout_s=config.exchange.timeout_s,
        depth_limit=config.exchange.depth_limit,
    ) as client:
        monitor = SignalMonitor(config, client, repository)
        if once:
            report = await monitor.run_cycle()
            log.info(
                "single_cycle_done",
                admitted=[s.symbol for s in report.admitted],
                rejected=report.rejected,
                errors=sorted(report.errors),
            )
            return
        async with monitor:
            await asyncio.Event().wait()


def _build_repository(config: AppConfig) -> SignalRepository:
    if config.database.url:
        init_schema(init_engine(config.database.url))
        return SqlSignalRepository(get_session_factory())
    log.warning("database_url_unset", detail="signals are kept in memory only")
    return InMemorySignalRepository()


def main(config_path: str | None = None, *, once: bool = False) -> None:
    """Entry point — load config, set up logging, run the async loop."""
    config = load_config(config_path)
    setup_logging(level=config.logging.level, log_format=config.logging.format)
    asyncio.run(run_monitor(config, once=once))
