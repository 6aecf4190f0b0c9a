"""Candidate pipeline — indicators, structure, score and targets for one snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from signal_core.config.schema import AppConfig
from signal_core.models import (
    Direction,
    MarketSnapshot,
    Priority,
    ScoreBreakdown,
    Signal,
)
from signal_core.strategy.indicators import compute_indicators
from signal_core.strategy.scoring import Scorer
from signal_core.strategy.structure import (
    analyze_order_book,
    analyze_price_action,
    analyze_volatility,
)
from signal_core.strategy.targets import calculate_targets, risk_reward_ratio

HIGH_PRIORITY_SCORE = 90.0


@dataclass(frozen=True)
class Evaluation:
    """Pipeline output for one symbol; ``signal`` is None when no direction was called."""

    symbol: str
    breakdown: ScoreBreakdown
    signal: Signal | None


def evaluate_snapshot(
    snapshot: MarketSnapshot,
    config: AppConfig,
    scorer: Scorer,
    now: datetime,
) -> Evaluation:
    """Run the scoring pipeline on *snapshot*.

    Raises:
        InsufficientDataError: too few (or unordered) candles for the indicators.
        InvariantViolation: the target calculator produced unusable levels.
    """
    indicators = compute_indicators(snapshot.candles, config.indicators)
    liquidity = analyze_order_book(
        snapshot.order_book,
        levels=config.structure.depth_levels,
        max_age_s=config.structure.max_book_age_s,
        now=now,
    )
    volatility = analyze_volatility(snapshot.candles, config.structure.volatility_window)
    price_action = analyze_price_action(
        snapshot.candles,
        snapshot.trend_candles,
        config.structure.price_action_lookback,
    )

    breakdown = scorer.score(indicators, liquidity, volatility, price_action)
    if breakdown.direction is Direction.NONE:
        return Evaluation(symbol=snapshot.symbol, breakdown=breakdown, signal=None)

    price = snapshot.ticker.last_price
    levels = calculate_targets(price, volatility, breakdown.direction, config.targets)

    signal = Signal(
        symbol=snapshot.symbol,
        direction=breakdown.direction,
        entry_price=levels.entry,
        current_price=price,
        target_price=levels.target,
        stop_loss=levels.stop,
        timeframe=config.monitor.timeframe,
        created_at=now,
        expires_at=now + timedelta(seconds=config.monitor.signal_ttl_s),
        score=breakdown.total_score,
        probability=breakdown.probability,
        risk_reward_ratio=risk_reward_ratio(levels),
        priority=Priority.HIGH if breakdown.total_score >= HIGH_PRIORITY_SCORE else Priority.NORMAL,
        reasons=scorer.describe(indicators, liquidity, breakdown),
        breakdown=breakdown,
    )
    return Evaluation(symbol=snapshot.symbol, breakdown=breakdown, signal=signal)
