"""Market structure — order book liquidity, realized volatility, short-horizon price action.

Depth queries are rate-limited by venues independently of price feeds, so
every function here degrades to a neutral/unknown value instead of raising.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime, timezone
from statistics import fmean

from signal_core.models import (
    Candle,
    LiquidityMetrics,
    OrderBookSnapshot,
    PriceAction,
    Volatility,
)


def analyze_order_book(
    snapshot: OrderBookSnapshot | None,
    *,
    levels: int = 20,
    max_age_s: float = 5.0,
    now: datetime | None = None,
) -> LiquidityMetrics:
    """Depth, imbalance and relative spread over the top *levels* of the book.

    Returns ``LiquidityMetrics.unknown()`` for a missing, empty, crossed or
    stale snapshot.
    """
    if snapshot is None or not snapshot.bids or not snapshot.asks:
        return LiquidityMetrics.unknown()

    now = now or datetime.now(timezone.utc)
    if (now - snapshot.ts).total_seconds() > max_age_s:
        return LiquidityMetrics.unknown()

    best_bid = float(snapshot.best_bid)
    best_ask = float(snapshot.best_ask)
    if best_bid <= 0 or best_ask < best_bid:
        return LiquidityMetrics.unknown()

    bid_depth = sum(float(p) * float(q) for p, q in snapshot.bids[:levels])
    ask_depth = sum(float(p) * float(q) for p, q in snapshot.asks[:levels])
    total = bid_depth + ask_depth
    if total <= 0:
        return LiquidityMetrics.unknown()

    mid = (best_bid + best_ask) / 2
    return LiquidityMetrics(
        bid_depth=bid_depth,
        ask_depth=ask_depth,
        imbalance=(bid_depth - ask_depth) / total,
        spread=(best_ask - best_bid) / mid,
    )


def returns(closes: Sequence[float]) -> list[float]:
    """Simple close-to-close returns; zero closes contribute a 0.0 return."""
    return [
        (closes[i] / closes[i - 1] - 1.0) if closes[i - 1] else 0.0
        for i in range(1, len(closes))
    ]


def analyze_volatility(candles: Sequence[Candle], window: int = 14) -> Volatility:
    """Population standard deviation of the last *window* returns."""
    if len(candles) < window + 1:
        return Volatility.unknown()
    closes = [float(c.close) for c in candles[-(window + 1):]]
    rets = returns(closes)
    mean = fmean(rets)
    variance = sum((r - mean) ** 2 for r in rets) / len(rets)
    return Volatility(value=math.sqrt(variance), window=window)


def _trend(candles: Sequence[Candle], lookback: int) -> float:
    if len(candles) < 2:
        return 0.0
    window = candles[-(lookback + 1):]
    first = float(window[0].close)
    if first == 0:
        return 0.0
    return float(window[-1].close) / first - 1.0


def analyze_price_action(
    short_candles: Sequence[Candle],
    long_candles: Sequence[Candle],
    lookback: int = 5,
) -> PriceAction:
    """Short and long horizon drift plus mean candle body ratio of the short series.

    A body ratio near 1 means decisive candles; near 0 means indecision (wicks).
    """
    recent = short_candles[-lookback:]
    ratios = []
    for c in recent:
        span = float(c.high - c.low)
        if span > 0:
            ratios.append(abs(float(c.close - c.open)) / span)
    return PriceAction(
        trend_short=_trend(short_candles, lookback),
        trend_long=_trend(long_candles, lookback),
        body_ratio=fmean(ratios) if ratios else 0.0,
    )
