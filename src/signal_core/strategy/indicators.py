"""Technical indicators — pure functions on price series."""

from __future__ import annotations

import math
from collections.abc import Sequence
from statistics import fmean

from signal_core.config.schema import IndicatorConfig
from signal_core.errors import InsufficientDataError
from signal_core.models import (
    BollingerResult,
    Candle,
    IndicatorSet,
    MACDResult,
    VolumeProfile,
)


def rsi(closes: Sequence[float], period: int = 14) -> float | None:
    """Relative Strength Index (Wilder's smoothing).

    Returns a float in [0, 100] or None if there are fewer than
    ``period + 1`` data points.
    """
    if len(closes) < period + 1:
        return None

    deltas = [closes[i] - closes[i - 1] for i in range(1, len(closes))]

    # Seed with simple average of first *period* changes
    avg_gain = fmean(d if d > 0 else 0.0 for d in deltas[:period])
    avg_loss = fmean(-d if d < 0 else 0.0 for d in deltas[:period])

    # Wilder smoothing over remaining deltas
    for d in deltas[period:]:
        avg_gain = (avg_gain * (period - 1) + (d if d > 0 else 0.0)) / period
        avg_loss = (avg_loss * (period - 1) + (-d if d < 0 else 0.0)) / period

    if avg_loss == 0:
        return 100.0 if avg_gain > 0 else 50.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def ema(values: Sequence[float], period: int) -> list[float]:
    """Exponential moving average series seeded with the SMA of the first *period* values.

    The result has ``len(values) - period + 1`` points, aligned with the tail
    of *values*. Returns an empty list when there is not enough data.
    """
    if period <= 0 or len(values) < period:
        return []
    k = 2.0 / (period + 1)
    current = fmean(values[:period])
    out = [current]
    for v in values[period:]:
        current = (v - current) * k + current
        out.append(current)
    return out


def macd(
    closes: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MACDResult | None:
    """MACD line, signal line and histogram for the last two bars.

    Needs ``slow + signal`` closes so that the previous histogram value
    (used for crossover detection) is also defined.
    """
    if len(closes) < slow + signal:
        return None

    fast_ema = ema(closes, fast)
    slow_ema = ema(closes, slow)
    # Align the fast series with the (shorter) slow series
    offset = len(fast_ema) - len(slow_ema)
    line = [f - s for f, s in zip(fast_ema[offset:], slow_ema)]
    signal_line = ema(line, signal)

    hist_now = line[-1] - signal_line[-1]
    hist_prev = line[-2] - signal_line[-2]
    return MACDResult(
        line=line[-1],
        signal=signal_line[-1],
        histogram=hist_now,
        prev_histogram=hist_prev,
    )


def bollinger_bands(
    closes: Sequence[float],
    period: int = 20,
    num_std: float = 2.0,
) -> BollingerResult | None:
    """Bollinger Bands (SMA +/- num_std * population stdev).

    Returns None if fewer than *period* data points are available.
    """
    if len(closes) < period:
        return None

    window = closes[-period:]
    middle = fmean(window)
    variance = sum((p - middle) ** 2 for p in window) / period
    offset = math.sqrt(variance) * num_std
    return BollingerResult(upper=middle + offset, middle=middle, lower=middle - offset)


def momentum(closes: Sequence[float], period: int = 10) -> float | None:
    """Rate of change over *period* bars, as a fraction."""
    if len(closes) < period + 1:
        return None
    base = closes[-1 - period]
    if base == 0:
        return 0.0
    return closes[-1] / base - 1.0


def volume_profile(volumes: Sequence[float], period: int = 20) -> VolumeProfile | None:
    """Last bar's volume relative to the mean of the *period* bars before it."""
    if len(volumes) < period + 1:
        return None
    average = fmean(volumes[-1 - period:-1])
    last = volumes[-1]
    relative = last / average if average > 0 else 1.0
    return VolumeProfile(last_volume=last, average_volume=average, relative_volume=relative)


def required_candles(config: IndicatorConfig) -> int:
    """Minimum series length for :func:`compute_indicators`."""
    return config.min_candles


def compute_indicators(candles: Sequence[Candle], config: IndicatorConfig) -> IndicatorSet:
    """Compute the full indicator set for the latest candle.

    Raises:
        InsufficientDataError: the series is too short or not strictly
            ascending by ``open_time``.
    """
    needed = required_candles(config)
    if len(candles) < needed:
        raise InsufficientDataError(f"need {needed} candles, got {len(candles)}")
    for prev, cur in zip(candles, candles[1:]):
        if cur.open_time <= prev.open_time:
            raise InsufficientDataError(
                f"candles out of order at {cur.open_time.isoformat()}"
            )

    closes = [float(c.close) for c in candles]
    volumes = [float(c.volume) for c in candles]

    rsi_value = rsi(closes, config.rsi_period)
    macd_value = macd(closes, config.macd_fast, config.macd_slow, config.macd_signal)
    bands = bollinger_bands(closes, config.bb_period, config.bb_k)
    mom = momentum(closes, config.momentum_period)
    profile = volume_profile(volumes, config.volume_period)
    if any(v is None for v in (rsi_value, macd_value, bands, mom, profile)):
        raise InsufficientDataError(f"indicator undefined on {len(candles)} candles")

    return IndicatorSet(
        close=closes[-1],
        rsi=rsi_value,
        macd=macd_value,
        bollinger=bands,
        momentum=mom,
        volume_profile=profile,
    )
