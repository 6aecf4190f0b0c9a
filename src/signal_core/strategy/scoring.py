"""Scorer — weighted multi-factor score and directional call for one candidate."""

from __future__ import annotations

import math

from signal_core.config.schema import IndicatorConfig, ScoringConfig
from signal_core.errors import ConfigurationError
from signal_core.models import (
    Direction,
    IndicatorSet,
    LiquidityMetrics,
    PriceAction,
    ScoreBreakdown,
    Volatility,
)

NEUTRAL = 50.0

# Blend of the technical sub-components (sums to 1.0)
RSI_WEIGHT = 0.25
MACD_WEIGHT = 0.25
BOLLINGER_WEIGHT = 0.15
MOMENTUM_WEIGHT = 0.20
VOLUME_WEIGHT = 0.15

# Saturation scales for tanh squashing, as fractions of price
MACD_SCALE = 0.0005
MOMENTUM_SCALE = 0.005
SHORT_TREND_SCALE = 0.002
LONG_TREND_SCALE = 0.005
CROSSOVER_BONUS = 10.0


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _squash(value: float, scale: float) -> float:
    """Map a signed value onto [0, 100] around the neutral 50."""
    return NEUTRAL + NEUTRAL * math.tanh(value / scale)


def _sign(direction: Direction) -> int:
    if direction is Direction.LONG:
        return 1
    if direction is Direction.SHORT:
        return -1
    return 0


class Scorer:
    """Combine technical, liquidity, volatility and price action sub-scores.

    Weights come from configuration and must sum to 1.0. The same inputs
    always yield the same :class:`ScoreBreakdown`.
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        indicator_config: IndicatorConfig | None = None,
    ) -> None:
        self.config = config or ScoringConfig()
        self.indicator_config = indicator_config or IndicatorConfig()
        w = self.config.weights
        total = w.technical + w.liquidity + w.volatility + w.price_action
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ConfigurationError(f"scoring weights must sum to 1.0, got {total:.6f}")

    # ── Direction ─────────────────────────────────────────────

    def rsi_bias(self, rsi_value: float) -> int:
        """+1 bullish, -1 bearish, 0 neutral; stretched readings count as exhaustion."""
        cfg = self.indicator_config
        if rsi_value >= cfg.overbought:
            return -1
        if rsi_value <= cfg.oversold:
            return 1
        if rsi_value > 50:
            return 1
        if rsi_value < 50:
            return -1
        return 0

    def direction(self, indicators: IndicatorSet) -> Direction:
        """MACD histogram sign combined with the RSI regime.

        Both must agree; a neutral or conflicting vote gives NONE.
        """
        hist = indicators.macd.histogram
        macd_bias = 1 if hist > 0 else -1 if hist < 0 else 0
        rsi_bias = self.rsi_bias(indicators.rsi)
        if macd_bias == 0 or rsi_bias == 0 or macd_bias != rsi_bias:
            return Direction.NONE
        return Direction.LONG if macd_bias > 0 else Direction.SHORT

    # ── Sub-scores ────────────────────────────────────────────

    def technical_score(self, indicators: IndicatorSet, direction: Direction) -> float:
        sign = _sign(direction)
        if sign == 0:
            hist = indicators.macd.histogram
            sign = 1 if hist > 0 else -1 if hist < 0 else 0

        ideal_rsi = NEUTRAL + 10.0 * sign
        rsi_part = _clamp(100.0 - abs(indicators.rsi - ideal_rsi) * 2.5)

        macd = indicators.macd
        if indicators.close > 0 and sign != 0:
            macd_part = _squash(macd.histogram * sign, indicators.close * MACD_SCALE)
            if (sign > 0 and macd.crossed_up) or (sign < 0 and macd.crossed_down):
                macd_part += CROSSOVER_BONUS
            macd_part = _clamp(macd_part)
        else:
            macd_part = NEUTRAL

        pb = indicators.bollinger.percent_b(indicators.close)
        bb_part = NEUTRAL if pb is None else _clamp(100.0 - abs(pb - 0.5) * 100.0)

        mom_part = _squash(indicators.momentum * sign, MOMENTUM_SCALE) if sign else NEUTRAL
        vol_part = _clamp(NEUTRAL + 25.0 * (indicators.volume_profile.relative_volume - 1.0))

        return _clamp(
            rsi_part * RSI_WEIGHT
            + macd_part * MACD_WEIGHT
            + bb_part * BOLLINGER_WEIGHT
            + mom_part * MOMENTUM_WEIGHT
            + vol_part * VOLUME_WEIGHT
        )

    def liquidity_score(self, liquidity: LiquidityMetrics, direction: Direction) -> float:
        if not liquidity.known:
            return NEUTRAL
        spread_bps = liquidity.spread * 10_000
        spread_part = _clamp(100.0 * (1.0 - spread_bps / self.config.max_spread_bps))
        imbalance_part = _clamp(NEUTRAL + NEUTRAL * liquidity.imbalance * _sign(direction))
        return 0.5 * spread_part + 0.5 * imbalance_part

    def volatility_score(self, volatility: Volatility) -> float:
        """100 inside the ideal band, decaying proportionally outside it."""
        if not volatility.known:
            return NEUTRAL
        v = volatility.value
        low, high = self.config.volatility_low, self.config.volatility_high
        if v <= 0:
            return 0.0
        if v < low:
            return _clamp(100.0 * v / low)
        if v > high:
            return _clamp(100.0 * high / v)
        return 100.0

    def price_action_score(self, price_action: PriceAction, direction: Direction) -> float:
        sign = _sign(direction)
        short_part = _squash(price_action.trend_short * sign, SHORT_TREND_SCALE)
        long_part = _squash(price_action.trend_long * sign, LONG_TREND_SCALE)
        body_part = _clamp(price_action.body_ratio * 100.0)
        return _clamp(0.4 * short_part + 0.4 * long_part + 0.2 * body_part)

    # ── Composite ─────────────────────────────────────────────

    def score(
        self,
        indicators: IndicatorSet,
        liquidity: LiquidityMetrics,
        volatility: Volatility,
        price_action: PriceAction,
    ) -> ScoreBreakdown:
        direction = self.direction(indicators)
        w = self.config.weights

        technical = self.technical_score(indicators, direction)
        liquidity_part = self.liquidity_score(liquidity, direction)
        volatility_part = self.volatility_score(volatility)
        price_action_part = self.price_action_score(price_action, direction)

        total = _clamp(
            technical * w.technical
            + liquidity_part * w.liquidity
            + volatility_part * w.volatility
            + price_action_part * w.price_action
        )
        probability = min(self.config.probability_cap, total / 100.0)

        return ScoreBreakdown(
            technical_score=round(technical, 2),
            liquidity_score=round(liquidity_part, 2),
            volatility_score=round(volatility_part, 2),
            price_action_score=round(price_action_part, 2),
            total_score=round(total, 2),
            direction=direction,
            probability=round(probability, 4),
        )

    def describe(
        self,
        indicators: IndicatorSet,
        liquidity: LiquidityMetrics,
        breakdown: ScoreBreakdown,
    ) -> list[str]:
        """Short human-readable reasons behind a breakdown."""
        cfg = self.indicator_config
        reasons: list[str] = []

        if indicators.rsi >= cfg.overbought:
            regime = "overbought"
        elif indicators.rsi <= cfg.oversold:
            regime = "oversold"
        elif indicators.rsi > 50:
            regime = "bullish regime"
        elif indicators.rsi < 50:
            regime = "bearish regime"
        else:
            regime = "neutral"
        reasons.append(f"RSI {indicators.rsi:.1f} ({regime})")

        if indicators.macd.crossed_up:
            reasons.append("MACD bullish crossover")
        elif indicators.macd.crossed_down:
            reasons.append("MACD bearish crossover")
        elif indicators.macd.histogram > 0:
            reasons.append("MACD histogram positive")
        elif indicators.macd.histogram < 0:
            reasons.append("MACD histogram negative")

        pb = indicators.bollinger.percent_b(indicators.close)
        if pb is not None and pb > 0.8:
            reasons.append("Price near upper Bollinger band")
        elif pb is not None and pb < 0.2:
            reasons.append("Price near lower Bollinger band")

        if indicators.volume_profile.relative_volume >= 1.5:
            reasons.append(f"Volume {indicators.volume_profile.relative_volume:.1f}x average")

        if not liquidity.known:
            reasons.append("Order book depth unavailable")
        elif liquidity.imbalance >= 0.2:
            reasons.append(f"Order book bid-heavy (imbalance {liquidity.imbalance:+.2f})")
        elif liquidity.imbalance <= -0.2:
            reasons.append(f"Order book ask-heavy (imbalance {liquidity.imbalance:+.2f})")

        reasons.append(f"Composite score {breakdown.total_score:.1f}")
        return reasons
