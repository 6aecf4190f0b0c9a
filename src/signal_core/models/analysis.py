"""Derived analysis records — recomputed every evaluation, never persisted."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class MACDResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    line: float
    signal: float
    histogram: float
    prev_histogram: float

    @property
    def crossed_up(self) -> bool:
        return self.histogram > 0 >= self.prev_histogram

    @property
    def crossed_down(self) -> bool:
        return self.histogram < 0 <= self.prev_histogram


class BollingerResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    upper: float
    middle: float
    lower: float

    def percent_b(self, price: float) -> float | None:
        """Position of *price* inside the bands (0 = lower, 1 = upper)."""
        width = self.upper - self.lower
        if width <= 0:
            return None
        return (price - self.lower) / width


class VolumeProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    last_volume: float
    average_volume: float
    relative_volume: float


class IndicatorSet(BaseModel):
    """Technical indicators for the latest candle of a series."""

    model_config = ConfigDict(frozen=True)

    close: float
    rsi: float
    macd: MACDResult
    bollinger: BollingerResult
    momentum: float
    volume_profile: VolumeProfile


class LiquidityMetrics(BaseModel):
    """Order book depth metrics; ``known=False`` marks the zero-confidence sentinel."""

    model_config = ConfigDict(frozen=True)

    bid_depth: float = 0.0
    ask_depth: float = 0.0
    imbalance: float = 0.0
    spread: float = 0.0
    known: bool = True

    @classmethod
    def unknown(cls) -> LiquidityMetrics:
        return cls(known=False)


class Volatility(BaseModel):
    """Standard deviation of returns as a fraction of price."""

    model_config = ConfigDict(frozen=True)

    value: float = 0.0
    window: int = 0
    known: bool = True

    @classmethod
    def unknown(cls) -> Volatility:
        return cls(known=False)


class PriceAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    trend_short: float = 0.0
    trend_long: float = 0.0
    body_ratio: float = 0.0
