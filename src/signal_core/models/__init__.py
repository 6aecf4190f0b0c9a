"""Pydantic domain models."""

from signal_core.models.analysis import (
    BollingerResult,
    IndicatorSet,
    LiquidityMetrics,
    MACDResult,
    PriceAction,
    Volatility,
    VolumeProfile,
)
from signal_core.models.market import Candle, MarketSnapshot, OrderBookSnapshot, Ticker24h
from signal_core.models.signal import (
    Direction,
    Priority,
    ScoreBreakdown,
    Signal,
    SignalStatus,
    TargetLevels,
)

__all__ = [
    "BollingerResult",
    "Candle",
    "Direction",
    "IndicatorSet",
    "LiquidityMetrics",
    "MACDResult",
    "MarketSnapshot",
    "OrderBookSnapshot",
    "PriceAction",
    "Priority",
    "ScoreBreakdown",
    "Signal",
    "SignalStatus",
    "TargetLevels",
    "Ticker24h",
    "Volatility",
    "VolumeProfile",
]
