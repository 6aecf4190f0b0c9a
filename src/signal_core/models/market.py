"""Market data models — candles, order book depth, 24h ticker, per-symbol snapshot."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class Candle(BaseModel):
    """One candlestick bar. Sequences are ordered oldest first."""

    model_config = ConfigDict(frozen=True)

    open_time: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal


class OrderBookSnapshot(BaseModel):
    """Depth snapshot; both sides are best-first."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    ts: datetime
    bids: list[tuple[Decimal, Decimal]] = Field(default_factory=list)
    asks: list[tuple[Decimal, Decimal]] = Field(default_factory=list)

    @property
    def best_bid(self) -> Decimal | None:
        return self.bids[0][0] if self.bids else None

    @property
    def best_ask(self) -> Decimal | None:
        return self.asks[0][0] if self.asks else None


class Ticker24h(BaseModel):
    """Rolling 24h ticker statistics."""

    symbol: str
    last_price: Decimal
    volume: Decimal
    change_pct: Decimal


class MarketSnapshot(BaseModel):
    """Pre-fetched bundle of market data for one symbol, passed to the pipeline."""

    symbol: str
    ts: datetime
    candles: list[Candle] = Field(default_factory=list)
    trend_candles: list[Candle] = Field(default_factory=list)
    ticker: Ticker24h
    # None when depth was unavailable this cycle
    order_book: OrderBookSnapshot | None = None
