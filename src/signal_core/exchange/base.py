"""Market data provider protocol consumed by the monitor and the lifecycle manager."""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, runtime_checkable

from signal_core.models import Candle, OrderBookSnapshot, Ticker24h


@runtime_checkable
class MarketDataProvider(Protocol):
    """Any market data source. Every method may raise ProviderUnavailable."""

    async def get_candles(self, symbol: str, interval: str, limit: int) -> list[Candle]:
        """Most recent *limit* candles, oldest first."""
        ...

    async def get_order_book_depth(self, symbol: str) -> OrderBookSnapshot:
        ...

    async def get_current_price(self, symbol: str) -> Decimal:
        ...

    async def get_ticker_24h(self, symbol: str) -> Ticker24h:
        ...
