"""Snapshot builder — fetches and assembles a MarketSnapshot per symbol."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import structlog

from signal_core.config.schema import ExchangeConfig
from signal_core.errors import ProviderUnavailable
from signal_core.exchange.base import MarketDataProvider
from signal_core.models import MarketSnapshot

log = structlog.get_logger("snapshot")


async def build_snapshot(
    provider: MarketDataProvider,
    symbol: str,
    config: ExchangeConfig,
    *,
    now: datetime | None = None,
) -> MarketSnapshot:
    """Fetch candles, trend candles, ticker and depth for *symbol* concurrently.

    Depth failures degrade to ``order_book=None``; any other provider failure
    propagates so the caller skips the symbol this cycle.

    Args:
        provider: Market data source.
        symbol: Exchange symbol (e.g. "BTCUSDT").
        config: Candle intervals and limits.
        now: Snapshot timestamp, defaults to the current UTC time.
    """
    candles, trend_candles, ticker, book = await asyncio.gather(
        provider.get_candles(symbol, config.candle_interval, config.candle_limit),
        provider.get_candles(symbol, config.trend_interval, config.trend_limit),
        provider.get_ticker_24h(symbol),
        provider.get_order_book_depth(symbol),
        return_exceptions=True,
    )

    for result in (candles, trend_candles, ticker):
        if isinstance(result, BaseException):
            if isinstance(result, ProviderUnavailable) and result.symbol is None:
                result.symbol = symbol
            raise result

    if isinstance(book, ProviderUnavailable):
        log.warning("order_book_unavailable", symbol=symbol, error=str(book))
        book = None
    elif isinstance(book, BaseException):
        raise book

    return MarketSnapshot(
        symbol=symbol,
        ts=now or datetime.now(timezone.utc),
        candles=candles,
        trend_candles=trend_candles,
        ticker=ticker,
        order_book=book,
    )
