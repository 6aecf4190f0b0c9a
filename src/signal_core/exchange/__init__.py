"""Exchange API clients."""

from signal_core.exchange.base import MarketDataProvider
from signal_core.exchange.binance import BinanceClient

__all__ = ["BinanceClient", "MarketDataProvider"]
