"""Binance spot client — public REST market data."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from signal_core.errors import ProviderUnavailable
from signal_core.models import Candle, OrderBookSnapshot, Ticker24h


def _ms_to_dt(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


class BinanceClient:
    """Async client for Binance's public market data endpoints.

    Every transport, HTTP status or payload failure surfaces as
    ProviderUnavailable so callers can skip and retry on their next tick.
    """

    def __init__(
        self,
        base_url: str = "https://api.binance.com",
        timeout_s: float = 10.0,
        depth_limit: int = 20,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.depth_limit = depth_limit
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            )
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()

    async def __aenter__(self) -> BinanceClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # --- REST ---

    async def _get(self, path: str, symbol: str, **params: Any) -> Any:
        http = await self._get_http()
        try:
            resp = await http.get(path, params={"symbol": symbol, **params})
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            raise ProviderUnavailable(
                f"{path} returned {exc.response.status_code}", symbol=symbol
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderUnavailable(f"{path} failed: {exc}", symbol=symbol) from exc

    async def get_candles(self, symbol: str, interval: str, limit: int) -> list[Candle]:
        """Fetch klines, oldest first.

        Each raw kline is ``[open_time_ms, open, high, low, close, volume, ...]``.
        """
        data = await self._get("/api/v3/klines", symbol, interval=interval, limit=limit)
        try:
            return [
                Candle(
                    open_time=_ms_to_dt(int(k[0])),
                    open=Decimal(k[1]),
                    high=Decimal(k[2]),
                    low=Decimal(k[3]),
                    close=Decimal(k[4]),
                    volume=Decimal(k[5]),
                )
                for k in data
            ]
        except (IndexError, TypeError, ValueError, InvalidOperation) as exc:
            raise ProviderUnavailable(f"malformed klines: {exc}", symbol=symbol) from exc

    async def get_order_book_depth(self, symbol: str) -> OrderBookSnapshot:
        data = await self._get("/api/v3/depth", symbol, limit=self.depth_limit)
        try:
            return OrderBookSnapshot(
                symbol=symbol,
                ts=datetime.now(timezone.utc),
                bids=[(Decimal(p), Decimal(q)) for p, q, *_ in data.get("bids", [])],
                asks=[(Decimal(p), Decimal(q)) for p, q, *_ in data.get("asks", [])],
            )
        except (AttributeError, TypeError, ValueError, InvalidOperation) as exc:
            raise ProviderUnavailable(f"malformed depth: {exc}", symbol=symbol) from exc

    async def get_current_price(self, symbol: str) -> Decimal:
        data = await self._get("/api/v3/ticker/price", symbol)
        try:
            return Decimal(data["price"])
        except (KeyError, TypeError, InvalidOperation) as exc:
            raise ProviderUnavailable(f"malformed price: {exc}", symbol=symbol) from exc

    async def get_ticker_24h(self, symbol: str) -> Ticker24h:
        data = await self._get("/api/v3/ticker/24hr", symbol)
        try:
            return Ticker24h(
                symbol=symbol,
                last_price=Decimal(data["lastPrice"]),
                volume=Decimal(data["volume"]),
                change_pct=Decimal(data["priceChangePercent"]),
            )
        except (KeyError, TypeError, InvalidOperation) as exc:
            raise ProviderUnavailable(f"malformed ticker: {exc}", symbol=symbol) from exc
