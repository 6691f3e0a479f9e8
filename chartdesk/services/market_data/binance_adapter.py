"""
Binance API Data Adapter

Binance uses the canonical symbol as-is (BTCUSDT) and returns klines in
ascending order.

Binance Spot API Documentation: https://developers.binance.com/docs/binance-spot-api-docs
"""

import logging
from typing import Any, Optional

import aiohttp

from chartdesk.core.config import settings
from chartdesk.schemas.market import Kline, MarketSnapshot, TimeFrame, canonical_symbol
from chartdesk.services.base import SourceDataError
from chartdesk.services.market_data.http import (
    JsonHttpClient,
    normalize_klines,
    parse_rows,
    to_float,
)

logger = logging.getLogger(__name__)


# Binance interval mapping
INTERVAL_MAP = {
    TimeFrame.M1: "1m",
    TimeFrame.M5: "5m",
    TimeFrame.M15: "15m",
    TimeFrame.H1: "1h",
    TimeFrame.H4: "4h",
    TimeFrame.D1: "1d",
    TimeFrame.W1: "1w",
}

MAX_LIMIT = 1000


def _parse_kline(row: list) -> Kline:
    # [open_ms, o, h, l, c, v, close_ms, quote_vol, trades, ...]
    return Kline(
        time=int(row[0]) // 1000,
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[5]),
    )


def check_error_envelope(source: str, payload: Any) -> None:
    """Binance-style APIs report errors as {"code": <int>, "msg": "..."}."""
    if isinstance(payload, dict) and "code" in payload and "msg" in payload:
        raise SourceDataError(
            source,
            payload.get("msg") or f"error code {payload.get('code')}",
            details={"code": payload.get("code")},
        )


class BinanceAdapter:
    """Binance spot market data."""

    name = "binance"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._http = JsonHttpClient(
            self.name,
            base_url or settings.binance_base_url,
            timeout_seconds or settings.http_timeout_seconds,
            session,
        )

    def supports(self, timeframe: TimeFrame) -> bool:
        return timeframe in INTERVAL_MAP

    async def close(self) -> None:
        await self._http.close()

    async def fetch_klines(
        self, symbol: str, timeframe: TimeFrame, limit: int
    ) -> list[Kline]:
        symbol = canonical_symbol(symbol)
        data = await self._http.get(
            "/klines",
            {
                "symbol": symbol,
                "interval": INTERVAL_MAP[timeframe],
                "limit": min(limit, MAX_LIMIT),
            },
        )
        check_error_envelope(self.name, data)
        if not isinstance(data, list) or not data:
            raise SourceDataError(self.name, f"no klines for {symbol}")

        klines = parse_rows(self.name, data, _parse_kline)
        logger.debug(f"Binance {symbol} {timeframe.value}: {len(klines)} candles")
        return normalize_klines(klines)

    async def fetch_snapshot(self, symbol: str) -> MarketSnapshot:
        symbol = canonical_symbol(symbol)
        ticker = await self._http.get("/ticker/24hr", {"symbol": symbol})
        check_error_envelope(self.name, ticker)
        if not isinstance(ticker, dict) or not ticker:
            raise SourceDataError(self.name, f"no ticker for {symbol}")

        try:
            return MarketSnapshot(
                symbol=symbol,
                price=float(ticker["lastPrice"]),
                change_24h=to_float(ticker.get("priceChange")),
                change_percent_24h=to_float(ticker.get("priceChangePercent")),
                high_24h=to_float(ticker.get("highPrice")),
                low_24h=to_float(ticker.get("lowPrice")),
                volume_24h=to_float(ticker.get("volume")),
                data_source=self.name,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SourceDataError(self.name, f"malformed ticker: {e}") from e

    async def fetch_symbols(self) -> list[str]:
        """USDT-quoted pairs currently TRADING."""
        data = await self._http.get("/exchangeInfo")
        check_error_envelope(self.name, data)
        symbols = data.get("symbols") if isinstance(data, dict) else None
        if not symbols:
            raise SourceDataError(self.name, "empty exchangeInfo")

        try:
            return [
                s["symbol"]
                for s in symbols
                if s.get("symbol") and s.get("status") == "TRADING" and s.get("quoteAsset") == "USDT"
            ]
        except (AttributeError, KeyError, TypeError) as e:
            raise SourceDataError(self.name, f"malformed exchangeInfo: {e}") from e
