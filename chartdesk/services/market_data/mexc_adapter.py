"""
MEXC API Data Adapter

MEXC's v3 spot API is Binance-compatible in shape but uses its own interval
tokens (60m, 1W) and symbol status codes.

MEXC API v3 Documentation: https://mexcdevelop.github.io/apidocs/spot_v3_en/
"""

import logging
from typing import Optional

import aiohttp

from chartdesk.core.config import settings
from chartdesk.schemas.market import Kline, MarketSnapshot, TimeFrame, canonical_symbol
from chartdesk.services.base import SourceDataError
from chartdesk.services.market_data.binance_adapter import check_error_envelope
from chartdesk.services.market_data.http import (
    JsonHttpClient,
    normalize_klines,
    parse_rows,
    to_float,
)

logger = logging.getLogger(__name__)


# MEXC interval mapping
INTERVAL_MAP = {
    TimeFrame.M1: "1m",
    TimeFrame.M5: "5m",
    TimeFrame.M15: "15m",
    TimeFrame.H1: "60m",
    TimeFrame.H4: "4h",
    TimeFrame.D1: "1d",
    TimeFrame.W1: "1W",
}

MAX_LIMIT = 1000

# exchangeInfo status values meaning "online"
ONLINE_STATUSES = {"1", "ENABLED", "TRADING"}


def _parse_kline(row: list) -> Kline:
    # [open_ms, o, h, l, c, v, close_ms, quote_vol]
    return Kline(
        time=int(row[0]) // 1000,
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[5]),
    )


class MexcAdapter:
    """MEXC spot market data."""

    name = "mexc"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._http = JsonHttpClient(
            self.name,
            base_url or settings.mexc_base_url,
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
        logger.debug(f"MEXC {symbol} {timeframe.value}: {len(klines)} candles")
        return normalize_klines(klines)

    async def fetch_snapshot(self, symbol: str) -> MarketSnapshot:
        """24h ticker; percent change is recomputed from openPrice."""
        symbol = canonical_symbol(symbol)
        ticker = await self._http.get("/ticker/24hr", {"symbol": symbol})
        check_error_envelope(self.name, ticker)
        if not isinstance(ticker, dict) or not ticker:
            raise SourceDataError(self.name, f"no ticker for {symbol}")

        try:
            price = float(ticker["lastPrice"])
            open_price = to_float(ticker.get("openPrice"))
            change = to_float(ticker.get("priceChange"), price - open_price if open_price else 0.0)
            return MarketSnapshot(
                symbol=symbol,
                price=price,
                change_24h=change,
                change_percent_24h=(change / open_price * 100) if open_price else 0.0,
                high_24h=to_float(ticker.get("highPrice")),
                low_24h=to_float(ticker.get("lowPrice")),
                volume_24h=to_float(ticker.get("volume")),
                data_source=self.name,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SourceDataError(self.name, f"malformed ticker: {e}") from e

    async def fetch_symbols(self) -> list[str]:
        """Online USDT-quoted spot pairs."""
        data = await self._http.get("/exchangeInfo")
        check_error_envelope(self.name, data)
        symbols = data.get("symbols") if isinstance(data, dict) else None
        if not symbols:
            raise SourceDataError(self.name, "empty exchangeInfo")

        try:
            return [
                s["symbol"]
                for s in symbols
                if s.get("symbol")
                and s.get("quoteAsset") == "USDT"
                and str(s.get("status")) in ONLINE_STATUSES
                and s.get("isSpotTradingAllowed", True)
            ]
        except (AttributeError, KeyError, TypeError) as e:
            raise SourceDataError(self.name, f"malformed exchangeInfo: {e}") from e
