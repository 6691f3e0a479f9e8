"""
OKX API Data Adapter

Primary source. OKX uses dash-separated instrument ids (BTC-USDT) and
returns candles newest first.

OKX API v5 Documentation: https://www.okx.com/docs-v5/en/
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
from chartdesk.services.market_data.interface import split_symbol

logger = logging.getLogger(__name__)


# OKX bar mapping
INTERVAL_MAP = {
    TimeFrame.M1: "1m",
    TimeFrame.M5: "5m",
    TimeFrame.M15: "15m",
    TimeFrame.H1: "1H",
    TimeFrame.H4: "4H",
    TimeFrame.D1: "1D",
    TimeFrame.W1: "1W",
}

# /market/candles returns at most 300 rows per request
MAX_LIMIT = 300


def to_okx_symbol(symbol: str) -> Optional[str]:
    """BTCUSDT -> BTC-USDT."""
    parts = split_symbol(canonical_symbol(symbol))
    if parts is None:
        return None
    return f"{parts[0]}-{parts[1]}"


def from_okx_symbol(inst_id: str) -> str:
    """BTC-USDT -> BTCUSDT."""
    return inst_id.replace("-", "").upper()


def _parse_candle(row: list) -> Kline:
    # [ts_ms, o, h, l, c, vol, volCcy, volCcyQuote, confirm]
    return Kline(
        time=int(row[0]) // 1000,
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[5]),
    )


class OkxAdapter:
    """OKX spot market data."""

    name = "okx"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._http = JsonHttpClient(
            self.name,
            base_url or settings.okx_base_url,
            timeout_seconds or settings.http_timeout_seconds,
            session,
        )

    def supports(self, timeframe: TimeFrame) -> bool:
        return timeframe in INTERVAL_MAP

    async def close(self) -> None:
        await self._http.close()

    def _inst_id(self, symbol: str) -> str:
        inst_id = to_okx_symbol(symbol)
        if inst_id is None:
            raise SourceDataError(self.name, f"cannot map symbol {symbol}")
        return inst_id

    async def _get_data(self, path: str, params: dict) -> Any:
        """GET and unwrap the {"code", "msg", "data"} envelope."""
        result = await self._http.get(path, params)
        if not isinstance(result, dict):
            raise SourceDataError(self.name, f"unexpected payload from {path}")
        if result.get("code") != "0":
            raise SourceDataError(
                self.name,
                result.get("msg") or f"OKX error code {result.get('code')}",
                details={"code": result.get("code")},
            )
        data = result.get("data")
        if not data:
            raise SourceDataError(self.name, f"empty data from {path}")
        return data

    async def fetch_klines(
        self, symbol: str, timeframe: TimeFrame, limit: int
    ) -> list[Kline]:
        """Fetch candles, reversed from OKX's newest-first order."""
        data = await self._get_data(
            "/market/candles",
            {
                "instId": self._inst_id(symbol),
                "bar": INTERVAL_MAP[timeframe],
                "limit": min(limit, MAX_LIMIT),
            },
        )
        klines = parse_rows(self.name, reversed(data), _parse_candle)
        logger.debug(f"OKX {symbol} {timeframe.value}: {len(klines)} candles")
        return normalize_klines(klines)

    async def fetch_snapshot(self, symbol: str) -> MarketSnapshot:
        """24h ticker; change is computed against open24h."""
        data = await self._get_data("/market/ticker", {"instId": self._inst_id(symbol)})
        try:
            ticker = data[0]
            price = float(ticker["last"])
            open_24h = to_float(ticker.get("open24h"))
            change = price - open_24h if open_24h else 0.0
            return MarketSnapshot(
                symbol=canonical_symbol(symbol),
                price=price,
                change_24h=change,
                change_percent_24h=(change / open_24h * 100) if open_24h else 0.0,
                high_24h=to_float(ticker.get("high24h")),
                low_24h=to_float(ticker.get("low24h")),
                volume_24h=to_float(ticker.get("vol24h")),
                data_source=self.name,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SourceDataError(self.name, f"malformed ticker: {e}") from e

    async def fetch_symbols(self) -> list[str]:
        """Live USDT-quoted spot instruments."""
        data = await self._get_data("/public/instruments", {"instType": "SPOT"})
        try:
            return [
                from_okx_symbol(s["instId"])
                for s in data
                if s.get("instId") and s.get("quoteCcy") == "USDT" and s.get("state") == "live"
            ]
        except (AttributeError, KeyError, TypeError) as e:
            raise SourceDataError(self.name, f"malformed instruments: {e}") from e
