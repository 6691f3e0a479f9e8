"""
Gate.io API Data Adapter

Gate uses underscore-separated pairs (BTC_USDT) and a permuted candle row:
[time, quote_volume, close, high, low, open, base_amount, window_closed].
Weekly bars are requested as "7d".

Gate API v4 Documentation: https://www.gate.io/docs/developers/apiv4/
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


# Gate interval mapping
INTERVAL_MAP = {
    TimeFrame.M1: "1m",
    TimeFrame.M5: "5m",
    TimeFrame.M15: "15m",
    TimeFrame.H1: "1h",
    TimeFrame.H4: "4h",
    TimeFrame.D1: "1d",
    TimeFrame.W1: "7d",
}

MAX_LIMIT = 1000


def to_gate_symbol(symbol: str) -> Optional[str]:
    """BTCUSDT -> BTC_USDT."""
    parts = split_symbol(canonical_symbol(symbol))
    if parts is None:
        return None
    return f"{parts[0]}_{parts[1]}"


def from_gate_symbol(pair: str) -> str:
    """BTC_USDT -> BTCUSDT."""
    return pair.replace("_", "").upper()


def _parse_candle(row: list) -> Kline:
    # [t, quote_volume, close, high, low, open, base_amount, closed]
    # Volume is reported in base units like the other sources; older
    # responses without base_amount fall back to the quote volume.
    volume = row[6] if len(row) > 6 else row[1]
    return Kline(
        time=int(float(row[0])),
        open=float(row[5]),
        high=float(row[3]),
        low=float(row[4]),
        close=float(row[2]),
        volume=float(volume),
    )


class GateAdapter:
    """Gate.io spot market data."""

    name = "gate"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._http = JsonHttpClient(
            self.name,
            base_url or settings.gate_base_url,
            timeout_seconds or settings.http_timeout_seconds,
            session,
        )

    def supports(self, timeframe: TimeFrame) -> bool:
        return timeframe in INTERVAL_MAP

    async def close(self) -> None:
        await self._http.close()

    def _pair(self, symbol: str) -> str:
        pair = to_gate_symbol(symbol)
        if pair is None:
            raise SourceDataError(self.name, f"cannot map symbol {symbol}")
        return pair

    async def _get(self, path: str, params: Optional[dict] = None) -> Any:
        """GET and reject Gate's {"label", "message"} error envelope."""
        payload = await self._http.get(path, params)
        if isinstance(payload, dict) and "label" in payload:
            raise SourceDataError(
                self.name,
                payload.get("message") or payload["label"],
                details={"label": payload["label"]},
            )
        if not payload:
            raise SourceDataError(self.name, f"empty data from {path}")
        return payload

    async def fetch_klines(
        self, symbol: str, timeframe: TimeFrame, limit: int
    ) -> list[Kline]:
        data = await self._get(
            "/spot/candlesticks",
            {
                "currency_pair": self._pair(symbol),
                "interval": INTERVAL_MAP[timeframe],
                "limit": min(limit, MAX_LIMIT),
            },
        )
        if not isinstance(data, list):
            raise SourceDataError(self.name, "unexpected candlestick payload")

        klines = parse_rows(self.name, data, _parse_candle)
        logger.debug(f"Gate {symbol} {timeframe.value}: {len(klines)} candles")
        return normalize_klines(klines)

    async def fetch_snapshot(self, symbol: str) -> MarketSnapshot:
        """24h ticker; absolute change is derived from change_percentage."""
        data = await self._get("/spot/tickers", {"currency_pair": self._pair(symbol)})

        try:
            ticker = data[0]
            price = float(ticker["last"])
            change_percent = to_float(ticker.get("change_percentage"))
            open_24h = price / (1 + change_percent / 100) if change_percent != -100 else 0.0
            return MarketSnapshot(
                symbol=canonical_symbol(symbol),
                price=price,
                change_24h=price - open_24h if open_24h else 0.0,
                change_percent_24h=change_percent,
                high_24h=to_float(ticker.get("high_24h")),
                low_24h=to_float(ticker.get("low_24h")),
                volume_24h=to_float(ticker.get("base_volume")),
                data_source=self.name,
            )
        except (IndexError, KeyError, TypeError, ValueError) as e:
            raise SourceDataError(self.name, f"malformed ticker: {e}") from e

    async def fetch_symbols(self) -> list[str]:
        """Tradable USDT-quoted currency pairs."""
        data = await self._get("/spot/currency_pairs")
        if not isinstance(data, list):
            raise SourceDataError(self.name, "unexpected currency_pairs payload")

        try:
            return [
                from_gate_symbol(p["id"])
                for p in data
                if p.get("id") and p.get("quote") == "USDT" and p.get("trade_status") == "tradable"
            ]
        except (AttributeError, KeyError, TypeError) as e:
            raise SourceDataError(self.name, f"malformed currency_pairs: {e}") from e
