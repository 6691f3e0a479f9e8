"""
CONTRACT 1: Market Data Layer

Output of the aggregator: ascending Kline windows and 24h ticker snapshots,
normalized from every exchange into one shape.
"""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class TimeFrame(str, Enum):
    M1 = "1m"
    M5 = "5m"
    M15 = "15m"
    H1 = "1h"
    H4 = "4h"
    D1 = "1d"
    W1 = "1w"


# =============================================================================
# SYMBOLS
# =============================================================================


POPULAR_SYMBOLS = [
    "BTCUSDT",
    "ETHUSDT",
    "SOLUSDT",
    "BNBUSDT",
    "XRPUSDT",
    "ADAUSDT",
    "DOGEUSDT",
    "AVAXUSDT",
    "DOTUSDT",
    "MATICUSDT",
]


def canonical_symbol(symbol: str) -> str:
    """BTC-USDT, btc_usdt, BTC/USDT -> BTCUSDT."""
    return symbol.strip().upper().replace("-", "").replace("_", "").replace("/", "")


# =============================================================================
# OUTPUT: Klines and Snapshot
# =============================================================================


class Kline(BaseModel):
    """Single candlestick, `time` is the bar open in Unix seconds."""

    model_config = ConfigDict(frozen=True)

    time: int
    open: float = Field(..., gt=0)
    high: float = Field(..., gt=0)
    low: float = Field(..., gt=0)
    close: float = Field(..., gt=0)
    volume: float = Field(..., ge=0)

    @model_validator(mode="after")
    def check_range(self) -> "Kline":
        if self.high < max(self.open, self.close) or self.low > min(self.open, self.close):
            raise ValueError("low <= open, close <= high violated")
        return self


class KlineResult(BaseModel):
    """Klines for one symbol/timeframe plus the source that served them."""

    symbol: str
    timeframe: TimeFrame
    klines: list[Kline]
    data_source: str


class MarketSnapshot(BaseModel):
    """24h ticker summary, tagged with the source that produced it."""

    symbol: str
    price: float
    change_24h: float
    change_percent_24h: float
    high_24h: float
    low_24h: float
    volume_24h: float
    data_source: str


class SymbolSearchResult(BaseModel):
    query: str
    results: list[str]
    count: int
