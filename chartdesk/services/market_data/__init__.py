"""
Market Data Service

CONTRACT:
    Input:  symbol, TimeFrame, limit / search query
    Output: KlineResult, MarketSnapshot, list[str]

RESPONSIBILITIES:
    - Fetch klines and 24h tickers from OKX, Binance, Gate and MEXC
    - Normalize every source to ascending Kline rows in seconds
    - Fall over to the next source in priority order on any failure
    - Cache the union of tradable symbols for 5 minutes
    - Rank search results with popular symbols first

NO LLM INVOLVEMENT - Pure data fetching and transformation.
"""

from chartdesk.services.market_data.interface import ExchangeAdapter
from chartdesk.services.market_data.okx_adapter import OkxAdapter
from chartdesk.services.market_data.binance_adapter import BinanceAdapter
from chartdesk.services.market_data.gate_adapter import GateAdapter
from chartdesk.services.market_data.mexc_adapter import MexcAdapter
from chartdesk.services.market_data.symbol_cache import SymbolUniverseCache
from chartdesk.services.market_data.aggregator import (
    MarketDataAggregator,
    build_adapters,
    get_aggregator,
    close_aggregator,
)

__all__ = [
    "ExchangeAdapter",
    "OkxAdapter",
    "BinanceAdapter",
    "GateAdapter",
    "MexcAdapter",
    "SymbolUniverseCache",
    "MarketDataAggregator",
    "build_adapters",
    "get_aggregator",
    "close_aggregator",
]
