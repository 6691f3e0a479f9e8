"""
Multi-Source Market Data Aggregator

Serves klines, snapshots and symbol search from an ordered list of exchange
adapters. Each request walks the list until one source succeeds:

    okx -> binance -> gate -> mexc -> AllSourcesExhausted

The order is a fixed priority list set once from configuration; there is no
randomization, retry or backoff beyond walking the chain.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from chartdesk.core.config import settings
from chartdesk.schemas.market import (
    KlineResult,
    MarketSnapshot,
    POPULAR_SYMBOLS,
    TimeFrame,
    canonical_symbol,
)
from chartdesk.services.base import AllSourcesExhausted, DataSourceError
from chartdesk.services.market_data.interface import ExchangeAdapter
from chartdesk.services.market_data.okx_adapter import OkxAdapter
from chartdesk.services.market_data.binance_adapter import BinanceAdapter
from chartdesk.services.market_data.gate_adapter import GateAdapter
from chartdesk.services.market_data.mexc_adapter import MexcAdapter
from chartdesk.services.market_data.symbol_cache import SymbolUniverseCache
from chartdesk.services.market_data.symbol_search import (
    DEFAULT_SEARCH_LIMIT,
    filter_symbols,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

ADAPTER_FACTORIES: dict[str, Callable[[], ExchangeAdapter]] = {
    "okx": OkxAdapter,
    "binance": BinanceAdapter,
    "gate": GateAdapter,
    "mexc": MexcAdapter,
}


def build_adapters(order: Sequence[str]) -> list[ExchangeAdapter]:
    """Instantiate adapters in priority order from their configured names."""
    adapters = []
    for name in order:
        factory = ADAPTER_FACTORIES.get(name.lower())
        if factory is None:
            raise ValueError(
                f"Unknown data source '{name}', expected one of {sorted(ADAPTER_FACTORIES)}"
            )
        adapters.append(factory())
    return adapters


class MarketDataAggregator:
    """
    Ordered fail-over over exchange adapters plus cached symbol search.

    Usage:
        aggregator = MarketDataAggregator(adapters, SymbolUniverseCache())
        result = await aggregator.fetch_klines("BTCUSDT", TimeFrame.H1, 200)
        snapshot = await aggregator.fetch_market_snapshot("BTCUSDT")
        matches = await aggregator.search_symbols("sol")
    """

    def __init__(
        self,
        adapters: Sequence[ExchangeAdapter],
        symbol_cache: Optional[SymbolUniverseCache] = None,
    ):
        if not adapters:
            raise ValueError("MarketDataAggregator needs at least one adapter")
        self._adapters = list(adapters)
        self.symbol_cache = symbol_cache or SymbolUniverseCache(
            settings.symbol_cache_ttl_seconds
        )

    @property
    def source_names(self) -> list[str]:
        return [adapter.name for adapter in self._adapters]

    async def close(self) -> None:
        """Close every adapter's HTTP session."""
        for adapter in self._adapters:
            await adapter.close()

    async def _first_success(
        self,
        operation: str,
        call: Callable[[ExchangeAdapter], Awaitable[T]],
        timeframe: Optional[TimeFrame] = None,
    ) -> tuple[str, T]:
        """Try each adapter in order; return (source name, result) of the first success."""
        attempts: list[tuple[str, str]] = []

        for adapter in self._adapters:
            if timeframe is not None and not adapter.supports(timeframe):
                attempts.append((adapter.name, f"timeframe {timeframe.value} not supported"))
                continue

            try:
                result = await call(adapter)
            except DataSourceError as e:
                logger.warning(f"{adapter.name} failed for {operation}: {e.message}")
                attempts.append((adapter.name, e.message))
                continue

            if attempts:
                logger.info(
                    f"{operation} served by {adapter.name} after "
                    f"{len(attempts)} failed source(s)"
                )
            return adapter.name, result

        logger.error(f"{operation}: all data sources failed")
        raise AllSourcesExhausted(operation, attempts)

    async def fetch_klines(
        self,
        symbol: str,
        timeframe: TimeFrame,
        limit: Optional[int] = None,
    ) -> KlineResult:
        """Klines from the first source that can serve them, ascending by time."""
        symbol = canonical_symbol(symbol)
        limit = limit or settings.default_kline_limit

        source, klines = await self._first_success(
            f"fetch_klines({symbol}, {timeframe.value})",
            lambda adapter: adapter.fetch_klines(symbol, timeframe, limit),
            timeframe=timeframe,
        )
        return KlineResult(
            symbol=symbol,
            timeframe=timeframe,
            klines=klines,
            data_source=source,
        )

    async def fetch_market_snapshot(self, symbol: str) -> MarketSnapshot:
        """24h ticker from the first source that answers, tagged with that source."""
        symbol = canonical_symbol(symbol)
        _, snapshot = await self._first_success(
            f"fetch_market_snapshot({symbol})",
            lambda adapter: adapter.fetch_snapshot(symbol),
        )
        return snapshot

    async def refresh_symbols(self) -> list[str]:
        """
        Fan out to every adapter in parallel; one slow or broken source
        does not keep the others from contributing.
        """
        results = await asyncio.gather(
            *(adapter.fetch_symbols() for adapter in self._adapters),
            return_exceptions=True,
        )
        return self.symbol_cache.refresh(
            {adapter.name: result for adapter, result in zip(self._adapters, results)}
        )

    async def get_all_symbols(self) -> list[str]:
        """Cached symbol universe, refreshed when stale."""
        if self.symbol_cache.is_stale():
            return await self.refresh_symbols()
        return self.symbol_cache.get()

    async def search_symbols(
        self, query: str, limit: int = DEFAULT_SEARCH_LIMIT
    ) -> list[str]:
        """
        Substring search over the symbol universe, popular symbols first.

        Falls back to the popular list when no source has ever answered.
        """
        symbols = await self.get_all_symbols()
        if not symbols:
            logger.warning("Symbol universe unavailable, searching popular symbols only")
            symbols = list(POPULAR_SYMBOLS)
        return filter_symbols(symbols, query, limit)


# Singleton aggregator
_aggregator: Optional[MarketDataAggregator] = None


def get_aggregator() -> MarketDataAggregator:
    """Get or create the aggregator from configured source order."""
    global _aggregator
    if _aggregator is None:
        _aggregator = MarketDataAggregator(
            build_adapters(settings.data_source_order),
            SymbolUniverseCache(settings.symbol_cache_ttl_seconds),
        )
    return _aggregator


async def close_aggregator() -> None:
    """Close adapter sessions. Called on application shutdown."""
    global _aggregator
    if _aggregator is not None:
        await _aggregator.close()
        _aggregator = None
