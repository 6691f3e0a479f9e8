"""
Process-wide cache of the tradable symbol universe.

Holds one symbol list per source and the time of the last refresh. The
union of all sources is served until it is older than the TTL.
"""

import logging
import time
from typing import Callable, Optional, Union

from chartdesk.services.market_data.symbol_search import rank_symbols

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60


class SymbolUniverseCache:
    """
    TTL-bounded union of every source's symbol list.

    Usage:
        cache = SymbolUniverseCache(ttl_seconds=300)
        if cache.is_stale():
            cache.refresh({"okx": [...], "binance": RuntimeError(...)})
        symbols = cache.get()

    Refreshes are idempotent: a source that failed keeps its previous list,
    so two racing refreshes converge on an equivalent union.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._by_source: dict[str, list[str]] = {}
        self._refreshed_at: Optional[float] = None
        self._ranked: list[str] = []

    def age(self) -> Optional[float]:
        """Seconds since the last refresh, None if never refreshed."""
        if self._refreshed_at is None:
            return None
        return self._clock() - self._refreshed_at

    def is_stale(self) -> bool:
        """True when empty, never refreshed, or older than the TTL."""
        age = self.age()
        return age is None or age >= self.ttl_seconds or not self._ranked

    def get(self) -> list[str]:
        """Ranked, deduplicated union of every source's symbols."""
        return list(self._ranked)

    def refresh(self, results: dict[str, Union[list[str], BaseException]]) -> list[str]:
        """
        Merge a fan-out result. Successful lists replace that source's entry;
        exceptions leave the previous entry in place.
        """
        for source, result in results.items():
            if isinstance(result, BaseException):
                logger.warning(f"Symbol refresh failed for {source}: {result}")
                continue
            self._by_source[source] = list(result)

        self._refreshed_at = self._clock()
        self._ranked = rank_symbols(
            symbol for symbols in self._by_source.values() for symbol in symbols
        )
        logger.info(
            f"Symbol universe refreshed: {len(self._ranked)} symbols "
            f"from {len(self._by_source)} source(s)"
        )
        return self.get()
