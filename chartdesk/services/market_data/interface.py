"""
Exchange Adapter Interface

Defines the contract every data source implements. Structural only:
adapters do not share a base class, they just provide these members.
"""

from typing import Optional, Protocol, runtime_checkable

from chartdesk.schemas.market import Kline, MarketSnapshot, TimeFrame


@runtime_checkable
class ExchangeAdapter(Protocol):
    """
    Exchange Adapter Contract.

    INPUT: canonical symbol (BTCUSDT), TimeFrame, limit

    OUTPUT:
        - fetch_klines: list[Kline], strictly ascending by time
        - fetch_snapshot: MarketSnapshot tagged with `name`
        - fetch_symbols: canonical USDT-quoted symbols tradable on the source

    ERRORS:
        Every failure surfaces as DataSourceError (TransportError or
        SourceDataError); transport exceptions never leak past the adapter.
    """

    name: str

    def supports(self, timeframe: TimeFrame) -> bool:
        """Whether the source has an interval token for `timeframe`."""
        ...

    async def fetch_klines(
        self, symbol: str, timeframe: TimeFrame, limit: int
    ) -> list[Kline]:
        ...

    async def fetch_snapshot(self, symbol: str) -> MarketSnapshot:
        ...

    async def fetch_symbols(self) -> list[str]:
        ...

    async def close(self) -> None:
        ...


# Quote assets recognised when splitting a canonical symbol. More specific
# quotes come first so USDT and FDUSD are matched before USD.
QUOTE_ASSETS = ("USDT", "USDC", "FDUSD", "BUSD", "USD", "BTC", "ETH")


def split_symbol(symbol: str) -> Optional[tuple[str, str]]:
    """BTCUSDT -> ("BTC", "USDT"). None if no known quote asset matches."""
    for quote in QUOTE_ASSETS:
        if symbol.endswith(quote) and len(symbol) > len(quote):
            return symbol[: -len(quote)], quote
    return None
