"""
Market Data API Endpoints

Endpoints for klines, 24h snapshots and symbol search.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from chartdesk.core.config import settings
from chartdesk.schemas.market import (
    KlineResult,
    MarketSnapshot,
    POPULAR_SYMBOLS,
    SymbolSearchResult,
    TimeFrame,
)
from chartdesk.services.base import AllSourcesExhausted
from chartdesk.services.market_data import MarketDataAggregator, get_aggregator

router = APIRouter()


def sources_exhausted(error: AllSourcesExhausted) -> HTTPException:
    """502 carrying the list of sources that were tried."""
    return HTTPException(
        status_code=502,
        detail={
            "message": error.message,
            "sources": error.sources,
            "attempts": error.details.get("attempts", []),
        },
    )


@router.get("/klines/{symbol}", response_model=KlineResult)
async def get_klines(
    symbol: str,
    timeframe: TimeFrame = TimeFrame.H1,
    limit: int = Query(default=settings.default_kline_limit, ge=1, le=1000),
    aggregator: MarketDataAggregator = Depends(get_aggregator),
):
    """
    Candlesticks for a symbol, oldest first.

    Served by the first source in priority order that answers;
    `data_source` names it.
    """
    try:
        return await aggregator.fetch_klines(symbol, timeframe, limit)
    except AllSourcesExhausted as e:
        raise sources_exhausted(e)


@router.get("/snapshot/{symbol}", response_model=MarketSnapshot)
async def get_snapshot(
    symbol: str,
    aggregator: MarketDataAggregator = Depends(get_aggregator),
):
    """24h price, change, range and volume."""
    try:
        return await aggregator.fetch_market_snapshot(symbol)
    except AllSourcesExhausted as e:
        raise sources_exhausted(e)


@router.get("/search", response_model=SymbolSearchResult)
async def search_symbols(
    q: str = Query(default="", description="Search query"),
    limit: int = Query(default=30, ge=1, le=100),
    aggregator: MarketDataAggregator = Depends(get_aggregator),
):
    """
    Search tradable pairs for autocomplete.

    Popular pairs rank first; an exact match is always at the top.
    """
    results = await aggregator.search_symbols(q, limit)
    return SymbolSearchResult(query=q, results=results, count=len(results))


@router.get("/popular")
async def get_popular_symbols():
    """Popular pairs in display order."""
    return {"symbols": POPULAR_SYMBOLS}


@router.get("/sources")
async def get_data_sources(
    aggregator: MarketDataAggregator = Depends(get_aggregator),
):
    """Configured data sources in fallback order."""
    return {"sources": aggregator.source_names}
