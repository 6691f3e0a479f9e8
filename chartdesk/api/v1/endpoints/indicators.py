"""
Indicator API Endpoints

Endpoints for technical indicator calculations.
"""

import logging

from fastapi import APIRouter, Depends, Query

from chartdesk.core.config import settings
from chartdesk.schemas.indicators import IndicatorReport, IndicatorSeries
from chartdesk.schemas.market import TimeFrame
from chartdesk.services.base import AllSourcesExhausted
from chartdesk.services.indicators import classify_all, get_indicator_service
from chartdesk.services.market_data import MarketDataAggregator, get_aggregator
from chartdesk.api.v1.endpoints.market import sources_exhausted

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{symbol}", response_model=IndicatorReport)
async def get_indicators(
    symbol: str,
    timeframe: TimeFrame = TimeFrame.H1,
    limit: int = Query(default=settings.default_kline_limit, ge=1, le=1000),
    aggregator: MarketDataAggregator = Depends(get_aggregator),
):
    """
    Latest indicator values with bullish / bearish / neutral labels.

    Values still inside their warm-up window are null.
    """
    try:
        result = await aggregator.fetch_klines(symbol, timeframe, limit)
    except AllSourcesExhausted as e:
        raise sources_exhausted(e)

    values = get_indicator_service().calculate_indicators(result.klines)
    price = result.klines[-1].close if result.klines else None
    signals = classify_all(values, price) if price is not None else {}

    logger.debug(f"Indicators for {result.symbol} {timeframe.value} from {result.data_source}")
    return IndicatorReport(
        symbol=result.symbol,
        timeframe=timeframe.value,
        data_source=result.data_source,
        price=price,
        values=values,
        signals=signals,
    )


@router.get("/{symbol}/series", response_model=IndicatorSeries)
async def get_indicator_series(
    symbol: str,
    timeframe: TimeFrame = TimeFrame.H1,
    limit: int = Query(default=settings.default_kline_limit, ge=1, le=1000),
    aggregator: MarketDataAggregator = Depends(get_aggregator),
):
    """Full indicator history aligned index-for-index with the klines."""
    try:
        result = await aggregator.fetch_klines(symbol, timeframe, limit)
    except AllSourcesExhausted as e:
        raise sources_exhausted(e)

    return get_indicator_service().get_indicator_series(result.klines)
