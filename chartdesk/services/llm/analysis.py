"""
Analysis Report Service Implementation

Fetches klines, computes indicators, asks the LLM for a TechnicalAnalysis
and caches the result per symbol.

CRITICAL: LLM does NO math. All numbers come from the Indicator Engine.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from chartdesk.core.config import settings
from chartdesk.schemas.analysis import AnalysisRecord
from chartdesk.schemas.market import TimeFrame, canonical_symbol
from chartdesk.services.base import LLMUnavailableError
from chartdesk.services.cache.redis_client import AnalysisCache, get_analysis_cache
from chartdesk.services.indicators import get_indicator_service
from chartdesk.services.llm.client import LLMClient, get_llm_client
from chartdesk.services.llm.parser import parse_analysis_response
from chartdesk.services.llm.prompts import ANALYSIS_SYSTEM_PROMPT, build_analysis_prompt
from chartdesk.services.market_data.aggregator import MarketDataAggregator, get_aggregator

logger = logging.getLogger(__name__)


class AnalysisService:
    """
    Generates and caches analysis reports.

    Usage:
        service = AnalysisService()
        record = await service.generate_analysis("BTCUSDT", TimeFrame.H4)
        cached = await service.get_cached_analysis("BTCUSDT")
    """

    def __init__(
        self,
        aggregator: Optional[MarketDataAggregator] = None,
        llm_client: Optional[LLMClient] = None,
        cache: Optional[AnalysisCache] = None,
    ):
        self._aggregator = aggregator
        self._llm_client = llm_client
        self._cache = cache

    @property
    def aggregator(self) -> MarketDataAggregator:
        if self._aggregator is None:
            self._aggregator = get_aggregator()
        return self._aggregator

    @property
    def llm_client(self) -> LLMClient:
        """Lazy initialization of LLM client."""
        if self._llm_client is None:
            self._llm_client = get_llm_client()
        return self._llm_client

    @property
    def cache(self) -> AnalysisCache:
        if self._cache is None:
            self._cache = get_analysis_cache()
        return self._cache

    @property
    def name(self) -> str:
        return "AnalysisService"

    async def generate_analysis(
        self,
        symbol: str,
        timeframe: TimeFrame,
        limit: Optional[int] = None,
    ) -> AnalysisRecord:
        """
        Build a fresh report and store it as the symbol's latest.

        Raises AllSourcesExhausted when no kline source answers and
        LLMUnavailableError when the model fails or returns an invalid report.
        """
        symbol = canonical_symbol(symbol)
        result = await self.aggregator.fetch_klines(
            symbol, timeframe, limit or settings.default_kline_limit
        )
        if not result.klines:
            raise LLMUnavailableError(f"No klines to analyse for {symbol}")

        values = get_indicator_service().calculate_indicators(result.klines)
        user_prompt = build_analysis_prompt(symbol, timeframe, result.klines, values)

        response = await self.llm_client.generate(
            system_prompt=ANALYSIS_SYSTEM_PROMPT,
            user_prompt=user_prompt,
        )

        analysis = parse_analysis_response(response.content)
        if analysis is None:
            logger.error(f"Unusable analysis from {response.model} for {symbol}")
            raise LLMUnavailableError(
                "Model returned an invalid analysis report",
                details={"model": response.model},
            )

        record = AnalysisRecord(
            symbol=symbol,
            timeframe=timeframe.value,
            generated_at=datetime.now(timezone.utc),
            model=response.model,
            analysis=analysis,
        )
        await self.cache.set_analysis(record)
        logger.info(
            f"Analysis for {symbol} {timeframe.value} generated by {response.model} "
            f"from {result.data_source} data"
        )
        return record

    async def get_cached_analysis(self, symbol: str) -> Optional[AnalysisRecord]:
        return await self.cache.get_analysis(symbol)


# Singleton instance
_analysis_service: Optional[AnalysisService] = None


def get_analysis_service() -> AnalysisService:
    """Get or create analysis service singleton."""
    global _analysis_service
    if _analysis_service is None:
        _analysis_service = AnalysisService()
    return _analysis_service
