"""
ChartDesk Schema Contracts

This module defines all JSON contracts between system components.
These are the authoritative interfaces - all modules must conform to these schemas.
"""

from chartdesk.schemas.market import (
    TimeFrame,
    Kline,
    KlineResult,
    MarketSnapshot,
    SymbolSearchResult,
    POPULAR_SYMBOLS,
    canonical_symbol,
)
from chartdesk.schemas.indicators import (
    IndicatorConfig,
    IndicatorValues,
    IndicatorSeries,
    IndicatorSignal,
    IndicatorReport,
    MACDPoint,
    BollingerPoint,
    KDJPoint,
    SignalLabel,
)
from chartdesk.schemas.analysis import (
    TechnicalAnalysis,
    AnalysisScenario,
    AnalysisSummary,
    AnalysisRecord,
)

__all__ = [
    # Market
    "TimeFrame",
    "Kline",
    "KlineResult",
    "MarketSnapshot",
    "SymbolSearchResult",
    "POPULAR_SYMBOLS",
    "canonical_symbol",
    # Indicators
    "IndicatorConfig",
    "IndicatorValues",
    "IndicatorSeries",
    "IndicatorSignal",
    "IndicatorReport",
    "MACDPoint",
    "BollingerPoint",
    "KDJPoint",
    "SignalLabel",
    # Analysis
    "TechnicalAnalysis",
    "AnalysisScenario",
    "AnalysisSummary",
    "AnalysisRecord",
]
