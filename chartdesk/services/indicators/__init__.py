"""
Indicator Engine Service

CONTRACT:
    Input:  list[Kline]
    Output: IndicatorValues (latest point), IndicatorSeries (aligned history)

RESPONSIBILITIES:
    - Moving averages (SMA 7/21/50/200, EMA 12/26)
    - RSI (14) and dual RSI (13/42)
    - MACD (12/26/9), Bollinger Bands (20/2), KDJ (9/3/3), Williams %R (14)
    - Warm-up padding with None, never 0 or NaN
    - Bullish / bearish / neutral labels for the indicator panel

PURE PYTHON - No LLM involvement.
Uses NumPy for calculations.
All math is deterministic and reproducible.
"""

from chartdesk.services.indicators.service import (
    IndicatorService,
    get_indicator_service,
    calculate_indicators,
    get_indicator_series,
)
from chartdesk.services.indicators.signals import classify_all

__all__ = [
    "IndicatorService",
    "get_indicator_service",
    "calculate_indicators",
    "get_indicator_series",
    "classify_all",
]
