"""
CONTRACT 2: Indicator Engine

Input: list[Kline]
Output: IndicatorValues (latest point) and IndicatorSeries (full history)

This module performs ALL mathematical calculations.
Pure Python/NumPy - NO LLM involvement.
"""

from enum import Enum
from typing import Annotated, Optional
from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================


class SignalLabel(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


# =============================================================================
# CONFIG
# =============================================================================


Period = Annotated[int, Field(ge=1)]


class IndicatorConfig(BaseModel):
    """Indicator parameters. Defaults are the classic settings."""

    ma_periods: tuple[Period, Period, Period, Period] = (7, 21, 50, 200)
    ema_fast: int = Field(default=12, ge=1)
    ema_slow: int = Field(default=26, ge=1)
    macd_signal: int = Field(default=9, ge=1)
    rsi_period: int = Field(default=14, ge=1)
    rsi_short: int = Field(default=13, ge=1)
    rsi_long: int = Field(default=42, ge=1)
    bb_period: int = Field(default=20, ge=1)
    bb_std_dev: float = Field(default=2.0, gt=0)
    kdj_period: int = Field(default=9, ge=1)
    kdj_k_smoothing: int = Field(default=3, ge=1)
    kdj_d_smoothing: int = Field(default=3, ge=1)
    williams_period: int = Field(default=14, ge=1)


# =============================================================================
# OUTPUT: Composite points
# =============================================================================


class MACDPoint(BaseModel):
    """MACD line (DIF), signal line (DEA) and histogram."""

    macd: Optional[float] = None
    signal: Optional[float] = None
    histogram: Optional[float] = None


class BollingerPoint(BaseModel):
    upper: Optional[float] = None
    middle: Optional[float] = None
    lower: Optional[float] = None


class KDJPoint(BaseModel):
    k: Optional[float] = None
    d: Optional[float] = None
    j: Optional[float] = None


# =============================================================================
# OUTPUT: Snapshot and Series
# =============================================================================


class IndicatorValues(BaseModel):
    """
    Latest value of every indicator.

    Each field is None while the indicator is still warming up.
    Composite indicators are None unless every component is defined.
    """

    ma7: Optional[float] = None
    ma21: Optional[float] = None
    ma50: Optional[float] = None
    ma200: Optional[float] = None
    ema12: Optional[float] = None
    ema26: Optional[float] = None
    rsi: Optional[float] = None
    rsi13: Optional[float] = None
    rsi42: Optional[float] = None
    macd: Optional[MACDPoint] = None
    bollinger_bands: Optional[BollingerPoint] = None
    kdj: Optional[KDJPoint] = None
    williams_r: Optional[float] = None


class IndicatorSeries(BaseModel):
    """
    Every indicator as a list aligned index-for-index with the input klines.

    `time[i]` is the open time of `klines[i]`, so each point can be plotted
    against its bar.
    """

    time: list[int] = Field(default_factory=list)
    ma7: list[Optional[float]] = Field(default_factory=list)
    ma21: list[Optional[float]] = Field(default_factory=list)
    ma50: list[Optional[float]] = Field(default_factory=list)
    ma200: list[Optional[float]] = Field(default_factory=list)
    ema12: list[Optional[float]] = Field(default_factory=list)
    ema26: list[Optional[float]] = Field(default_factory=list)
    rsi: list[Optional[float]] = Field(default_factory=list)
    rsi13: list[Optional[float]] = Field(default_factory=list)
    rsi42: list[Optional[float]] = Field(default_factory=list)
    macd: list[MACDPoint] = Field(default_factory=list)
    bollinger_bands: list[BollingerPoint] = Field(default_factory=list)
    kdj: list[KDJPoint] = Field(default_factory=list)
    williams_r: list[Optional[float]] = Field(default_factory=list)


class IndicatorSignal(BaseModel):
    """Presentation label derived from one indicator value."""

    signal: SignalLabel
    label: str
    detail: str = ""


class IndicatorReport(BaseModel):
    """API payload: latest values plus their signal labels."""

    symbol: str
    timeframe: str
    data_source: str
    price: Optional[float] = None
    values: IndicatorValues
    signals: dict[str, IndicatorSignal]
