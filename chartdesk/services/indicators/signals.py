"""
Indicator Signal Classification

Maps computed indicator values to a bullish / bearish / neutral label for the
indicator panel. Thresholds are presentation policy; changing them does not
affect any computed value.
"""

from typing import Optional

from chartdesk.schemas.indicators import (
    IndicatorValues,
    IndicatorSignal,
    MACDPoint,
    BollingerPoint,
    KDJPoint,
    SignalLabel,
)

# Price vs MA band
MA_BAND_PERCENT = 2.0

# RSI zones
RSI_OVERBOUGHT = 70
RSI_OVERSOLD = 30

# Bollinger bandwidth (% of middle) below which the bands count as squeezed
BB_SQUEEZE_PERCENT = 5.0

# KDJ zones
KDJ_OVERBOUGHT = 80
KDJ_OVERSOLD = 20

# Williams %R zones
WR_OVERBOUGHT = -20
WR_OVERSOLD = -80

_UNDEFINED = IndicatorSignal(signal=SignalLabel.NEUTRAL, label="-")


def classify_ma(ma: Optional[float], price: float) -> IndicatorSignal:
    """Price more than 2% above/below the MA."""
    if ma is None:
        return _UNDEFINED
    band = MA_BAND_PERCENT / 100
    if price > ma * (1 + band):
        return IndicatorSignal(signal=SignalLabel.BULLISH, label="above MA")
    if price < ma * (1 - band):
        return IndicatorSignal(signal=SignalLabel.BEARISH, label="below MA")
    return IndicatorSignal(signal=SignalLabel.NEUTRAL, label="near MA")


def classify_rsi(value: Optional[float]) -> IndicatorSignal:
    if value is None:
        return _UNDEFINED
    if value >= RSI_OVERBOUGHT:
        return IndicatorSignal(
            signal=SignalLabel.BEARISH, label="overbought", detail="pullback risk"
        )
    if value <= RSI_OVERSOLD:
        return IndicatorSignal(
            signal=SignalLabel.BULLISH, label="oversold", detail="rebound potential"
        )
    if value >= 50:
        return IndicatorSignal(
            signal=SignalLabel.BULLISH, label="strong", detail="bull zone"
        )
    return IndicatorSignal(signal=SignalLabel.BEARISH, label="weak", detail="bear zone")


def classify_macd(point: Optional[MACDPoint]) -> IndicatorSignal:
    if point is None or point.histogram is None or point.macd is None:
        return _UNDEFINED
    if point.histogram > 0:
        if point.macd > 0:
            return IndicatorSignal(signal=SignalLabel.BULLISH, label="bull momentum")
        return IndicatorSignal(signal=SignalLabel.BULLISH, label="bottom divergence")
    if point.histogram < 0:
        if point.macd < 0:
            return IndicatorSignal(signal=SignalLabel.BEARISH, label="bear momentum")
        return IndicatorSignal(signal=SignalLabel.BEARISH, label="top divergence")
    return IndicatorSignal(signal=SignalLabel.NEUTRAL, label="flat")


def classify_bollinger(point: Optional[BollingerPoint], price: float) -> IndicatorSignal:
    if point is None or None in (point.upper, point.middle, point.lower):
        return _UNDEFINED
    if price >= point.upper:
        return IndicatorSignal(
            signal=SignalLabel.BEARISH, label="upper band touch", detail="pullback risk"
        )
    if price <= point.lower:
        return IndicatorSignal(
            signal=SignalLabel.BULLISH, label="lower band touch", detail="rebound potential"
        )
    if point.middle and (point.upper - point.lower) / point.middle * 100 < BB_SQUEEZE_PERCENT:
        return IndicatorSignal(
            signal=SignalLabel.NEUTRAL, label="squeeze", detail="breakout pending"
        )
    return IndicatorSignal(signal=SignalLabel.NEUTRAL, label="inside bands")


def classify_kdj(point: Optional[KDJPoint]) -> IndicatorSignal:
    if point is None or None in (point.k, point.d, point.j):
        return _UNDEFINED
    if point.j > 100 or point.k > KDJ_OVERBOUGHT:
        return IndicatorSignal(signal=SignalLabel.BEARISH, label="overbought")
    if point.j < 0 or point.k < KDJ_OVERSOLD:
        return IndicatorSignal(signal=SignalLabel.BULLISH, label="oversold")
    if point.k > point.d:
        return IndicatorSignal(signal=SignalLabel.BULLISH, label="K above D")
    return IndicatorSignal(signal=SignalLabel.BEARISH, label="K below D")


def classify_williams_r(value: Optional[float]) -> IndicatorSignal:
    if value is None:
        return _UNDEFINED
    if value >= WR_OVERBOUGHT:
        return IndicatorSignal(signal=SignalLabel.BEARISH, label="overbought")
    if value <= WR_OVERSOLD:
        return IndicatorSignal(signal=SignalLabel.BULLISH, label="oversold")
    return IndicatorSignal(signal=SignalLabel.NEUTRAL, label="mid range")


def classify_all(values: IndicatorValues, price: float) -> dict[str, IndicatorSignal]:
    """Label every indicator in a snapshot against the current price."""
    return {
        "ma7": classify_ma(values.ma7, price),
        "ma21": classify_ma(values.ma21, price),
        "ma50": classify_ma(values.ma50, price),
        "ma200": classify_ma(values.ma200, price),
        "rsi": classify_rsi(values.rsi),
        "rsi13": classify_rsi(values.rsi13),
        "rsi42": classify_rsi(values.rsi42),
        "macd": classify_macd(values.macd),
        "bollinger_bands": classify_bollinger(values.bollinger_bands, price),
        "kdj": classify_kdj(values.kdj),
        "williams_r": classify_williams_r(values.williams_r),
    }
