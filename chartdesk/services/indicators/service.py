"""
Indicator Engine Service Implementation

Calculates all technical indicators from a Kline window.
NO LLM INVOLVEMENT - Pure Python/NumPy calculations.
"""

from typing import Optional, Sequence
import numpy as np

from chartdesk.schemas.market import Kline
from chartdesk.schemas.indicators import (
    IndicatorConfig,
    IndicatorValues,
    IndicatorSeries,
    MACDPoint,
    BollingerPoint,
    KDJPoint,
)
from chartdesk.services.indicators.calculations import (
    sma,
    ema,
    rsi,
    dual_rsi,
    macd,
    kdj,
    williams_r,
    bollinger_bands,
    to_optional_list,
    last_value,
)


def _klines_to_arrays(klines: Sequence[Kline]) -> tuple:
    """Convert a Kline list to numpy arrays."""
    highs = np.array([k.high for k in klines], dtype=np.float64)
    lows = np.array([k.low for k in klines], dtype=np.float64)
    closes = np.array([k.close for k in klines], dtype=np.float64)
    return highs, lows, closes


class IndicatorService:
    """
    Indicator Engine Service.

    Produces two views of the same computation: the latest value of every
    indicator (for the indicator panel and report prompt) and the full
    index-aligned series (for chart overlays). Stateless between calls.
    """

    def __init__(self, config: Optional[IndicatorConfig] = None):
        self.config = config or IndicatorConfig()

    @property
    def name(self) -> str:
        return "IndicatorService"

    def _compute(self, klines: Sequence[Kline]) -> dict[str, np.ndarray]:
        cfg = self.config
        highs, lows, closes = _klines_to_arrays(klines)

        ma7, ma21, ma50, ma200 = (sma(closes, p) for p in cfg.ma_periods)
        rsi_short, rsi_long = dual_rsi(closes, cfg.rsi_short, cfg.rsi_long)
        macd_line, signal_line, histogram = macd(
            closes, cfg.ema_fast, cfg.ema_slow, cfg.macd_signal
        )
        bb_upper, bb_middle, bb_lower = bollinger_bands(
            closes, cfg.bb_period, cfg.bb_std_dev
        )
        k, d, j = kdj(
            highs, lows, closes, cfg.kdj_period, cfg.kdj_k_smoothing, cfg.kdj_d_smoothing
        )

        return {
            "ma7": ma7,
            "ma21": ma21,
            "ma50": ma50,
            "ma200": ma200,
            "ema12": ema(closes, cfg.ema_fast),
            "ema26": ema(closes, cfg.ema_slow),
            "rsi": rsi(closes, cfg.rsi_period),
            "rsi13": rsi_short,
            "rsi42": rsi_long,
            "macd": macd_line,
            "macd_signal": signal_line,
            "macd_histogram": histogram,
            "bb_upper": bb_upper,
            "bb_middle": bb_middle,
            "bb_lower": bb_lower,
            "kdj_k": k,
            "kdj_d": d,
            "kdj_j": j,
            "williams_r": williams_r(highs, lows, closes, cfg.williams_period),
        }

    def calculate_indicators(self, klines: Sequence[Kline]) -> IndicatorValues:
        """Latest value of every indicator. Empty input gives all-None values."""
        if not klines:
            return IndicatorValues()

        arrays = self._compute(klines)
        latest = {name: last_value(arr) for name, arr in arrays.items()}

        macd_point = None
        if None not in (latest["macd"], latest["macd_signal"], latest["macd_histogram"]):
            macd_point = MACDPoint(
                macd=latest["macd"],
                signal=latest["macd_signal"],
                histogram=latest["macd_histogram"],
            )

        bb_point = None
        if latest["bb_middle"] is not None:
            bb_point = BollingerPoint(
                upper=latest["bb_upper"],
                middle=latest["bb_middle"],
                lower=latest["bb_lower"],
            )

        kdj_point = None
        if latest["kdj_k"] is not None:
            kdj_point = KDJPoint(k=latest["kdj_k"], d=latest["kdj_d"], j=latest["kdj_j"])

        return IndicatorValues(
            ma7=latest["ma7"],
            ma21=latest["ma21"],
            ma50=latest["ma50"],
            ma200=latest["ma200"],
            ema12=latest["ema12"],
            ema26=latest["ema26"],
            rsi=latest["rsi"],
            rsi13=latest["rsi13"],
            rsi42=latest["rsi42"],
            macd=macd_point,
            bollinger_bands=bb_point,
            kdj=kdj_point,
            williams_r=latest["williams_r"],
        )

    def get_indicator_series(self, klines: Sequence[Kline]) -> IndicatorSeries:
        """Every indicator aligned to `klines`. Empty input gives empty series."""
        if not klines:
            return IndicatorSeries()

        arrays = self._compute(klines)
        lists = {name: to_optional_list(arr) for name, arr in arrays.items()}

        return IndicatorSeries(
            time=[k.time for k in klines],
            ma7=lists["ma7"],
            ma21=lists["ma21"],
            ma50=lists["ma50"],
            ma200=lists["ma200"],
            ema12=lists["ema12"],
            ema26=lists["ema26"],
            rsi=lists["rsi"],
            rsi13=lists["rsi13"],
            rsi42=lists["rsi42"],
            macd=[
                MACDPoint(macd=m, signal=s, histogram=h)
                for m, s, h in zip(lists["macd"], lists["macd_signal"], lists["macd_histogram"])
            ],
            bollinger_bands=[
                BollingerPoint(upper=u, middle=m, lower=lo)
                for u, m, lo in zip(lists["bb_upper"], lists["bb_middle"], lists["bb_lower"])
            ],
            kdj=[
                KDJPoint(k=k, d=d, j=j)
                for k, d, j in zip(lists["kdj_k"], lists["kdj_d"], lists["kdj_j"])
            ],
            williams_r=lists["williams_r"],
        )


# Singleton instance
_service_instance: Optional[IndicatorService] = None


def get_indicator_service() -> IndicatorService:
    """Get or create indicator service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = IndicatorService()
    return _service_instance


def calculate_indicators(klines: Sequence[Kline]) -> IndicatorValues:
    """Latest indicator snapshot using the default configuration."""
    return get_indicator_service().calculate_indicators(klines)


def get_indicator_series(klines: Sequence[Kline]) -> IndicatorSeries:
    """Full indicator series using the default configuration."""
    return get_indicator_service().get_indicator_series(klines)
