"""
Technical Indicator Calculations

Pure Python/NumPy implementations of technical indicators.
NO LLM INVOLVEMENT - All math is deterministic.

Every function returns an array the same length as its input. NaN marks
indices where the indicator is still warming up; conversion to None happens
at the schema boundary via `to_optional_list` / `last_value`.
"""

import numpy as np
from typing import Optional, Sequence


def _check_period(period: int) -> None:
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")


def as_array(data: Sequence[float]) -> np.ndarray:
    """Coerce a sequence to a float64 array."""
    return np.asarray(data, dtype=np.float64)


# =============================================================================
# SERIES MATH PRIMITIVES
# =============================================================================


def sma(data: np.ndarray, period: int) -> np.ndarray:
    """Simple Moving Average."""
    _check_period(period)
    data = as_array(data)
    result = np.full(len(data), np.nan)
    if len(data) < period:
        return result

    for i in range(period - 1, len(data)):
        result[i] = np.mean(data[i - period + 1 : i + 1])
    return result


def ema(data: np.ndarray, period: int) -> np.ndarray:
    """
    Exponential Moving Average.

    Seeded at index period-1 with the SMA of the first `period` values,
    then ema[i] = (data[i] - ema[i-1]) * 2/(period+1) + ema[i-1].
    """
    _check_period(period)
    data = as_array(data)
    result = np.full(len(data), np.nan)
    if len(data) < period:
        return result

    multiplier = 2 / (period + 1)

    # Start with SMA
    result[period - 1] = np.mean(data[:period])

    for i in range(period, len(data)):
        result[i] = (data[i] - result[i - 1]) * multiplier + result[i - 1]

    return result


def rolling_std(data: np.ndarray, period: int) -> np.ndarray:
    """Population standard deviation over the trailing window."""
    _check_period(period)
    data = as_array(data)
    result = np.full(len(data), np.nan)

    for i in range(period - 1, len(data)):
        result[i] = np.std(data[i - period + 1 : i + 1])
    return result


def rolling_max(data: np.ndarray, period: int) -> np.ndarray:
    """Highest value over the trailing window."""
    _check_period(period)
    data = as_array(data)
    result = np.full(len(data), np.nan)

    for i in range(period - 1, len(data)):
        result[i] = np.max(data[i - period + 1 : i + 1])
    return result


def rolling_min(data: np.ndarray, period: int) -> np.ndarray:
    """Lowest value over the trailing window."""
    _check_period(period)
    data = as_array(data)
    result = np.full(len(data), np.nan)

    for i in range(period - 1, len(data)):
        result[i] = np.min(data[i - period + 1 : i + 1])
    return result


# =============================================================================
# MOMENTUM INDICATORS
# =============================================================================


def rsi(closes: np.ndarray, period: int = 14) -> np.ndarray:
    """
    Relative Strength Index with Wilder smoothing.

    First value lands at index `period`. Saturates at 100 when the average
    loss is zero.
    """
    _check_period(period)
    closes = as_array(closes)
    result = np.full(len(closes), np.nan)
    if len(closes) < period + 1:
        return result

    deltas = np.diff(closes)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = np.mean(gains[:period])
    avg_loss = np.mean(losses[:period])
    result[period] = _rsi_from_averages(avg_gain, avg_loss)

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        result[i + 1] = _rsi_from_averages(avg_gain, avg_loss)

    return result


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def dual_rsi(
    closes: np.ndarray, short_period: int = 13, long_period: int = 42
) -> tuple[np.ndarray, np.ndarray]:
    """
    Two independent RSI series for multi-horizon confirmation.

    Returns: (short_rsi, long_rsi)
    """
    return rsi(closes, short_period), rsi(closes, long_period)


def macd(
    closes: np.ndarray,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    MACD (Moving Average Convergence Divergence).

    The signal line is an EMA over the defined suffix of the MACD line,
    written back onto the original index space.

    Returns: (macd_line, signal_line, histogram)
    """
    _check_period(signal_period)
    closes = as_array(closes)
    fast_ema = ema(closes, fast_period)
    slow_ema = ema(closes, slow_period)

    macd_line = fast_ema - slow_ema

    signal_line = np.full(len(closes), np.nan)
    defined = np.flatnonzero(~np.isnan(macd_line))
    if len(defined) > 0:
        start = defined[0]
        signal_line[start:] = ema(macd_line[start:], signal_period)

    histogram = macd_line - signal_line

    return macd_line, signal_line, histogram


def kdj(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    period: int = 9,
    k_smoothing: int = 3,
    d_smoothing: int = 3,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    KDJ stochastic oscillator.

    RSV over a rolling high/low window, K and D smoothed from a seed of 50,
    J = 3K - 2D. A flat window yields RSV = 50.

    Returns: (k, d, j)
    """
    _check_period(k_smoothing)
    _check_period(d_smoothing)
    closes = as_array(closes)
    n = len(closes)
    k = np.full(n, np.nan)
    d = np.full(n, np.nan)
    if n < period:
        return k, d, np.full(n, np.nan)

    highest_high = rolling_max(highs, period)
    lowest_low = rolling_min(lows, period)

    prev_k = 50.0
    prev_d = 50.0
    for i in range(period - 1, n):
        spread = highest_high[i] - lowest_low[i]
        if spread == 0:
            rsv = 50.0
        else:
            rsv = (closes[i] - lowest_low[i]) / spread * 100

        prev_k = ((k_smoothing - 1) * prev_k + rsv) / k_smoothing
        prev_d = ((d_smoothing - 1) * prev_d + prev_k) / d_smoothing
        k[i] = prev_k
        d[i] = prev_d

    j = 3 * k - 2 * d
    return k, d, j


def williams_r(
    highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int = 14
) -> np.ndarray:
    """Williams %R. A flat window yields the -50 midpoint."""
    closes = as_array(closes)
    result = np.full(len(closes), np.nan)
    if len(closes) < period:
        return result

    highest_high = rolling_max(highs, period)
    lowest_low = rolling_min(lows, period)

    for i in range(period - 1, len(closes)):
        if highest_high[i] == lowest_low[i]:
            result[i] = -50.0
        else:
            result[i] = ((highest_high[i] - closes[i]) / (highest_high[i] - lowest_low[i])) * -100

    return result


# =============================================================================
# VOLATILITY INDICATORS
# =============================================================================


def bollinger_bands(
    closes: np.ndarray, period: int = 20, std_dev: float = 2.0
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Bollinger Bands.

    Returns: (upper, middle, lower)
    """
    middle = sma(closes, period)
    half_width = std_dev * rolling_std(closes, period)

    upper = middle + half_width
    lower = middle - half_width

    return upper, middle, lower


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def to_optional_list(arr: np.ndarray) -> list[Optional[float]]:
    """Convert an array to a list with None in place of NaN."""
    return [None if np.isnan(v) else float(v) for v in arr]


def last_value(arr: np.ndarray) -> Optional[float]:
    """Value at the final index, or None if empty or still warming up."""
    if len(arr) == 0 or np.isnan(arr[-1]):
        return None
    return float(arr[-1])
