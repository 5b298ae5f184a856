"""
Technical Indicator Calculations

NumPy implementations of the indicators the pipeline needs.
All math is deterministic.

Every series is returned as a list aligned index-for-index with the input,
holding None until enough history exists. NaN never leaves this module.
"""

from typing import Optional, Sequence
import numpy as np

from traderhub.schemas.market import Bar

IndicatorSeries = list[Optional[float]]


# =============================================================================
# HELPERS
# =============================================================================


def bars_to_arrays(bars: Sequence[Bar]) -> tuple[np.ndarray, ...]:
    """Convert bars to (opens, highs, lows, closes, volumes) arrays."""
    opens = np.array([b.open for b in bars], dtype=float)
    highs = np.array([b.high for b in bars], dtype=float)
    lows = np.array([b.low for b in bars], dtype=float)
    closes = np.array([b.close for b in bars], dtype=float)
    volumes = np.array([b.volume for b in bars], dtype=float)
    return opens, highs, lows, closes, volumes


def _to_series(arr: np.ndarray) -> IndicatorSeries:
    return [None if np.isnan(v) else float(v) for v in arr]


def _empty(length: int) -> IndicatorSeries:
    return [None] * length


def value_at(series: Sequence[Optional[float]], index: int) -> Optional[float]:
    """Series value at index (negative allowed); None when out of range."""
    if not series or index >= len(series) or index < -len(series):
        return None
    return series[index]


def last_value(series: Sequence[Optional[float]]) -> Optional[float]:
    """Reading at the latest bar (None during warm-up)."""
    return value_at(series, -1)


def average(values: Sequence[float]) -> Optional[float]:
    """Arithmetic mean; None for an empty sequence."""
    if len(values) == 0:
        return None
    return float(np.mean(np.asarray(values, dtype=float)))


# =============================================================================
# MOVING AVERAGES
# =============================================================================


def sma(values: Sequence[float], period: int) -> IndicatorSeries:
    """Simple Moving Average (running sum)."""
    length = len(values)
    if period <= 0 or length < period:
        return _empty(length)

    data = np.asarray(values, dtype=float)
    csum = np.cumsum(data)
    window_sums = csum[period - 1:] - np.concatenate(([0.0], csum[:-period]))

    result = np.full(length, np.nan)
    result[period - 1:] = window_sums / period
    return _to_series(result)


# =============================================================================
# VOLATILITY
# =============================================================================


def true_range(prev_close: float, high: float, low: float) -> float:
    """max(high - low, |high - prev_close|, |low - prev_close|)."""
    return max(high - low, abs(high - prev_close), abs(low - prev_close))


def atr_wilder(bars: Sequence[Bar], period: int = 14) -> IndicatorSeries:
    """
    Average True Range with Wilder smoothing.

    The first value sits at index `period` and is the mean of the first
    `period` true ranges; later values use (prev * (period - 1) + tr) / period.
    """
    length = len(bars)
    if period <= 0 or length < period + 1:
        return _empty(length)

    _, highs, lows, closes, _ = bars_to_arrays(bars)
    prev_closes = closes[:-1]
    tr = np.maximum.reduce([
        highs[1:] - lows[1:],
        np.abs(highs[1:] - prev_closes),
        np.abs(lows[1:] - prev_closes),
    ])

    result = np.full(length, np.nan)
    prev = float(np.mean(tr[:period]))
    result[period] = prev

    # tr[i - 1] is the true range of bar i
    for i in range(period + 1, length):
        prev = (prev * (period - 1) + tr[i - 1]) / period
        result[i] = prev

    return _to_series(result)


# =============================================================================
# MOMENTUM
# =============================================================================


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def rsi_wilder(closes: Sequence[float], period: int = 14) -> IndicatorSeries:
    """Relative Strength Index with Wilder smoothing."""
    length = len(closes)
    if period <= 0 or length < period + 1:
        return _empty(length)

    deltas = np.diff(np.asarray(closes, dtype=float))
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = float(np.mean(gains[:period]))
    avg_loss = float(np.mean(losses[:period]))

    result = np.full(length, np.nan)
    result[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, length):
        avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period
        result[i] = _rsi_value(avg_gain, avg_loss)

    return _to_series(result)
