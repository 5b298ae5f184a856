"""
RSI divergence detection over the last two swing pivots.

Strength is a fixed policy table:
    1 base
    +1 when the RSI difference between the pivots is at least 5 points
    +1 when the second pivot sits within 20 bars of the series end
"""

from typing import Optional, Sequence

from traderhub.core.config import AnalysisConfig, get_analysis_config
from traderhub.schemas.market import Bar
from traderhub.schemas.technicals import DivergenceType, RSIDivergence
from traderhub.services.indicators.pivots import Pivot, pivots


def _strength(first_rsi: float, second_rsi: float, second: Pivot, bar_count: int, cfg: AnalysisConfig) -> int:
    strength = 1
    if abs(second_rsi - first_rsi) >= cfg.divergence_rsi_delta:
        strength += 1
    if bar_count - 1 - second.index <= cfg.divergence_recent_bars:
        strength += 1
    return strength


def _rsi_pair(rsi: Sequence[Optional[float]], first: Pivot, second: Pivot) -> Optional[tuple[float, float]]:
    if first.index >= len(rsi) or second.index >= len(rsi):
        return None
    r1 = rsi[first.index]
    r2 = rsi[second.index]
    if r1 is None or r2 is None:
        return None
    return r1, r2


def detect_rsi_divergence(
    bars: Sequence[Bar],
    rsi: Sequence[Optional[float]],
    config: Optional[AnalysisConfig] = None,
) -> RSIDivergence:
    """
    Bullish: lower swing low with a higher RSI.
    Bearish: higher swing high with a lower RSI.

    When both fire, bearish wins only with strictly greater strength.
    """
    cfg = config or get_analysis_config()
    swings = pivots(bars, cfg.pivot_lookback)
    best = RSIDivergence()

    if len(swings.lows) >= 2:
        first, second = swings.lows[-2:]
        pair = _rsi_pair(rsi, first, second)
        if pair and second.price < first.price and pair[1] > pair[0]:
            best = RSIDivergence(
                type=DivergenceType.BULLISH,
                strength=_strength(pair[0], pair[1], second, len(bars), cfg),
                pivot_dates=[first.date, second.date],
            )

    if len(swings.highs) >= 2:
        first, second = swings.highs[-2:]
        pair = _rsi_pair(rsi, first, second)
        if pair and second.price > first.price and pair[1] < pair[0]:
            strength = _strength(pair[0], pair[1], second, len(bars), cfg)
            if strength > best.strength:
                best = RSIDivergence(
                    type=DivergenceType.BEARISH,
                    strength=strength,
                    pivot_dates=[first.date, second.date],
                )

    return best
