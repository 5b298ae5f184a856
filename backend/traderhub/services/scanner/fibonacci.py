"""
Fibonacci retracement/extension levels anchored on the latest swing.

Anchor choice follows the trend state:
- uptrend:   nearest swing low before the latest swing high -> latest high
- downtrend: nearest swing high before the latest swing low -> latest low
- otherwise: whichever of the latest high/low is later, anchored to the
  nearest opposite pivot before it
"""

from typing import Optional, Sequence

from traderhub.core.config import AnalysisConfig, get_analysis_config
from traderhub.schemas.market import Bar
from traderhub.schemas.technicals import (
    FibAnchor,
    FibConfluence,
    FibLevel,
    Fibonacci,
    TrendState,
)
from traderhub.services.indicators.pivots import Pivot, PivotSet, pivots


def _prior(candidates: list[Pivot], before: int) -> Optional[Pivot]:
    for p in reversed(candidates):
        if p.index < before:
            return p
    return None


def select_anchor(swings: PivotSet, trend: TrendState) -> Optional[tuple[Pivot, Pivot]]:
    """(from, to) pivots for the current swing, or None."""
    if not swings.lows or not swings.highs:
        return None

    last_high = swings.highs[-1]
    last_low = swings.lows[-1]

    if trend == TrendState.UPTREND:
        anchor_to = last_high
    elif trend == TrendState.DOWNTREND:
        anchor_to = last_low
    else:
        anchor_to = last_high if last_high.index > last_low.index else last_low

    opposite = swings.lows if anchor_to is last_high else swings.highs
    anchor_from = _prior(opposite, anchor_to.index)
    if anchor_from is None:
        return None
    return anchor_from, anchor_to


def compute_fibonacci(
    bars: Sequence[Bar],
    trend: TrendState,
    sma_fast: Optional[float] = None,
    sma_mid: Optional[float] = None,
    atr: Optional[float] = None,
    config: Optional[AnalysisConfig] = None,
) -> Fibonacci:
    """Levels for the anchored swing plus MA confluences within 0.5 x ATR."""
    cfg = config or get_analysis_config()
    anchor = select_anchor(pivots(bars, cfg.fib_pivot_lookback), trend)
    if anchor is None:
        return Fibonacci()

    start, end = anchor
    move = abs(end.price - start.price)
    up = end.price > start.price
    sign = 1.0 if up else -1.0

    retracements = [
        FibLevel(level=lvl, price=end.price - sign * move * lvl)
        for lvl in cfg.fib_retracements
    ]
    extensions = [
        FibLevel(level=lvl, price=end.price + sign * move * (lvl - 1))
        for lvl in cfg.fib_extensions
    ]

    confluences: list[FibConfluence] = []
    tolerance = cfg.fib_confluence_atr_mult * atr if atr else 0.0
    if tolerance > 0:
        for r in retracements:
            reasons = []
            if sma_fast is not None and abs(r.price - sma_fast) <= tolerance:
                reasons.append(f"near_SMA{cfg.sma_fast}")
            if sma_mid is not None and abs(r.price - sma_mid) <= tolerance:
                reasons.append(f"near_SMA{cfg.sma_mid}")
            if reasons:
                confluences.append(FibConfluence(price=r.price, reasons=["fib_retracement", *reasons]))

    return Fibonacci(
        anchor=FibAnchor(
            from_price=start.price,
            to_price=end.price,
            from_date=start.date,
            to_date=end.date,
        ),
        retracements=retracements,
        extensions=extensions,
        confluences=confluences,
    )
