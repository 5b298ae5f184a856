"""
Indicator Library

CONTRACT:
    Input:  list[Bar] (or close prices)
    Output: IndicatorSeries aligned with the bars (None during warm-up)

Uses NumPy for calculations.
All math is deterministic and reproducible.
"""

from traderhub.services.indicators.calculations import (
    IndicatorSeries,
    atr_wilder,
    average,
    bars_to_arrays,
    last_value,
    rsi_wilder,
    sma,
    true_range,
    value_at,
)
from traderhub.services.indicators.pivots import (
    Pivot,
    PivotKind,
    PivotSet,
    key_levels_from_pivots,
    pivots,
)

__all__ = [
    "IndicatorSeries",
    "atr_wilder",
    "average",
    "bars_to_arrays",
    "last_value",
    "rsi_wilder",
    "sma",
    "true_range",
    "value_at",
    "Pivot",
    "PivotKind",
    "PivotSet",
    "key_levels_from_pivots",
    "pivots",
]
