"""
Pattern Scanner Service

CONTRACT:
    Input:  list[Bar] plus indicator series
    Output: detector results bundled into Technicals
"""

from traderhub.services.scanner.divergence import detect_rsi_divergence
from traderhub.services.scanner.fibonacci import compute_fibonacci, select_anchor
from traderhub.services.scanner.patterns import (
    classify_candle,
    detect_candle_patterns,
    detect_fvgs,
    detect_gaps,
    detect_liquidity_sweeps,
    detect_ma_sweeps,
    detect_order_blocks,
)

__all__ = [
    "classify_candle",
    "compute_fibonacci",
    "detect_candle_patterns",
    "detect_fvgs",
    "detect_gaps",
    "detect_liquidity_sweeps",
    "detect_ma_sweeps",
    "detect_order_blocks",
    "detect_rsi_divergence",
    "select_anchor",
]
