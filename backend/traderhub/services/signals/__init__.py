"""
Signal Synthesizer Service

CONTRACT:
    Input:  SignalInputs (detector outputs, MA snapshot, key levels, spot)
    Output: list[Signal], severity-sorted, deduplicated, capped
"""

from traderhub.services.signals.synthesizer import (
    SignalInputs,
    build_signals,
    candle_signals,
    divergence_signals,
    fmt,
    fvg_signals,
    key_level_signals,
    liquidity_signals,
    ma_cross_signals,
    rank_signals,
    rsi_signals,
)

__all__ = [
    "SignalInputs",
    "build_signals",
    "candle_signals",
    "divergence_signals",
    "fmt",
    "fvg_signals",
    "key_level_signals",
    "liquidity_signals",
    "ma_cross_signals",
    "rank_signals",
    "rsi_signals",
]
