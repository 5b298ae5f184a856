"""
Pattern Detection Algorithms

Independent scanners over a daily bar window: gaps, candlestick patterns,
moving-average sweeps, fair value gaps, order blocks and liquidity sweeps.

Every scanner is pure, returns its results in bar order (most recent last)
and keeps only the most recent N. Too little history yields an empty list.
"""

from typing import Mapping, Optional, Sequence

from traderhub.core.config import AnalysisConfig, get_analysis_config
from traderhub.schemas.market import Bar
from traderhub.schemas.technicals import (
    CandlePattern,
    CandlePatternType,
    Direction,
    FVG,
    Gap,
    GapDirection,
    GapStatus,
    LiquiditySweep,
    MASweep,
    OrderBlock,
    SweepKind,
)
from traderhub.services.indicators.calculations import atr_wilder, sma, true_range
from traderhub.services.indicators.pivots import pivots


def _tail(items: list, limit: int) -> list:
    if limit <= 0:
        return []
    return items[-limit:]


def _overlaps(bar: Bar, zone_low: float, zone_high: float) -> bool:
    return bar.low <= zone_high and bar.high >= zone_low


# =============================================================================
# GAPS
# =============================================================================


def detect_gaps(
    bars: Sequence[Bar],
    config: Optional[AnalysisConfig] = None,
) -> list[Gap]:
    """
    Detect opening gaps and track their fill status.

    Gap up: open above the prior high, zone [prior high, open].
    Gap down: open below the prior low, zone [open, prior low].
    Status only moves forward (unfilled -> partial -> filled) and the
    search stops at the first full fill.
    """
    cfg = config or get_analysis_config()
    gaps: list[Gap] = []

    for i in range(1, len(bars)):
        prev = bars[i - 1]
        cur = bars[i]

        gap_up = cur.open > prev.high
        gap_down = cur.open < prev.low
        if not gap_up and not gap_down:
            continue

        if gap_up:
            zone_low, zone_high = prev.high, cur.open
        else:
            zone_low, zone_high = cur.open, prev.low

        status = GapStatus.UNFILLED
        end = min(len(bars) - 1, i + cfg.gap_lookahead)
        for k in range(i + 1, end + 1):
            b = bars[k]
            fully_filled = b.low <= zone_low if gap_up else b.high >= zone_high
            if fully_filled:
                status = GapStatus.FILLED
                break
            if _overlaps(b, zone_low, zone_high):
                status = GapStatus.PARTIAL

        gaps.append(Gap(
            date=cur.date,
            direction=GapDirection.GAP_UP if gap_up else GapDirection.GAP_DOWN,
            prev_close=prev.close,
            open=cur.open,
            zone_low=zone_low,
            zone_high=zone_high,
            size_pct=abs(cur.open - prev.close) / prev.close,
            status=status,
        ))

    return _tail(gaps, cfg.gap_max_results)


# =============================================================================
# CANDLESTICK PATTERNS
# =============================================================================


def classify_candle(
    prev: Bar,
    cur: Bar,
    config: Optional[AnalysisConfig] = None,
) -> list[CandlePatternType]:
    """Pattern tags for `cur` given the bar before it."""
    cfg = config or get_analysis_config()
    tags: list[CandlePatternType] = []

    rng = cur.range_size
    if rng <= 0:
        return tags

    body_ratio = cur.body / rng
    upper_wick = (cur.high - max(cur.open, cur.close)) / rng
    lower_wick = (min(cur.open, cur.close) - cur.low) / rng

    if body_ratio < cfg.doji_body_ratio:
        tags.append(CandlePatternType.DOJI)

    if body_ratio < cfg.pin_body_ratio:
        if lower_wick >= cfg.pin_wick_ratio and upper_wick < cfg.pin_opposite_wick_ratio:
            tags.append(CandlePatternType.HAMMER)
        if upper_wick >= cfg.pin_wick_ratio and lower_wick < cfg.pin_opposite_wick_ratio:
            tags.append(CandlePatternType.SHOOTING_STAR)

    # Engulfing: opposite colours, current body contains and exceeds the prior body
    contains = (
        min(cur.open, cur.close) <= min(prev.open, prev.close)
        and max(cur.open, cur.close) >= max(prev.open, prev.close)
        and cur.body > prev.body
    )
    if contains and cur.is_bullish and prev.is_bearish:
        tags.append(CandlePatternType.BULLISH_ENGULFING)
    if contains and cur.is_bearish and prev.is_bullish:
        tags.append(CandlePatternType.BEARISH_ENGULFING)

    if cur.high <= prev.high and cur.low >= prev.low:
        tags.append(CandlePatternType.INSIDE_BAR)
    if cur.high >= prev.high and cur.low <= prev.low:
        tags.append(CandlePatternType.OUTSIDE_BAR)

    return tags


def detect_candle_patterns(
    bars: Sequence[Bar],
    config: Optional[AnalysisConfig] = None,
) -> list[CandlePattern]:
    """Tag every bar (from the second onward) with its candlestick patterns."""
    cfg = config or get_analysis_config()
    out: list[CandlePattern] = []
    for i in range(1, len(bars)):
        for tag in classify_candle(bars[i - 1], bars[i], cfg):
            out.append(CandlePattern(date=bars[i].date, pattern=tag))
    return _tail(out, cfg.candle_max_results)


# =============================================================================
# MOVING-AVERAGE SWEEPS
# =============================================================================


def detect_ma_sweeps(
    bars: Sequence[Bar],
    averages: Mapping[str, Sequence[Optional[float]]],
    config: Optional[AnalysisConfig] = None,
) -> list[MASweep]:
    """
    Bars that pierce a moving average intrabar and close back across it.

    Bullish: low < ma < close. Bearish: high > ma > close.
    `averages` maps a display name (e.g. "sma20") to a series aligned with bars.
    """
    cfg = config or get_analysis_config()
    out: list[MASweep] = []

    for i, b in enumerate(bars):
        for name, series in averages.items():
            ma = series[i] if i < len(series) else None
            if ma is None:
                continue
            if b.low < ma < b.close:
                out.append(MASweep(date=b.date, ma_name=name, direction=Direction.BULLISH))
            if b.high > ma > b.close:
                out.append(MASweep(date=b.date, ma_name=name, direction=Direction.BEARISH))

    return _tail(out, cfg.ma_sweep_max_results)


# =============================================================================
# FAIR VALUE GAPS
# =============================================================================


def _rebalanced(bars: Sequence[Bar], created: int, zone_low: float, zone_high: float, lookahead: int) -> bool:
    end = min(len(bars) - 1, created + lookahead)
    return any(_overlaps(bars[k], zone_low, zone_high) for k in range(created + 1, end + 1))


def detect_fvgs(
    bars: Sequence[Bar],
    config: Optional[AnalysisConfig] = None,
) -> list[FVG]:
    """
    Three-bar imbalances between bar i-2 and bar i.

    Bullish when bar i's low clears bar i-2's high; bearish mirrored.
    """
    cfg = config or get_analysis_config()
    out: list[FVG] = []

    for i in range(2, len(bars)):
        first = bars[i - 2]
        third = bars[i]

        if third.low > first.high:
            zone_low, zone_high = first.high, third.low
            out.append(FVG(
                creation_date=third.date,
                index=i,
                direction=Direction.BULLISH,
                zone_low=zone_low,
                zone_high=zone_high,
                rebalanced=_rebalanced(bars, i, zone_low, zone_high, cfg.fvg_lookahead),
            ))

        if third.high < first.low:
            zone_low, zone_high = third.high, first.low
            out.append(FVG(
                creation_date=third.date,
                index=i,
                direction=Direction.BEARISH,
                zone_low=zone_low,
                zone_high=zone_high,
                rebalanced=_rebalanced(bars, i, zone_low, zone_high, cfg.fvg_lookahead),
            ))

    return _tail(out, cfg.fvg_max_results)


# =============================================================================
# ORDER BLOCKS
# =============================================================================


def detect_order_blocks(
    bars: Sequence[Bar],
    atr: Optional[Sequence[Optional[float]]] = None,
    avg_volume: Optional[Sequence[Optional[float]]] = None,
    config: Optional[AnalysisConfig] = None,
) -> list[OrderBlock]:
    """
    Last opposite-coloured candle before a high-range, high-volume displacement.

    Displacement: true range >= 1.5 x ATR and volume >= 1.5 x average volume.
    """
    cfg = config or get_analysis_config()
    if atr is None:
        atr = atr_wilder(bars, cfg.atr_period)
    if avg_volume is None:
        avg_volume = sma([b.volume for b in bars], cfg.volume_average_period)

    out: list[OrderBlock] = []
    for i in range(max(1, cfg.order_block_start_index), len(bars)):
        b = bars[i]
        a = atr[i]
        vol_base = avg_volume[i] or 0.0
        if not a or vol_base <= 0:
            continue

        tr = true_range(bars[i - 1].close, b.high, b.low)
        displacement = tr >= cfg.order_block_range_mult * a and b.volume >= cfg.order_block_volume_mult * vol_base
        if not displacement or b.close == b.open:
            continue

        bullish = b.is_bullish
        for j in range(i - 1, -1, -1):
            c = bars[j]
            opposite = c.is_bearish if bullish else c.is_bullish
            if not opposite:
                continue

            zone_low = min(c.open, c.close)
            zone_high = max(c.open, c.close)
            end = min(len(bars) - 1, i + cfg.order_block_lookahead)
            tapped = any(_overlaps(bars[k], zone_low, zone_high) for k in range(i + 1, end + 1))

            out.append(OrderBlock(
                creation_date=b.date,
                direction=Direction.BULLISH if bullish else Direction.BEARISH,
                zone_low=zone_low,
                zone_high=zone_high,
                tapped=tapped,
            ))
            break

    return _tail(out, cfg.order_block_max_results)


# =============================================================================
# LIQUIDITY SWEEPS
# =============================================================================


def detect_liquidity_sweeps(
    bars: Sequence[Bar],
    config: Optional[AnalysisConfig] = None,
) -> list[LiquiditySweep]:
    """
    Stop-hunt wicks on the latest bar.

    The most recent swing high/low within the recent window is taken from
    the pivot detector. A sweep takes the swing out intrabar but closes back
    inside it. A failed reclaim is a higher high than the previous bar that
    closes red in the lower half of its own range.
    """
    cfg = config or get_analysis_config()
    n = len(bars)
    if n < max(cfg.sweep_min_bars, 3):
        return []

    window = min(cfg.sweep_window, n - 3)
    start = n - window
    swings = pivots(bars, cfg.sweep_pivot_lookback)
    recent_highs = [p for p in swings.highs if start <= p.index <= n - 3]
    recent_lows = [p for p in swings.lows if start <= p.index <= n - 3]

    latest = bars[-1]
    prev = bars[-2]
    out: list[LiquiditySweep] = []

    if recent_highs:
        sh = recent_highs[-1]
        if latest.high > sh.price and latest.close < sh.price:
            out.append(LiquiditySweep(
                date=latest.date, kind=SweepKind.SWEEP_HIGH, level=sh.price, swing_date=sh.date,
            ))

    if recent_lows:
        sl = recent_lows[-1]
        if latest.low < sl.price and latest.close > sl.price:
            out.append(LiquiditySweep(
                date=latest.date, kind=SweepKind.SWEEP_LOW, level=sl.price, swing_date=sl.date,
            ))

    midpoint = (latest.high + latest.low) / 2
    if latest.high > prev.high and latest.close < midpoint and latest.is_bearish:
        out.append(LiquiditySweep(date=latest.date, kind=SweepKind.FAILED_RECLAIM, level=prev.high))

    return out
