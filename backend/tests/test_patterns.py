"""
Pattern Scanner Tests

Gaps, candlestick patterns, MA sweeps, fair value gaps, order blocks
and liquidity sweeps.
"""

from __future__ import annotations

import pytest

from traderhub.core.config import AnalysisConfig
from traderhub.schemas.technicals import (
    CandlePatternType,
    Direction,
    GapDirection,
    GapStatus,
    SweepKind,
)
from traderhub.services.scanner.patterns import (
    classify_candle,
    detect_candle_patterns,
    detect_fvgs,
    detect_gaps,
    detect_liquidity_sweeps,
    detect_ma_sweeps,
    detect_order_blocks,
)

from conftest import day, flat_bars, make_bar


# ──────────────────────────────────────────────
# Gaps
# ──────────────────────────────────────────────


class TestGaps:
    def _gap_up(self, third_low: float):
        return [
            make_bar(0, 49.0, 50.0, 48.0, 49.5),
            make_bar(1, 52.0, 53.0, 51.8, 52.5),
            make_bar(2, 52.5, 53.0, third_low, 52.6),
        ]

    def test_gap_up_zone(self):
        gaps = detect_gaps(self._gap_up(52.2))
        assert len(gaps) == 1
        gap = gaps[0]
        assert gap.direction == GapDirection.GAP_UP
        assert gap.zone_low == 50.0
        assert gap.zone_high == 52.0
        assert gap.date == day(1)
        assert gap.size_pct == pytest.approx(2.5 / 49.5)
        assert gap.status == GapStatus.UNFILLED

    def test_gap_up_filled(self):
        gaps = detect_gaps(self._gap_up(49.8))
        assert gaps[0].status == GapStatus.FILLED

    def test_gap_up_partial(self):
        gaps = detect_gaps(self._gap_up(51.0))
        assert gaps[0].status == GapStatus.PARTIAL

    def test_gap_down_filled(self):
        bars = [
            make_bar(0, 51.0, 52.0, 50.0, 50.5),
            make_bar(1, 48.0, 48.5, 47.0, 47.5),
            make_bar(2, 47.5, 50.2, 47.2, 50.0),
        ]
        gap = detect_gaps(bars)[0]
        assert gap.direction == GapDirection.GAP_DOWN
        assert (gap.zone_low, gap.zone_high) == (48.0, 50.0)
        assert gap.status == GapStatus.FILLED

    def test_fill_outside_lookahead_is_ignored(self):
        bars = self._gap_up(52.2) + [make_bar(3, 52.3, 52.5, 49.0, 50.0)]
        assert detect_gaps(bars)[0].status == GapStatus.FILLED
        assert detect_gaps(bars, AnalysisConfig(gap_lookahead=1))[0].status == GapStatus.UNFILLED

    def test_no_gap_on_overlapping_open(self):
        assert detect_gaps(flat_bars(20)) == []


# ──────────────────────────────────────────────
# Candles
# ──────────────────────────────────────────────


class TestCandles:
    def test_hammer(self):
        prev = make_bar(0, 101.0, 102.0, 100.5, 101.5)
        cur = make_bar(1, 100.0, 100.6, 97.0, 100.5)
        assert classify_candle(prev, cur) == [CandlePatternType.HAMMER]

    def test_shooting_star(self):
        prev = make_bar(0, 99.0, 99.5, 98.0, 98.5)
        cur = make_bar(1, 100.1, 103.0, 99.5, 99.6)
        assert classify_candle(prev, cur) == [CandlePatternType.SHOOTING_STAR]

    def test_doji(self):
        prev = make_bar(0, 100.0, 103.0, 97.0, 101.0)
        cur = make_bar(1, 100.0, 101.0, 99.0, 100.05)
        tags = classify_candle(prev, cur)
        assert CandlePatternType.DOJI in tags
        assert CandlePatternType.INSIDE_BAR in tags
        assert CandlePatternType.HAMMER not in tags

    def test_bullish_engulfing(self):
        prev = make_bar(0, 101.0, 101.2, 99.8, 100.0)
        cur = make_bar(1, 99.9, 101.6, 99.7, 101.5)
        tags = classify_candle(prev, cur)
        assert CandlePatternType.BULLISH_ENGULFING in tags
        assert CandlePatternType.OUTSIDE_BAR in tags

    def test_bearish_engulfing(self):
        prev = make_bar(0, 100.0, 101.2, 99.8, 101.0)
        cur = make_bar(1, 101.1, 101.3, 99.5, 99.6)
        assert CandlePatternType.BEARISH_ENGULFING in classify_candle(prev, cur)

    def test_equal_body_is_not_engulfing(self):
        prev = make_bar(0, 101.0, 101.5, 99.5, 100.0)
        cur = make_bar(1, 100.0, 101.5, 99.5, 101.0)
        tags = classify_candle(prev, cur)
        assert CandlePatternType.BULLISH_ENGULFING not in tags

    def test_zero_range_bar_skipped(self):
        prev = make_bar(0, 100.0, 101.0, 99.0, 100.5)
        cur = make_bar(1, 100.0, 100.0, 100.0, 100.0)
        assert classify_candle(prev, cur) == []

    def test_thresholds_are_configurable(self):
        prev = make_bar(0, 100.0, 103.0, 97.0, 101.0)
        cur = make_bar(1, 100.0, 101.0, 99.0, 100.3)
        assert CandlePatternType.DOJI not in classify_candle(prev, cur)
        assert CandlePatternType.DOJI in classify_candle(prev, cur, AnalysisConfig(doji_body_ratio=0.2))

    def test_results_capped_to_most_recent(self):
        bars = flat_bars(30)
        patterns = detect_candle_patterns(bars)
        assert len(patterns) == 12
        assert patterns[-1].date == day(29)
        assert all(p.date >= day(26) for p in patterns)


# ──────────────────────────────────────────────
# MA sweeps
# ──────────────────────────────────────────────


class TestMASweeps:
    def test_bullish_and_bearish(self):
        bars = [
            make_bar(0, 100.5, 101.5, 99.0, 101.0),
            make_bar(1, 100.5, 102.0, 98.5, 99.0),
            make_bar(2, 102.0, 103.0, 101.0, 102.5),
        ]
        sweeps = detect_ma_sweeps(bars, {"sma20": [100.0, 100.0, 100.0]})
        assert [(s.date, s.direction) for s in sweeps] == [
            (day(0), Direction.BULLISH),
            (day(1), Direction.BEARISH),
        ]
        assert all(s.ma_name == "sma20" for s in sweeps)

    def test_none_values_skip(self):
        bars = [make_bar(0, 100.5, 101.5, 99.0, 101.0)]
        assert detect_ma_sweeps(bars, {"sma50": [None]}) == []

    def test_cap(self):
        bars = [make_bar(i, 100.5, 101.5, 99.0, 101.0) for i in range(15)]
        sweeps = detect_ma_sweeps(bars, {"sma20": [100.0] * 15})
        assert len(sweeps) == 10
        assert sweeps[-1].date == day(14)


# ──────────────────────────────────────────────
# Fair value gaps
# ──────────────────────────────────────────────


class TestFVG:
    def _bullish(self):
        return [
            make_bar(0, 99.0, 100.0, 98.5, 99.5),
            make_bar(1, 99.5, 103.5, 99.4, 103.0),
            make_bar(2, 103.0, 104.0, 102.0, 103.8),
        ]

    def test_bullish_unrebalanced(self):
        fvgs = detect_fvgs(self._bullish())
        assert len(fvgs) == 1
        f = fvgs[0]
        assert f.direction == Direction.BULLISH
        assert (f.zone_low, f.zone_high) == (100.0, 102.0)
        assert f.index == 2
        assert f.creation_date == day(2)
        assert f.rebalanced is False

    def test_bullish_rebalanced(self):
        bars = self._bullish() + [make_bar(3, 103.5, 104.0, 101.0, 101.5)]
        assert detect_fvgs(bars)[0].rebalanced is True

    def test_bearish(self):
        bars = [
            make_bar(0, 101.0, 101.5, 100.0, 100.5),
            make_bar(1, 100.5, 100.6, 96.0, 96.5),
            make_bar(2, 96.5, 98.0, 95.0, 95.5),
        ]
        f = detect_fvgs(bars)[0]
        assert f.direction == Direction.BEARISH
        assert (f.zone_low, f.zone_high) == (98.0, 100.0)

    def test_none_on_overlapping_bars(self):
        assert detect_fvgs(flat_bars(10)) == []


# ──────────────────────────────────────────────
# Order blocks
# ──────────────────────────────────────────────


def _base_bars(n: int = 22):
    out = []
    for i in range(n):
        if i % 2 == 0:
            out.append(make_bar(i, 100.0, 101.0, 99.5, 100.5))
        else:
            out.append(make_bar(i, 100.5, 101.0, 99.5, 100.0))
    return out


class TestOrderBlocks:
    def test_displacement_marks_prior_opposite_candle(self):
        bars = _base_bars() + [
            make_bar(22, 100.2, 104.2, 100.0, 104.0, volume=3_000_000),
            make_bar(23, 104.0, 105.0, 103.8, 104.5),
        ]
        blocks = detect_order_blocks(bars)
        assert len(blocks) == 1
        ob = blocks[0]
        assert ob.direction == Direction.BULLISH
        assert ob.creation_date == day(22)
        assert (ob.zone_low, ob.zone_high) == (100.0, 100.5)
        assert ob.tapped is False

    def test_tapped_when_price_returns(self):
        bars = _base_bars() + [
            make_bar(22, 100.2, 104.2, 100.0, 104.0, volume=3_000_000),
            make_bar(23, 104.0, 105.0, 103.8, 104.5),
            make_bar(24, 104.5, 104.6, 100.4, 100.6),
        ]
        assert detect_order_blocks(bars)[0].tapped is True

    def test_needs_volume(self):
        bars = _base_bars() + [make_bar(22, 100.2, 104.2, 100.0, 104.0, volume=1_000_000)]
        assert detect_order_blocks(bars) == []

    def test_short_series(self):
        assert detect_order_blocks(_base_bars(15)) == []


# ──────────────────────────────────────────────
# Liquidity sweeps
# ──────────────────────────────────────────────


def _swing_high_series(last):
    bars = [make_bar(i, 100.0, 101.0, 99.0, 100.0) for i in range(14)]
    bars[8] = make_bar(8, 104.0, 110.0, 103.0, 105.0)
    return bars + [last]


class TestLiquiditySweeps:
    def test_sweep_high(self):
        sweeps = detect_liquidity_sweeps(_swing_high_series(make_bar(14, 109.0, 112.0, 107.5, 108.0)))
        kinds = [s.kind for s in sweeps]
        assert SweepKind.SWEEP_HIGH in kinds
        high = next(s for s in sweeps if s.kind == SweepKind.SWEEP_HIGH)
        assert high.level == 110.0
        assert high.swing_date == day(8)

    def test_close_above_swing_is_breakout_not_sweep(self):
        sweeps = detect_liquidity_sweeps(_swing_high_series(make_bar(14, 109.0, 112.0, 108.5, 111.5)))
        assert SweepKind.SWEEP_HIGH not in [s.kind for s in sweeps]

    def test_sweep_low(self):
        bars = [make_bar(i, 100.0, 101.0, 99.0, 100.0) for i in range(14)]
        bars[8] = make_bar(8, 96.0, 97.0, 90.0, 95.0)
        bars.append(make_bar(14, 91.0, 93.0, 88.0, 92.5))
        sweeps = detect_liquidity_sweeps(bars)
        low = next(s for s in sweeps if s.kind == SweepKind.SWEEP_LOW)
        assert low.level == 90.0

    def test_failed_reclaim(self):
        bars = flat_bars(14) + [make_bar(14, 101.5, 102.0, 98.0, 99.0)]
        kinds = [s.kind for s in detect_liquidity_sweeps(bars)]
        assert kinds == [SweepKind.FAILED_RECLAIM]

    def test_needs_ten_bars(self):
        bars = _swing_high_series(make_bar(14, 109.0, 112.0, 107.5, 108.0))[-9:]
        assert detect_liquidity_sweeps(bars) == []
