"""
Signal Synthesizer Tests
"""

from __future__ import annotations

from traderhub.core.config import AnalysisConfig
from traderhub.schemas.signals import Severity, Signal, SignalCategory
from traderhub.schemas.technicals import (
    CandlePattern,
    CandlePatternType,
    Direction,
    DivergenceType,
    FVG,
    KeyLevels,
    LevelPoint,
    LiquiditySweep,
    MASnapshot,
    RSIDivergence,
    SweepKind,
)
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

from conftest import day, make_bar


def _signal(title: str, severity: Severity) -> Signal:
    return Signal(
        id=f"structure:{title}",
        category=SignalCategory.STRUCTURE,
        type="test",
        severity=severity,
        title=title,
        trigger="t",
        action="a",
    )


def _levels(support, resistance) -> KeyLevels:
    return KeyLevels(
        support=[LevelPoint(price=p) for p in support],
        resistance=[LevelPoint(price=p) for p in resistance],
    )


class TestFormatting:
    def test_fmt(self):
        assert fmt(None) == "n/a"
        assert fmt(12.3) == "12.30"
        assert fmt(99.5) == "99.50"
        assert fmt(1234.5) == "1,234.50"
        assert fmt(42.0, 1) == "42.0"


# ──────────────────────────────────────────────
# Builders
# ──────────────────────────────────────────────


class TestCandleSignals:
    def test_latest_bar_only(self):
        bars = [make_bar(0, 101.0, 102.0, 100.5, 101.5), make_bar(1, 100.0, 100.6, 97.0, 100.5)]
        candles = [
            CandlePattern(date=day(0), pattern=CandlePatternType.DOJI),
            CandlePattern(date=day(1), pattern=CandlePatternType.HAMMER),
        ]
        out = candle_signals(bars, candles)
        assert [s.id for s in out] == ["candles:hammer"]
        assert out[0].severity == Severity.MED
        assert out[0].levels == [97.0, 100.6]
        assert out[0].invalidation == "Break below 97.00 (hammer low)"

    def test_engulfing_midpoint(self):
        bars = [make_bar(0, 101.0, 101.2, 99.8, 100.0), make_bar(1, 99.9, 101.6, 99.7, 101.5)]
        candles = [CandlePattern(date=day(1), pattern=CandlePatternType.BULLISH_ENGULFING)]
        (sig,) = candle_signals(bars, candles)
        assert sig.invalidation == "Close below 100.70 (engulf midpoint)"

    def test_compression_is_info(self):
        bars = [make_bar(0, 100.0, 103.0, 97.0, 101.0), make_bar(1, 100.0, 101.0, 99.0, 100.05)]
        candles = [CandlePattern(date=day(1), pattern=CandlePatternType.INSIDE_BAR)]
        (sig,) = candle_signals(bars, candles)
        assert sig.severity == Severity.INFO
        assert "101.00 / 99.00" in sig.action

    def test_needs_two_bars(self):
        bars = [make_bar(0, 100.0, 101.0, 99.0, 100.0)]
        assert candle_signals(bars, [CandlePattern(date=day(0), pattern=CandlePatternType.DOJI)]) == []


class TestRSISignals:
    def test_bands(self):
        assert rsi_signals(30.0)[0].type == "rsi_oversold"
        assert rsi_signals(35.0)[0].type == "rsi_oversold"
        assert rsi_signals(70.0)[0].type == "rsi_overbought"
        assert rsi_signals(40.0)[0].severity == Severity.INFO
        assert rsi_signals(60.0)[0].type == "rsi_positive"
        assert rsi_signals(50.0) == []
        assert rsi_signals(None) == []

    def test_title(self):
        (sig,) = rsi_signals(28.44)
        assert sig.title == "RSI 28.4 (oversold-ish)"
        assert sig.severity == Severity.MED
        assert sig.trigger == "RSI <= 35"

    def test_config_override(self):
        cfg = AnalysisConfig(rsi_oversold=25.0)
        assert rsi_signals(30.0, config=cfg)[0].type == "rsi_weak"


class TestDivergenceSignals:
    def test_severity_follows_strength(self):
        strong = RSIDivergence(type=DivergenceType.BULLISH, strength=3, pivot_dates=[day(1), day(9)])
        weak = RSIDivergence(type=DivergenceType.BEARISH, strength=2, pivot_dates=[day(1), day(9)])

        (s,) = divergence_signals(strong)
        assert s.severity == Severity.HIGH
        assert s.title == "RSI divergence: bullish"
        assert s.meta == {"pivot_dates": [day(1), day(9)]}
        assert divergence_signals(weak)[0].severity == Severity.MED

    def test_none(self):
        assert divergence_signals(RSIDivergence()) == []
        assert divergence_signals(None) == []


class TestFVGSignals:
    def test_newest_first(self):
        fvgs = [
            FVG(creation_date=day(i), index=i, direction=Direction.BULLISH, zone_low=100.0, zone_high=101.0)
            for i in (2, 5, 8, 11)
        ]
        out = fvg_signals(fvgs)
        assert [s.id for s in out] == [
            "structure:fvg_bullish_11",
            "structure:fvg_bullish_8",
            "structure:fvg_bullish_5",
        ]
        assert out[0].title == "FVG bullish: 100.00-101.00"
        assert out[0].invalidation == "Clean breakdown below 100.00"

    def test_bearish_invalidation(self):
        fvg = FVG(creation_date=day(3), index=3, direction=Direction.BEARISH, zone_low=98.0, zone_high=100.0)
        (sig,) = fvg_signals([fvg])
        assert sig.invalidation == "Clean breakout above 100.00"


class TestKeyLevelSignals:
    def test_near_and_far(self):
        out = key_level_signals(100.0, _levels([95.0, 99.5], [103.0, 110.0]))
        support, resistance = out
        assert support.severity == Severity.HIGH
        assert support.title == "Near support: 99.50 (0.50% away)"
        assert support.levels == [99.5]
        assert resistance.severity == Severity.INFO
        assert resistance.title == "Closest resistance: 103.00"
        assert resistance.invalidation is None

    def test_levels_on_wrong_side_ignored(self):
        out = key_level_signals(100.0, _levels([101.0], [99.0]))
        assert out == []

    def test_missing_inputs(self):
        assert key_level_signals(None, _levels([95.0], [])) == []
        assert key_level_signals(100.0, None) == []


class TestLiquiditySignals:
    def test_sweep_high(self):
        sweep = LiquiditySweep(date=day(14), kind=SweepKind.SWEEP_HIGH, level=110.0, swing_date=day(8))
        (sig,) = liquidity_signals([sweep])
        assert sig.severity == Severity.HIGH
        assert sig.title == "Liquidity sweep above swing high (110.00)"
        assert sig.levels == [110.0]
        assert sig.meta == {"swing_date": day(8)}

    def test_failed_reclaim(self):
        sweep = LiquiditySweep(date=day(14), kind=SweepKind.FAILED_RECLAIM, level=101.0)
        (sig,) = liquidity_signals([sweep])
        assert sig.type == "failed_reclaim"
        assert sig.severity == Severity.MED


class TestMACross:
    def test_fast_cross_up(self):
        ma = MASnapshot(prev_sma20=49.0, prev_sma50=50.0, sma20=51.0, sma50=50.5)
        (sig,) = ma_cross_signals(ma)
        assert sig.id == "trend:sma20_cross_up_sma50"
        assert sig.severity == Severity.MED

    def test_fast_cross_down(self):
        ma = MASnapshot(prev_sma20=51.0, prev_sma50=50.0, sma20=49.0, sma50=50.5)
        assert [s.id for s in ma_cross_signals(ma)] == ["trend:sma20_cross_down_sma50"]

    def test_golden_cross_is_low(self):
        ma = MASnapshot(prev_sma50=99.0, prev_sma200=100.0, sma50=101.0, sma200=100.5)
        (sig,) = ma_cross_signals(ma)
        assert sig.type == "golden_cross"
        assert sig.severity == Severity.LOW

    def test_missing_values_skip(self):
        ma = MASnapshot(prev_sma20=None, prev_sma50=50.0, sma20=51.0, sma50=50.5)
        assert ma_cross_signals(ma) == []
        assert ma_cross_signals(None) == []


# ──────────────────────────────────────────────
# Rank / dedupe / cap
# ──────────────────────────────────────────────


class TestRanking:
    def test_severity_sorted_before_cap(self):
        candidates = [_signal(f"low {i}", Severity.LOW) for i in range(15)]
        candidates += [_signal(f"high {i}", Severity.HIGH) for i in range(3)]

        final = rank_signals(candidates, max_signals=12)
        assert len(final) == 12
        assert [s.title for s in final[:3]] == ["high 0", "high 1", "high 2"]
        assert [s.title for s in final[3:]] == [f"low {i}" for i in range(9)]

    def test_dedupe_keeps_first(self):
        a = _signal("same", Severity.MED)
        b = a.model_copy(update={"action": "other"})
        final = rank_signals([a, b])
        assert final == [a]

    def test_build_signals_is_deterministic(self):
        inputs = SignalInputs(
            bars=[make_bar(0, 101.0, 102.0, 100.5, 101.5), make_bar(1, 100.0, 100.6, 97.0, 100.5)],
            candles=[CandlePattern(date=day(1), pattern=CandlePatternType.HAMMER)],
            rsi=30.0,
            divergence=RSIDivergence(type=DivergenceType.BULLISH, strength=3, pivot_dates=[day(0), day(1)]),
            key_levels=_levels([100.0], [104.0]),
            spot=100.5,
        )
        first = build_signals(inputs)
        second = build_signals(inputs)
        assert first == second
        severities = [s.rank for s in first]
        assert severities == sorted(severities, reverse=True)
        assert first[0].severity == Severity.HIGH

    def test_max_signals_from_config(self):
        fvgs = [
            FVG(creation_date=day(i), index=i, direction=Direction.BEARISH, zone_low=90.0 + i, zone_high=91.0 + i)
            for i in range(2, 6)
        ]
        inputs = SignalInputs(rsi=30.0, fvgs=fvgs)
        assert len(build_signals(inputs, AnalysisConfig(max_signals=2))) == 2

    def test_empty_inputs(self):
        assert build_signals(SignalInputs()) == []
