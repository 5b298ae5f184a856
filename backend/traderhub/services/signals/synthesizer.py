"""
Signal Synthesizer

Turns detector outputs into decision-ready Signal records.

Every builder appends candidates; build_signals then:
    1. stable-sorts by severity rank (high=4, med=3, low=2, info=1)
    2. drops repeats of (category, type, title), keeping the first
    3. caps the list at max_signals

Sorting happens before the cap so high-severity signals are never cut in
favour of lower-priority ones generated earlier.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from traderhub.core.config import AnalysisConfig, get_analysis_config
from traderhub.schemas.market import Bar
from traderhub.schemas.signals import Severity, Signal, SignalCategory, signal_id
from traderhub.schemas.technicals import (
    CandlePattern,
    CandlePatternType,
    Direction,
    DivergenceType,
    FVG,
    KeyLevels,
    LiquiditySweep,
    MASnapshot,
    RSIDivergence,
    SweepKind,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignalInputs:
    """Everything the synthesizer reads. Missing pieces simply produce no signals."""
    bars: Sequence[Bar] = ()
    candles: Sequence[CandlePattern] = ()
    rsi: Optional[float] = None
    divergence: Optional[RSIDivergence] = None
    fvgs: Sequence[FVG] = ()
    sweeps: Sequence[LiquiditySweep] = ()
    ma: Optional[MASnapshot] = None
    key_levels: Optional[KeyLevels] = None
    spot: Optional[float] = None
    timeframe: str = "D"


def fmt(value: Optional[float], digits: int = 2) -> str:
    """Price formatting used in titles: thousands separators from 1000 up."""
    if value is None:
        return "n/a"
    if abs(value) >= 1000:
        return f"{value:,.{digits}f}"
    return f"{value:.{digits}f}"


# =============================================================================
# CANDLES
# =============================================================================


def candle_signals(bars: Sequence[Bar], candles: Iterable[CandlePattern], timeframe: str = "D") -> list[Signal]:
    """Signals for the patterns tagged on the latest bar."""
    if len(bars) < 2:
        return []

    latest = bars[-1]
    tags = {c.pattern for c in candles if c.date == latest.date}
    midpoint = (latest.open + latest.close) / 2
    cat = SignalCategory.CANDLES
    out: list[Signal] = []

    if CandlePatternType.BULLISH_ENGULFING in tags:
        out.append(Signal(
            id=signal_id(cat, "bullish_engulfing"),
            category=cat,
            type="bullish_engulfing",
            timeframe=timeframe,
            severity=Severity.MED,
            title="Bullish engulfing",
            trigger="Current candle body engulfed prior red candle",
            action="Look for continuation if price holds above the engulfing midpoint; "
                   "consider entry on reclaim after a pullback.",
            invalidation=f"Close below {fmt(midpoint)} (engulf midpoint)",
            meta={"date": latest.date},
        ))
    if CandlePatternType.BEARISH_ENGULFING in tags:
        out.append(Signal(
            id=signal_id(cat, "bearish_engulfing"),
            category=cat,
            type="bearish_engulfing",
            timeframe=timeframe,
            severity=Severity.MED,
            title="Bearish engulfing",
            trigger="Current candle body engulfed prior green candle",
            action="Avoid chasing longs; consider shorts only on confirmation (lower low / failed reclaim).",
            invalidation=f"Close above {fmt(midpoint)} (engulf midpoint)",
            meta={"date": latest.date},
        ))
    if CandlePatternType.HAMMER in tags:
        out.append(Signal(
            id=signal_id(cat, "hammer"),
            category=cat,
            type="hammer",
            timeframe=timeframe,
            severity=Severity.MED,
            title="Hammer / long lower wick",
            trigger="Long lower wick suggests rejection of lows",
            action="Watch for follow-through above the hammer high; best when aligned with support / oversold.",
            invalidation=f"Break below {fmt(latest.low)} (hammer low)",
            levels=[latest.low, latest.high],
            meta={"date": latest.date},
        ))
    if CandlePatternType.SHOOTING_STAR in tags:
        out.append(Signal(
            id=signal_id(cat, "shooting_star"),
            category=cat,
            type="shooting_star",
            timeframe=timeframe,
            severity=Severity.MED,
            title="Shooting star / long upper wick",
            trigger="Long upper wick suggests rejection of highs",
            action="Watch for follow-through below the shooting-star low; "
                   "best when aligned with resistance / overbought.",
            invalidation=f"Break above {fmt(latest.high)} (wick high)",
            levels=[latest.low, latest.high],
            meta={"date": latest.date},
        ))
    if CandlePatternType.INSIDE_BAR in tags:
        out.append(Signal(
            id=signal_id(cat, "inside_bar"),
            category=cat,
            type="inside_bar",
            timeframe=timeframe,
            severity=Severity.INFO,
            title="Inside bar (compression)",
            trigger="Range contracted inside prior candle",
            action=f"Set alerts at {fmt(latest.high)} / {fmt(latest.low)}. Trade the break with confirmation.",
            invalidation="No-trade if chop persists (multiple inside bars).",
            levels=[latest.low, latest.high],
            meta={"date": latest.date},
        ))
    if CandlePatternType.OUTSIDE_BAR in tags:
        out.append(Signal(
            id=signal_id(cat, "outside_bar"),
            category=cat,
            type="outside_bar",
            timeframe=timeframe,
            severity=Severity.INFO,
            title="Outside bar (expansion)",
            trigger="Range expanded beyond prior candle",
            action="Treat as volatility expansion; wait for direction confirmation before size.",
            invalidation="Chop / immediate reversal back inside prior range.",
            levels=[latest.low, latest.high],
            meta={"date": latest.date},
        ))

    return out


# =============================================================================
# MOMENTUM
# =============================================================================


def rsi_signals(
    rsi: Optional[float],
    timeframe: str = "D",
    config: Optional[AnalysisConfig] = None,
) -> list[Signal]:
    """One RSI band signal; the first matching band wins."""
    if rsi is None:
        return []
    cfg = config or get_analysis_config()
    cat = SignalCategory.MOMENTUM

    if rsi <= cfg.rsi_oversold:
        key, severity, label, trigger, action = (
            "rsi_oversold", Severity.MED, "oversold-ish", f"RSI <= {cfg.rsi_oversold:g}",
            "Look for bounce triggers at support; avoid fresh shorts into exhaustion.",
        )
    elif rsi >= cfg.rsi_overbought:
        key, severity, label, trigger, action = (
            "rsi_overbought", Severity.MED, "overbought-ish", f"RSI >= {cfg.rsi_overbought:g}",
            "Avoid chasing; consider trimming longs into strength.",
        )
    elif rsi < cfg.rsi_weak:
        key, severity, label, trigger, action = (
            "rsi_weak", Severity.INFO, "weak momentum", f"RSI < {cfg.rsi_weak:g}",
            "Be selective on longs; prefer buying only at support or on reclaim.",
        )
    elif rsi > cfg.rsi_positive:
        key, severity, label, trigger, action = (
            "rsi_positive", Severity.INFO, "positive momentum", f"RSI > {cfg.rsi_positive:g}",
            "Prefer longs; look for continuation entries on break/hold.",
        )
    else:
        return []

    return [Signal(
        id=signal_id(cat, key),
        category=cat,
        type=key,
        timeframe=timeframe,
        severity=severity,
        title=f"RSI {fmt(rsi, 1)} ({label})",
        trigger=trigger,
        action=action,
    )]


def divergence_signals(
    divergence: Optional[RSIDivergence],
    timeframe: str = "D",
    config: Optional[AnalysisConfig] = None,
) -> list[Signal]:
    if divergence is None or divergence.type == DivergenceType.NONE:
        return []
    cfg = config or get_analysis_config()
    cat = SignalCategory.MOMENTUM
    severity = Severity.HIGH if divergence.strength >= cfg.divergence_high_strength else Severity.MED

    return [Signal(
        id=signal_id(cat, "rsi_divergence"),
        category=cat,
        type="rsi_divergence",
        timeframe=timeframe,
        severity=severity,
        title=f"RSI divergence: {divergence.type.value}",
        trigger=f"Divergence detected (strength {divergence.strength})",
        action="Momentum warning: tighten stops and require confirmation at key levels.",
        meta={"pivot_dates": list(divergence.pivot_dates)},
    )]


# =============================================================================
# STRUCTURE
# =============================================================================


def fvg_signals(
    fvgs: Sequence[FVG],
    timeframe: str = "D",
    config: Optional[AnalysisConfig] = None,
) -> list[Signal]:
    """The most recent zones, newest first."""
    cfg = config or get_analysis_config()
    if cfg.fvg_signal_count <= 0:
        return []
    cat = SignalCategory.STRUCTURE
    out: list[Signal] = []

    for f in reversed(list(fvgs)[-cfg.fvg_signal_count:]):
        side = f.direction.value
        bullish = f.direction == Direction.BULLISH
        out.append(Signal(
            id=signal_id(cat, f"fvg_{side}_{f.index}"),
            category=cat,
            type="fvg",
            timeframe=timeframe,
            severity=Severity.INFO,
            title=f"FVG {side}: {fmt(f.zone_low)}-{fmt(f.zone_high)}",
            trigger=f"Imbalance zone detected ({side})",
            action=(
                "Watch for bullish reaction on retest; treat as magnet/target if above."
                if bullish else
                "Watch for bearish reaction on retest; treat as magnet/target if below."
            ),
            invalidation=(
                f"Clean breakdown below {fmt(f.zone_low)}"
                if bullish else
                f"Clean breakout above {fmt(f.zone_high)}"
            ),
            levels=[f.zone_low, f.zone_high],
            meta={"detected_at": f.creation_date, "index": f.index, "rebalanced": f.rebalanced},
        ))
    return out


def _nearest_below(spot: float, prices: Iterable[float]) -> Optional[float]:
    below = [p for p in prices if p < spot]
    return max(below) if below else None


def _nearest_above(spot: float, prices: Iterable[float]) -> Optional[float]:
    above = [p for p in prices if p > spot]
    return min(above) if above else None


def key_level_signals(
    spot: Optional[float],
    key_levels: Optional[KeyLevels],
    timeframe: str = "D",
    config: Optional[AnalysisConfig] = None,
) -> list[Signal]:
    """Closest support below and resistance above spot; high when within 1%."""
    if spot is None or spot <= 0 or key_levels is None:
        return []
    cfg = config or get_analysis_config()
    cat = SignalCategory.STRUCTURE
    out: list[Signal] = []

    support = _nearest_below(spot, [lv.price for lv in key_levels.support])
    if support is not None:
        away = abs((support - spot) / spot * 100)
        near = away <= cfg.level_proximity_pct
        out.append(Signal(
            id=signal_id(cat, "closest_support"),
            category=cat,
            type="closest_support",
            timeframe=timeframe,
            severity=Severity.HIGH if near else Severity.INFO,
            title=f"Near support: {fmt(support)} ({fmt(away)}% away)" if near else f"Closest support: {fmt(support)}",
            trigger=f"Within {cfg.level_proximity_pct:g}% of support" if near else "Nearest support below spot",
            action=(
                "Hold/reclaim -> bounce setup. Break -> risk-off / shorts favored."
                if near else
                "Watch for holds/reclaims here for long entries."
            ),
            invalidation=f"Clean break below {fmt(support)}" if near else None,
            levels=[support],
        ))

    resistance = _nearest_above(spot, [lv.price for lv in key_levels.resistance])
    if resistance is not None:
        away = abs((resistance - spot) / spot * 100)
        near = away <= cfg.level_proximity_pct
        out.append(Signal(
            id=signal_id(cat, "closest_resistance"),
            category=cat,
            type="closest_resistance",
            timeframe=timeframe,
            severity=Severity.HIGH if near else Severity.INFO,
            title=(
                f"Near resistance: {fmt(resistance)} ({fmt(away)}% away)"
                if near else
                f"Closest resistance: {fmt(resistance)}"
            ),
            trigger=f"Within {cfg.level_proximity_pct:g}% of resistance" if near else "Nearest resistance above spot",
            action=(
                "Break+hold -> breakout. Reject -> mean reversion / trim longs."
                if near else
                "Break/hold above this for continuation."
            ),
            invalidation=f"Failed hold above {fmt(resistance)}" if near else None,
            levels=[resistance],
        ))

    return out


# =============================================================================
# LIQUIDITY
# =============================================================================


def liquidity_signals(sweeps: Iterable[LiquiditySweep], timeframe: str = "D") -> list[Signal]:
    cat = SignalCategory.LIQUIDITY
    out: list[Signal] = []

    for s in sweeps:
        if s.kind == SweepKind.SWEEP_HIGH:
            out.append(Signal(
                id=signal_id(cat, "sweep_high"),
                category=cat,
                type="liquidity_sweep_high",
                timeframe=timeframe,
                severity=Severity.HIGH,
                title=f"Liquidity sweep above swing high ({fmt(s.level)})",
                trigger="Took highs then closed back below prior swing",
                action="Reversal risk elevated. Prefer patience: wait for confirmation before sizing.",
                invalidation=f"Sustained reclaim above {fmt(s.level)}",
                levels=[s.level] if s.level is not None else None,
                meta={"swing_date": s.swing_date},
            ))
        elif s.kind == SweepKind.SWEEP_LOW:
            out.append(Signal(
                id=signal_id(cat, "sweep_low"),
                category=cat,
                type="liquidity_sweep_low",
                timeframe=timeframe,
                severity=Severity.HIGH,
                title=f"Liquidity sweep below swing low ({fmt(s.level)})",
                trigger="Took lows then closed back above prior swing",
                action="Potential reversal/bounce. Look for confirmation before sizing.",
                invalidation=f"Sustained breakdown below {fmt(s.level)}",
                levels=[s.level] if s.level is not None else None,
                meta={"swing_date": s.swing_date},
            ))
        elif s.kind == SweepKind.FAILED_RECLAIM:
            out.append(Signal(
                id=signal_id(cat, "failed_reclaim"),
                category=cat,
                type="failed_reclaim",
                timeframe=timeframe,
                severity=Severity.MED,
                title="Failed reclaim / rejection candle",
                trigger="Expanded range then closed weak",
                action="Treat as rejection; avoid chasing and wait for confirmation at levels.",
            ))

    return out


# =============================================================================
# TREND
# =============================================================================


def _cross_up(prev_a: Optional[float], prev_b: Optional[float], a: Optional[float], b: Optional[float]) -> bool:
    if prev_a is None or prev_b is None or a is None or b is None:
        return False
    return prev_a <= prev_b and a > b


def _cross_down(prev_a: Optional[float], prev_b: Optional[float], a: Optional[float], b: Optional[float]) -> bool:
    if prev_a is None or prev_b is None or a is None or b is None:
        return False
    return prev_a >= prev_b and a < b


def ma_cross_signals(ma: Optional[MASnapshot], timeframe: str = "D") -> list[Signal]:
    """20/50 and 50/200 crosses between the previous and current snapshot."""
    if ma is None:
        return []
    cat = SignalCategory.TREND
    out: list[Signal] = []

    if _cross_up(ma.prev_sma20, ma.prev_sma50, ma.sma20, ma.sma50):
        out.append(Signal(
            id=signal_id(cat, "sma20_cross_up_sma50"),
            category=cat,
            type="ma_cross_up",
            timeframe=timeframe,
            severity=Severity.MED,
            title="20SMA crossed above 50SMA",
            trigger="Bullish MA cross",
            action="Trend bias improves; favor long pullbacks while 20SMA holds.",
            invalidation="Close back below 20SMA / cross failure",
            meta={"sma20": ma.sma20, "sma50": ma.sma50},
        ))
    if _cross_down(ma.prev_sma20, ma.prev_sma50, ma.sma20, ma.sma50):
        out.append(Signal(
            id=signal_id(cat, "sma20_cross_down_sma50"),
            category=cat,
            type="ma_cross_down",
            timeframe=timeframe,
            severity=Severity.MED,
            title="20SMA crossed below 50SMA",
            trigger="Bearish MA cross",
            action="Trend bias weakens; favor shorts/hedges on failed reclaim.",
            invalidation="Close back above 20SMA / cross failure",
            meta={"sma20": ma.sma20, "sma50": ma.sma50},
        ))
    if _cross_up(ma.prev_sma50, ma.prev_sma200, ma.sma50, ma.sma200):
        out.append(Signal(
            id=signal_id(cat, "golden_cross_50_200"),
            category=cat,
            type="golden_cross",
            timeframe=timeframe,
            severity=Severity.LOW,
            title="Golden cross (50SMA > 200SMA)",
            trigger="Long-term trend shift signal",
            action="Long bias improves; best trades are pullbacks above the 200SMA.",
            invalidation="Sustained break back below 200SMA",
            meta={"sma50": ma.sma50, "sma200": ma.sma200},
        ))
    if _cross_down(ma.prev_sma50, ma.prev_sma200, ma.sma50, ma.sma200):
        out.append(Signal(
            id=signal_id(cat, "death_cross_50_200"),
            category=cat,
            type="death_cross",
            timeframe=timeframe,
            severity=Severity.LOW,
            title="Death cross (50SMA < 200SMA)",
            trigger="Long-term trend weakness signal",
            action="Risk-off bias; rallies into key resistance tend to fade.",
            invalidation="Reclaim 200SMA + failed follow-through lower",
            meta={"sma50": ma.sma50, "sma200": ma.sma200},
        ))

    return out


# =============================================================================
# RANK / DEDUPE / CAP
# =============================================================================


def rank_signals(candidates: Iterable[Signal], max_signals: int = 12) -> list[Signal]:
    """Stable sort by severity, keep the first of each (category, type, title), cap."""
    ordered = sorted(candidates, key=lambda s: s.rank, reverse=True)

    seen: set[tuple[str, str, str]] = set()
    final: list[Signal] = []
    for s in ordered:
        if len(final) >= max_signals:
            break
        if s.dedupe_key in seen:
            continue
        seen.add(s.dedupe_key)
        final.append(s)
    return final


def build_signals(inputs: SignalInputs, config: Optional[AnalysisConfig] = None) -> list[Signal]:
    """Generate every candidate signal, then rank, dedupe and cap."""
    cfg = config or get_analysis_config()
    tf = inputs.timeframe

    candidates: list[Signal] = []
    candidates.extend(candle_signals(inputs.bars, inputs.candles, tf))
    candidates.extend(rsi_signals(inputs.rsi, tf, cfg))
    candidates.extend(divergence_signals(inputs.divergence, tf, cfg))
    candidates.extend(fvg_signals(inputs.fvgs, tf, cfg))
    candidates.extend(liquidity_signals(inputs.sweeps, tf))
    candidates.extend(ma_cross_signals(inputs.ma, tf))
    candidates.extend(key_level_signals(inputs.spot, inputs.key_levels, tf, cfg))

    final = rank_signals(candidates, cfg.max_signals)
    logger.debug(f"Synthesized {len(final)} signals from {len(candidates)} candidates")
    return final
