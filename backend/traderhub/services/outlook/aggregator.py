"""
Outlook Aggregator

Combines trend, momentum, structure, liquidity and news into the
report outlook: bias label and score, confidence, next-day expected range,
scenarios and the options lens.

Bias score contributions (policy table, preserved as-is):
    close vs SMA50          +/-15
    close vs SMA200         +/-10
    RSI vs 50               +/-10 (0 at exactly 50)
    RSI divergence          +/-5 x strength
    last 3 MA sweeps        +/-5 each
    Fibonacci confluence    +5
    liquidity grade C       -10
    news                    bounded nudge
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from traderhub.core.config import AnalysisConfig, get_analysis_config
from traderhub.schemas.market import Bar
from traderhub.schemas.report import (
    Bias,
    DirectionalLens,
    ExpectedRange,
    LiquidityGrade,
    LiquidityProfile,
    OptionsLens,
    Outlook,
    ReportPreferences,
    Scenario,
    ScenarioRange,
    ScenarioTarget,
    StructurePreference,
    WheelLens,
    WheelPreference,
)
from traderhub.schemas.technicals import (
    Direction,
    DivergenceType,
    Fibonacci,
    KeyLevels,
    MASweep,
    RSIDivergence,
    TrendState,
)
from traderhub.services.indicators.calculations import average, value_at

logger = logging.getLogger(__name__)


@dataclass
class OutlookInputs:
    """Latest readings the outlook is built from."""
    close: float
    sma_mid: Optional[float] = None
    sma_slow: Optional[float] = None
    rsi: Optional[float] = None
    atr: Optional[float] = None
    divergence: RSIDivergence = field(default_factory=RSIDivergence)
    ma_sweeps: Sequence[MASweep] = ()
    fibonacci: Fibonacci = field(default_factory=Fibonacci)
    grade: Optional[LiquidityGrade] = None
    news_contribution: int = 0
    key_levels: KeyLevels = field(default_factory=KeyLevels)
    top_tags: Sequence[str] = ()
    preferences: ReportPreferences = field(default_factory=ReportPreferences)


# =============================================================================
# TREND
# =============================================================================


def classify_trend(
    close: float,
    sma_mid_series: Sequence[Optional[float]],
    config: Optional[AnalysisConfig] = None,
) -> TrendState:
    """
    Price vs the mid SMA plus that SMA's slope over the lookback.

    Rising and above -> uptrend; falling (or flat) and below -> downtrend;
    anything else -> range. Missing SMA values -> unknown.
    """
    cfg = config or get_analysis_config()
    current = value_at(sma_mid_series, -1)
    earlier = value_at(sma_mid_series, -1 - cfg.trend_slope_lookback)
    if current is None or earlier is None:
        return TrendState.UNKNOWN

    rising = current > earlier
    if close > current and rising:
        return TrendState.UPTREND
    if close < current and not rising:
        return TrendState.DOWNTREND
    return TrendState.RANGE


# =============================================================================
# LIQUIDITY
# =============================================================================


def liquidity_grade(
    avg_dollar_volume: float,
    atr_pct: float,
    config: Optional[AnalysisConfig] = None,
) -> LiquidityGrade:
    cfg = config or get_analysis_config()
    if avg_dollar_volume >= cfg.grade_a_dollar_volume and cfg.grade_min_atr_pct <= atr_pct <= cfg.grade_a_max_atr_pct:
        return LiquidityGrade.A
    if avg_dollar_volume >= cfg.grade_b_dollar_volume and cfg.grade_min_atr_pct <= atr_pct <= cfg.grade_b_max_atr_pct:
        return LiquidityGrade.B
    return LiquidityGrade.C


def liquidity_profile(
    bars: Sequence[Bar],
    atr: Optional[float],
    config: Optional[AnalysisConfig] = None,
) -> LiquidityProfile:
    """Average dollar volume over the window, ATR as % of close and the grade."""
    cfg = config or get_analysis_config()
    if not bars:
        return LiquidityProfile()

    window = bars[-cfg.liquidity_window:]
    avg_dollar = average([b.close * b.volume for b in window])
    close = bars[-1].close
    atr_pct = atr / close if atr is not None and close > 0 else None

    grade = None
    if avg_dollar is not None and atr_pct is not None:
        grade = liquidity_grade(avg_dollar, atr_pct, cfg)

    return LiquidityProfile(
        avg_dollar_vol_20=round(avg_dollar) if avg_dollar is not None else None,
        atr14=atr,
        atr_pct=atr_pct,
        grade=grade,
    )


# =============================================================================
# BIAS
# =============================================================================


def bias_score(inputs: OutlookInputs, config: Optional[AnalysisConfig] = None) -> int:
    cfg = config or get_analysis_config()
    close = inputs.close
    score = 0

    if inputs.sma_mid is not None:
        score += cfg.weight_sma_mid if close > inputs.sma_mid else -cfg.weight_sma_mid
    if inputs.sma_slow is not None:
        score += cfg.weight_sma_slow if close > inputs.sma_slow else -cfg.weight_sma_slow
    if inputs.rsi is not None:
        if inputs.rsi > 50:
            score += cfg.weight_rsi
        elif inputs.rsi < 50:
            score -= cfg.weight_rsi

    div = inputs.divergence
    if div.type == DivergenceType.BULLISH:
        score += cfg.weight_divergence * div.strength
    elif div.type == DivergenceType.BEARISH:
        score -= cfg.weight_divergence * div.strength

    recent = list(inputs.ma_sweeps)[-cfg.ma_sweeps_scored:] if cfg.ma_sweeps_scored > 0 else []
    for sweep in recent:
        score += cfg.weight_ma_sweep if sweep.direction == Direction.BULLISH else -cfg.weight_ma_sweep

    if inputs.fibonacci.confluences:
        score += cfg.weight_fib_confluence
    if inputs.grade == LiquidityGrade.C:
        score -= cfg.penalty_liquidity_c

    return score + inputs.news_contribution


def bias_label(score: int, config: Optional[AnalysisConfig] = None) -> Bias:
    cfg = config or get_analysis_config()
    if score >= cfg.bullish_threshold:
        return Bias.BULLISH
    if score <= cfg.bearish_threshold:
        return Bias.BEARISH
    return Bias.NEUTRAL


def confidence(bias: Bias, grade: Optional[LiquidityGrade], config: Optional[AnalysisConfig] = None) -> int:
    """Policy table: neutral 3, directional with grade A 4, otherwise 3."""
    cfg = config or get_analysis_config()
    if bias == Bias.NEUTRAL:
        return cfg.confidence_neutral
    if grade == LiquidityGrade.A:
        return cfg.confidence_grade_a
    return cfg.confidence_default


# =============================================================================
# EXPECTED RANGE
# =============================================================================


def expected_range(
    close: float,
    atr: Optional[float],
    config: Optional[AnalysisConfig] = None,
) -> ExpectedRange:
    """close +/- ATR x multiplier; the multiplier shrinks for volatile names and grows for quiet ones."""
    cfg = config or get_analysis_config()
    if atr is None or close <= 0:
        return ExpectedRange(center=close, method=f"ATR{cfg.atr_period}")

    atr_pct = atr / close
    multiplier = 1.0
    if atr_pct > cfg.atr_high_vol_pct:
        multiplier = cfg.atr_high_vol_mult
    elif atr_pct < cfg.atr_low_vol_pct:
        multiplier = cfg.atr_low_vol_mult

    return ExpectedRange(
        center=close,
        low=close - atr * multiplier,
        high=close + atr * multiplier,
        multiplier=multiplier,
        method=f"ATR{cfg.atr_period}",
    )


# =============================================================================
# SCENARIOS & OPTIONS LENS
# =============================================================================


def build_scenarios(
    key_levels: KeyLevels,
    top_tags: Sequence[str],
    preferences: ReportPreferences,
) -> list[Scenario]:
    """Bull / bear / chop narratives around the most recent resistance and support."""
    support = key_levels.support[-1].price if key_levels.support else None
    resistance = key_levels.resistance[-1].price if key_levels.resistance else None
    naked = preferences.directional_structure == StructurePreference.NAKED

    bull = Scenario(
        name="bull",
        condition=(
            f"Break and hold above ~{resistance:.2f} (close above)."
            if resistance is not None else
            "Break above recent resistance and hold."
        ),
        entry_idea=(
            "Default: naked calls on confirmation (risk defined by invalidation level)."
            if naked else
            "Spreads enabled: use a debit spread on confirmation (risk-defined)."
        ),
        invalidation=(
            f"Failed breakout / close back below ~{resistance:.2f}."
            if resistance is not None else
            "Close back below breakout level."
        ),
        targets=[ScenarioTarget(price=resistance, note="prior resistance")] if resistance is not None else [],
        risk_notes=["Earnings/guidance risk in recent headlines."] if "earnings" in top_tags else [],
    )

    bear = Scenario(
        name="bear",
        condition=(
            f"Lose ~{support:.2f} and fail to reclaim."
            if support is not None else
            "Lose recent support and fail to reclaim."
        ),
        entry_idea=(
            "Default: naked puts on confirmation (risk defined by invalidation level)."
            if naked else
            "Spreads enabled: use a put spread on confirmation (risk-defined)."
        ),
        invalidation=(
            f"Reclaim and close back above ~{support:.2f}."
            if support is not None else
            "Close back above support."
        ),
        targets=[ScenarioTarget(price=support, note="prior support")] if support is not None else [],
        risk_notes=["Offering/dilution language seen recently."] if "offering" in top_tags else [],
    )

    chop = Scenario(
        name="chop",
        condition=(
            f"Stays between ~{support:.2f} and ~{resistance:.2f}."
            if support is not None and resistance is not None else
            "Stays range-bound."
        ),
        plan="Range play / reduce size; avoid forcing directional bets without confirmation.",
        range=ScenarioRange(low=support, high=resistance),
    )

    return [bull, bear, chop]


def build_options_lens(preferences: ReportPreferences) -> OptionsLens:
    directional = preferences.directional_structure
    wheel = preferences.wheel_structure_preference

    return OptionsLens(
        directional=DirectionalLens(
            default=directional,
            naked=(
                ["Default is naked calls/puts. Use scenario triggers + invalidation to size and exit."]
                if directional == StructurePreference.NAKED else []
            ),
            spreads=(
                ["Spreads enabled by request (risk-defined)."]
                if directional == StructurePreference.SPREADS else []
            ),
        ),
        wheel=WheelLens(
            preference=wheel,
            csp_cc=[
                "Wheel lens: CSP near support when neutral/bullish; CC near resistance when holding shares / neutral.",
            ],
            spreads=(
                ["Wheel spreads enabled by request (PCS/CCS framing)."]
                if wheel != WheelPreference.NAKED else []
            ),
        ),
    )


# =============================================================================
# OUTLOOK
# =============================================================================


def build_outlook(inputs: OutlookInputs, config: Optional[AnalysisConfig] = None) -> Outlook:
    cfg = config or get_analysis_config()

    score = bias_score(inputs, cfg)
    bias = bias_label(score, cfg)

    outlook = Outlook(
        bias=bias,
        score=score,
        confidence_1_5=confidence(bias, inputs.grade, cfg),
        expected_range_next_day=expected_range(inputs.close, inputs.atr, cfg),
        scenarios=build_scenarios(inputs.key_levels, inputs.top_tags, inputs.preferences),
        options_lens=build_options_lens(inputs.preferences),
    )
    logger.debug(f"Outlook: {bias.value} (score {score}, confidence {outlook.confidence_1_5})")
    return outlook
