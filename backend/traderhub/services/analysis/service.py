"""
Analysis Service Implementation

Runs the full single-symbol pipeline:
    normalize -> indicators -> pivots / scanners -> divergence
    -> signals -> outlook -> AnalysisReport

Pure computation, no I/O. Each detector runs isolated so one failure only
empties its own section of the report.
"""

import logging
from typing import Optional

from traderhub.core.config import AnalysisConfig, get_analysis_config, get_settings
from traderhub.schemas.market import Bar
from traderhub.schemas.report import (
    AnalysisReport,
    AnalysisRequest,
    LiquidityProfile,
    MomentumSnapshot,
    NewsContext,
    ReportPreferences,
    TrendSnapshot,
)
from traderhub.schemas.technicals import (
    Fibonacci,
    KeyLevels,
    MASnapshot,
    RSIDivergence,
    Technicals,
    TrendState,
)
from traderhub.services.analysis.interface import AnalysisServiceInterface
from traderhub.services.base import run_isolated
from traderhub.services.data_ingestion.normalizer import (
    normalize_bars,
    normalize_date,
    normalize_key_levels,
    normalize_news,
)
from traderhub.services.indicators.calculations import (
    IndicatorSeries,
    atr_wilder,
    last_value,
    rsi_wilder,
    sma,
    value_at,
)
from traderhub.services.indicators.pivots import key_levels_from_pivots, pivots
from traderhub.services.news.scoring import build_news_context
from traderhub.services.outlook.aggregator import (
    OutlookInputs,
    build_outlook,
    classify_trend,
    liquidity_profile,
)
from traderhub.services.outlook.preferences import parse_preferences
from traderhub.services.scanner.divergence import detect_rsi_divergence
from traderhub.services.scanner.fibonacci import compute_fibonacci
from traderhub.services.scanner.patterns import (
    detect_candle_patterns,
    detect_fvgs,
    detect_gaps,
    detect_liquidity_sweeps,
    detect_ma_sweeps,
    detect_order_blocks,
)
from traderhub.services.signals.synthesizer import SignalInputs, build_signals

logger = logging.getLogger(__name__)


def _ma_snapshot(
    fast: IndicatorSeries,
    mid: IndicatorSeries,
    slow: IndicatorSeries,
    previous: Optional[MASnapshot],
    derive_previous: bool,
) -> MASnapshot:
    """Current SMAs plus the prior-period values used for cross detection."""
    if previous is not None:
        prev_fast, prev_mid, prev_slow = previous.sma20, previous.sma50, previous.sma200
    elif derive_previous:
        prev_fast, prev_mid, prev_slow = value_at(fast, -2), value_at(mid, -2), value_at(slow, -2)
    else:
        prev_fast = prev_mid = prev_slow = None

    return MASnapshot(
        sma20=last_value(fast),
        sma50=last_value(mid),
        sma200=last_value(slow),
        prev_sma20=prev_fast,
        prev_sma50=prev_mid,
        prev_sma200=prev_slow,
    )


class AnalysisService(AnalysisServiceInterface):
    """
    Signals engine for one instrument.

    Stateless: identical requests always produce identical reports.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self._config = config

    @property
    def config(self) -> AnalysisConfig:
        return self._config or get_analysis_config()

    async def execute(self, input_data: AnalysisRequest) -> AnalysisReport:
        request = await self.validate_input(input_data)
        return self.analyze(request)

    def analyze(self, request: AnalysisRequest) -> AnalysisReport:
        cfg = self.config
        settings = get_settings()
        symbol = request.symbol.upper()
        timeframe = request.timeframe or cfg.timeframe
        preferences = request.preferences or parse_preferences(request.prompt)

        series = normalize_bars(request.bars, request.asof)
        bars = series.bars
        news = normalize_news(request.news)
        key_override = normalize_key_levels(request.key_levels)

        asof_date = normalize_date(request.asof) or (bars[-1].date if bars else None)
        news_context = run_isolated(
            "news_context",
            lambda: build_news_context(news, symbol, asof_date, cfg),
            lambda: build_news_context([], symbol, None, cfg),
        )

        if not bars:
            logger.warning(f"{symbol}: no usable bars ({series.dropped} dropped)")
            return AnalysisReport(
                symbol=symbol,
                asof_date=asof_date,
                timeframe=timeframe,
                dropped_bars=series.dropped,
                preferences=preferences,
                news_context=news_context,
            )

        if len(bars) < settings.min_recommended_bars:
            logger.warning(
                f"{symbol}: only {len(bars)} bars (recommended {settings.min_recommended_bars}); "
                f"long-window indicators will be empty"
            )

        errors: list[str] = []
        report = self._run_pipeline(symbol, bars, request, news_context, key_override, preferences, timeframe, errors)

        logger.info(
            f"{symbol}: analyzed {len(bars)} bars -> {report.outlook.bias.value} "
            f"(score {report.outlook.score}), {len(report.signals)} signals"
        )
        if errors:
            logger.warning(f"{symbol}: detectors failed: {', '.join(errors)}")

        return report.model_copy(update={
            "asof_date": asof_date,
            "dropped_bars": series.dropped,
        })

    def _run_pipeline(
        self,
        symbol: str,
        bars: list[Bar],
        request: AnalysisRequest,
        news_context: NewsContext,
        key_override: Optional[KeyLevels],
        preferences: ReportPreferences,
        timeframe: str,
        errors: list[str],
    ) -> AnalysisReport:
        cfg = self.config
        closes = [b.close for b in bars]
        close = closes[-1]

        # Indicators
        sma_fast = sma(closes, cfg.sma_fast)
        sma_mid = sma(closes, cfg.sma_mid)
        sma_slow = sma(closes, cfg.sma_slow)
        atr = atr_wilder(bars, cfg.atr_period)
        rsi = rsi_wilder(closes, cfg.rsi_period)
        avg_volume = sma([b.volume for b in bars], cfg.volume_average_period)

        last_atr = last_value(atr)
        last_rsi = last_value(rsi)

        liquidity = run_isolated(
            "liquidity", lambda: liquidity_profile(bars, last_atr, cfg), LiquidityProfile, errors,
        )
        trend_state = run_isolated(
            "trend", lambda: classify_trend(close, sma_mid, cfg), lambda: TrendState.UNKNOWN, errors,
        )

        # Structure
        if key_override is not None:
            key_levels = key_override
        else:
            key_levels = run_isolated(
                "key_levels",
                lambda: key_levels_from_pivots(pivots(bars, cfg.pivot_lookback), cfg.key_level_count),
                KeyLevels,
                errors,
            )

        gaps = run_isolated("gaps", lambda: detect_gaps(bars, cfg), list, errors)
        candles = run_isolated("candles", lambda: detect_candle_patterns(bars, cfg), list, errors)
        ma_sweeps = run_isolated(
            "ma_sweeps",
            lambda: detect_ma_sweeps(bars, {f"sma{cfg.sma_fast}": sma_fast, f"sma{cfg.sma_mid}": sma_mid}, cfg),
            list,
            errors,
        )
        divergence = run_isolated(
            "rsi_divergence", lambda: detect_rsi_divergence(bars, rsi, cfg), RSIDivergence, errors,
        )
        fvgs = run_isolated("fvg", lambda: detect_fvgs(bars, cfg), list, errors)
        order_blocks = run_isolated(
            "order_blocks", lambda: detect_order_blocks(bars, atr, avg_volume, cfg), list, errors,
        )
        sweeps = run_isolated("liquidity_sweeps", lambda: detect_liquidity_sweeps(bars, cfg), list, errors)
        fibonacci = run_isolated(
            "fibonacci",
            lambda: compute_fibonacci(
                bars, trend_state, last_value(sma_fast), last_value(sma_mid), last_atr, cfg,
            ),
            Fibonacci,
            errors,
        )

        ma = _ma_snapshot(sma_fast, sma_mid, sma_slow, request.previous_ma, cfg.derive_previous_ma)

        signals = run_isolated(
            "signals",
            lambda: build_signals(SignalInputs(
                bars=bars,
                candles=candles,
                rsi=last_rsi,
                divergence=divergence,
                fvgs=fvgs,
                sweeps=sweeps,
                ma=ma,
                key_levels=key_levels,
                spot=close,
                timeframe=timeframe,
            ), cfg),
            list,
            errors,
        )

        outlook = build_outlook(OutlookInputs(
            close=close,
            sma_mid=ma.sma50,
            sma_slow=ma.sma200,
            rsi=last_rsi,
            atr=last_atr,
            divergence=divergence,
            ma_sweeps=ma_sweeps,
            fibonacci=fibonacci,
            grade=liquidity.grade,
            news_contribution=news_context.score_contribution,
            key_levels=key_levels,
            top_tags=news_context.top_tags,
            preferences=preferences,
        ), cfg)

        return AnalysisReport(
            symbol=symbol,
            timeframe=timeframe,
            bar_count=len(bars),
            preferences=preferences,
            liquidity=liquidity,
            trend=TrendSnapshot(sma20=ma.sma20, sma50=ma.sma50, sma200=ma.sma200, state=trend_state),
            momentum=MomentumSnapshot(rsi14=last_rsi, rsi_divergence=divergence),
            technicals=Technicals(
                key_levels=key_levels,
                gaps=gaps,
                candles=candles,
                ma_sweeps=ma_sweeps,
                rsi_divergence=divergence,
                fair_value_gaps=fvgs,
                order_blocks=order_blocks,
                liquidity_sweeps=sweeps,
                fibonacci=fibonacci,
            ),
            news_context=news_context,
            outlook=outlook,
            signals=signals,
        )

    async def health_check(self) -> bool:
        """Analysis is pure computation and always available."""
        return True


# Singleton instance
_service_instance: Optional[AnalysisService] = None


def get_analysis_service() -> AnalysisService:
    """Get or create analysis service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = AnalysisService()
    return _service_instance
