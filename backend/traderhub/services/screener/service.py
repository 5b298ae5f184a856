"""
Screener Service

Ranks a watchlist universe by running the analysis pipeline per symbol and
scoring the resulting reports:

    score = outlook score
          + liquidity bonus (A +10, B +5, otherwise -10)
          - 10 when ATR exceeds 12% of price
          + min(12, 2 x headline count)

A symbol whose analysis fails is logged and skipped.
"""

import logging
from typing import Any, Mapping, Optional, Sequence

from traderhub.core.config import AnalysisConfig, get_analysis_config
from traderhub.schemas.market import NewsRecord
from traderhub.schemas.report import (
    AnalysisReport,
    AnalysisRequest,
    LiquidityGrade,
    Pick,
    ReportPreferences,
    ScreenerRequest,
    ScreenerResult,
)
from traderhub.services.analysis.service import AnalysisService, get_analysis_service
from traderhub.services.base import BaseService
from traderhub.services.data_ingestion.normalizer import normalize_date, normalize_news
from traderhub.services.news.scoring import extract_symbol
from traderhub.services.outlook.preferences import parse_preferences

logger = logging.getLogger(__name__)

LIQUIDITY_BONUS = {
    LiquidityGrade.A: 10,
    LiquidityGrade.B: 5,
}
LIQUIDITY_PENALTY = -10
HIGH_VOL_PENALTY = -10
NEWS_BONUS_PER_HEADLINE = 2
NEWS_BONUS_CAP = 12


def pick_score(report: AnalysisReport, config: Optional[AnalysisConfig] = None) -> float:
    """Screener ranking score for one analyzed symbol."""
    cfg = config or get_analysis_config()
    score = float(report.outlook.score)

    score += LIQUIDITY_BONUS.get(report.liquidity.grade, LIQUIDITY_PENALTY)

    atr_pct = report.liquidity.atr_pct or 0.0
    if atr_pct > cfg.screener_high_vol_pct:
        score += HIGH_VOL_PENALTY

    score += min(NEWS_BONUS_CAP, NEWS_BONUS_PER_HEADLINE * report.news_context.headline_count)
    return score


def _news_by_symbol(records: Sequence[NewsRecord]) -> dict[str, list[NewsRecord]]:
    grouped: dict[str, list[NewsRecord]] = {}
    for r in records:
        sym = r.symbol or extract_symbol(r.headline)
        if sym:
            grouped.setdefault(sym.upper(), []).append(r)
    return grouped


class ScreenerService(BaseService[ScreenerRequest, ScreenerResult]):
    """Weekly picks: analyze every candidate and keep the best scores."""

    def __init__(
        self,
        analysis: Optional[AnalysisService] = None,
        config: Optional[AnalysisConfig] = None,
    ):
        self._analysis = analysis
        self._config = config

    @property
    def name(self) -> str:
        return "ScreenerService"

    @property
    def config(self) -> AnalysisConfig:
        return self._config or get_analysis_config()

    @property
    def analysis(self) -> AnalysisService:
        return self._analysis or get_analysis_service()

    async def execute(self, input_data: ScreenerRequest) -> ScreenerResult:
        preferences = input_data.preferences or parse_preferences(input_data.prompt)
        return self.rank(input_data.universe, input_data.news, input_data.asof, preferences)

    def rank(
        self,
        universe: Mapping[str, Any],
        news: Optional[Sequence[Any]] = None,
        asof: Optional[str] = None,
        preferences: Optional[ReportPreferences] = None,
    ) -> ScreenerResult:
        cfg = self.config
        prefs = preferences or ReportPreferences()
        grouped_news = _news_by_symbol(normalize_news(news or []))

        candidates = list(universe.items())[:cfg.screener_max_candidates]
        scored: list[Pick] = []
        failed: list[str] = []

        for symbol, raw_bars in candidates:
            sym = symbol.upper()
            try:
                report = self.analysis.analyze(AnalysisRequest(
                    symbol=sym,
                    bars=raw_bars,
                    news=grouped_news.get(sym, []),
                    asof=asof,
                    preferences=prefs,
                ))
                if report.bar_count == 0:
                    raise ValueError("no usable bars")
            except Exception as e:
                logger.warning(f"Screener skipped {sym}: {e}")
                failed.append(sym)
                continue

            scored.append(Pick(
                symbol=sym,
                score=pick_score(report, cfg),
                bias=report.outlook.bias,
                confidence=report.outlook.confidence_1_5,
                trend=report.trend.state,
                rsi14=report.momentum.rsi14,
                top_tags=report.news_context.top_tags,
                key_levels=report.technicals.key_levels,
                expected_range=report.outlook.expected_range_next_day,
            ))

        scored.sort(key=lambda p: p.score, reverse=True)
        picks = scored[:cfg.screener_max_picks]
        logger.info(f"Screener ranked {len(scored)}/{len(candidates)} symbols, {len(failed)} failed")

        return ScreenerResult(
            asof_date=normalize_date(asof),
            preferences=prefs,
            picks=picks,
            candidates=len(candidates),
            failed=failed,
        )

    async def health_check(self) -> bool:
        return await self.analysis.health_check()


# Singleton instance
_service_instance: Optional[ScreenerService] = None


def get_screener_service() -> ScreenerService:
    """Get or create screener service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = ScreenerService()
    return _service_instance
