"""
Screener Service Tests
"""

from __future__ import annotations

import asyncio

import pytest

from traderhub.core.config import AnalysisConfig
from traderhub.schemas.report import (
    AnalysisReport,
    LiquidityGrade,
    LiquidityProfile,
    NewsContext,
    Outlook,
    ScreenerRequest,
    StructurePreference,
)
from traderhub.services.analysis import AnalysisService
from traderhub.services.screener import ScreenerService, get_screener_service, pick_score

from conftest import day, wave_bars


def _report(score: int, grade=None, atr_pct=None, headlines: int = 0) -> AnalysisReport:
    return AnalysisReport(
        symbol="X",
        outlook=Outlook(score=score),
        liquidity=LiquidityProfile(grade=grade, atr_pct=atr_pct),
        news_context=NewsContext(headline_count=headlines),
    )


class TestPickScore:
    def test_combined(self):
        assert pick_score(_report(20, LiquidityGrade.A, 0.15, 7)) == 32

    def test_liquidity_table(self):
        assert pick_score(_report(0, LiquidityGrade.A)) == 10
        assert pick_score(_report(0, LiquidityGrade.B)) == 5
        assert pick_score(_report(0, LiquidityGrade.C)) == -10
        assert pick_score(_report(0, None)) == -10

    def test_news_bonus(self):
        assert pick_score(_report(0, LiquidityGrade.B, 0.02, 3)) == 11


@pytest.fixture
def screener() -> ScreenerService:
    return ScreenerService(analysis=AnalysisService())


@pytest.fixture
def universe(uptrend_bars, downtrend_bars):
    return {
        "up": uptrend_bars,
        "down": downtrend_bars,
        "empty": [],
        "junk": "not a bar list",
    }


class TestRank:
    def test_picks_sorted_and_failures_listed(self, screener, universe):
        result = screener.rank(universe)
        assert result.candidates == 4
        assert result.failed == ["EMPTY", "JUNK"]
        assert {p.symbol for p in result.picks} == {"UP", "DOWN"}
        scores = [p.score for p in result.picks]
        assert scores == sorted(scores, reverse=True)

        up = next(p for p in result.picks if p.symbol == "UP")
        assert up.expected_range.center is not None
        assert up.key_levels.support

    def test_candidate_cap(self, universe):
        screener = ScreenerService(analysis=AnalysisService(), config=AnalysisConfig(screener_max_candidates=1))
        result = screener.rank(universe)
        assert result.candidates == 1
        assert [p.symbol for p in result.picks] == ["UP"]

    def test_pick_cap(self, universe):
        screener = ScreenerService(analysis=AnalysisService(), config=AnalysisConfig(screener_max_picks=1))
        assert len(screener.rank(universe).picks) == 1

    def test_news_routed_by_symbol(self, screener):
        news = [
            {"headline": "Upco (UP) beats earnings", "created_at": day(118)},
            {"headline": "markets drift lower", "created_at": day(118)},
        ]
        result = screener.rank({"up": wave_bars(120, drift=0.2)}, news=news)
        (pick,) = result.picks
        assert pick.top_tags == ["earnings"]

    def test_asof(self, screener, uptrend_bars):
        result = screener.rank({"up": uptrend_bars}, asof=day(150))
        assert result.asof_date == day(150)


class TestScreenerContract:
    def test_execute_parses_prompt(self, screener, uptrend_bars):
        request = ScreenerRequest(universe={"up": uptrend_bars}, prompt="debit spreads only")
        result = asyncio.run(screener.execute(request))
        assert result.preferences.directional_structure == StructurePreference.SPREADS
        assert [p.symbol for p in result.picks] == ["UP"]

    def test_health_check(self, screener):
        assert asyncio.run(screener.health_check()) is True
        assert screener.name == "ScreenerService"

    def test_singleton(self):
        assert get_screener_service() is get_screener_service()
