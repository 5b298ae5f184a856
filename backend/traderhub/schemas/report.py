"""
CONTRACT 4: Analysis Report

Input: AnalysisRequest (raw collaborator payloads)
Output: AnalysisReport (signals + outlook + technicals)
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

from traderhub.schemas.market import NewsRecord
from traderhub.schemas.signals import Signal
from traderhub.schemas.technicals import (
    KeyLevels,
    MASnapshot,
    RSIDivergence,
    Technicals,
    TrendState,
)


# =============================================================================
# ENUMS
# =============================================================================


class Bias(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class LiquidityGrade(str, Enum):
    A = "A"
    B = "B"
    C = "C"


class StructurePreference(str, Enum):
    NAKED = "naked"
    SPREADS = "spreads"


class WheelPreference(str, Enum):
    NAKED = "naked"
    SPREADS = "spreads"
    AUTO = "auto"


class ReportMode(str, Enum):
    DIRECTIONAL = "directional"
    WHEEL = "wheel"
    BOTH = "both"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# =============================================================================
# INPUT: AnalysisRequest
# =============================================================================


class ReportPreferences(_Frozen):
    directional_structure: StructurePreference = StructurePreference.NAKED
    wheel_structure_preference: WheelPreference = WheelPreference.NAKED
    mode: ReportMode = ReportMode.BOTH


class AnalysisRequest(BaseModel):
    """
    Request for a single-symbol analysis.
    Sent by: API layer / Screener
    Received by: Analysis Service

    bars, news and key_levels are raw collaborator payloads; the ingestion
    normalizer turns them into Bar / NewsRecord / KeyLevels.
    """

    symbol: str = Field(..., min_length=1)
    bars: list[Any] = Field(default_factory=list, description="Bars or bar-like mappings")
    news: list[Any] = Field(default_factory=list, description="NewsRecords or headline mappings")
    asof: Optional[str] = Field(default=None, description="YYYY-MM-DD; later bars are ignored")
    prompt: Optional[str] = Field(default=None, description="Free text report preferences")
    preferences: Optional[ReportPreferences] = None
    previous_ma: Optional[MASnapshot] = Field(
        default=None,
        description="Prior-period snapshot; its sma20/50/200 are the previous values for cross detection",
    )
    key_levels: Optional[Any] = Field(default=None, description="Override for pivot key levels")
    timeframe: Optional[str] = None


# =============================================================================
# OUTPUT: Report sections
# =============================================================================


class LiquidityProfile(_Frozen):
    avg_dollar_vol_20: Optional[float] = None
    atr14: Optional[float] = None
    atr_pct: Optional[float] = None
    grade: Optional[LiquidityGrade] = None


class TrendSnapshot(_Frozen):
    sma20: Optional[float] = None
    sma50: Optional[float] = None
    sma200: Optional[float] = None
    state: TrendState = TrendState.UNKNOWN


class MomentumSnapshot(_Frozen):
    rsi14: Optional[float] = Field(default=None, ge=0, le=100)
    rsi_divergence: RSIDivergence = Field(default_factory=RSIDivergence)


class NewsContext(_Frozen):
    headline_count: int = 0
    top_tags: list[str] = Field(default_factory=list)
    notable_items: list[NewsRecord] = Field(default_factory=list)
    score_contribution: int = 0


class ExpectedRange(_Frozen):
    center: Optional[float] = None
    low: Optional[float] = None
    high: Optional[float] = None
    multiplier: float = 1.0
    method: str = "ATR14"


class ScenarioTarget(_Frozen):
    price: float
    note: str


class ScenarioRange(_Frozen):
    low: Optional[float] = None
    high: Optional[float] = None


class Scenario(_Frozen):
    name: str
    condition: str
    entry_idea: Optional[str] = None
    plan: Optional[str] = None
    invalidation: Optional[str] = None
    targets: list[ScenarioTarget] = Field(default_factory=list)
    range: Optional[ScenarioRange] = None
    risk_notes: list[str] = Field(default_factory=list)


class DirectionalLens(_Frozen):
    default: StructurePreference
    naked: list[str] = Field(default_factory=list)
    spreads: list[str] = Field(default_factory=list)


class WheelLens(_Frozen):
    preference: WheelPreference
    csp_cc: list[str] = Field(default_factory=list)
    spreads: list[str] = Field(default_factory=list)


class OptionsLens(_Frozen):
    directional: DirectionalLens
    wheel: WheelLens


class Outlook(_Frozen):
    bias: Bias = Bias.NEUTRAL
    score: int = 0
    confidence_1_5: int = Field(default=3, ge=1, le=5)
    expected_range_next_day: ExpectedRange = Field(default_factory=ExpectedRange)
    scenarios: list[Scenario] = Field(default_factory=list)
    options_lens: Optional[OptionsLens] = None


# =============================================================================
# OUTPUT: AnalysisReport (Complete Response)
# =============================================================================


class AnalysisReport(_Frozen):
    """
    Complete analysis for a symbol.
    Returned by: Analysis Service
    Consumed by: API layer, Screener
    """

    symbol: str
    asof_date: Optional[str] = None
    timeframe: str = "D"
    bar_count: int = 0
    dropped_bars: int = 0
    preferences: ReportPreferences = Field(default_factory=ReportPreferences)
    liquidity: LiquidityProfile = Field(default_factory=LiquidityProfile)
    trend: TrendSnapshot = Field(default_factory=TrendSnapshot)
    momentum: MomentumSnapshot = Field(default_factory=MomentumSnapshot)
    technicals: Technicals = Field(default_factory=Technicals)
    news_context: NewsContext = Field(default_factory=NewsContext)
    outlook: Outlook = Field(default_factory=Outlook)
    signals: list[Signal] = Field(default_factory=list)


# =============================================================================
# OUTPUT: Screener
# =============================================================================


class ScreenerRequest(BaseModel):
    """
    Request to rank a watchlist universe.
    Sent by: API layer / scheduler
    Received by: Screener Service
    """

    universe: dict[str, list[Any]] = Field(default_factory=dict, description="symbol -> raw bars")
    news: list[Any] = Field(default_factory=list, description="Headlines for any symbol in the universe")
    asof: Optional[str] = None
    prompt: Optional[str] = None
    preferences: Optional[ReportPreferences] = None


class Pick(_Frozen):
    symbol: str
    score: float
    bias: Bias
    confidence: int
    trend: TrendState
    rsi14: Optional[float] = None
    top_tags: list[str] = Field(default_factory=list)
    key_levels: KeyLevels = Field(default_factory=KeyLevels)
    expected_range: ExpectedRange = Field(default_factory=ExpectedRange)


class ScreenerResult(_Frozen):
    asof_date: Optional[str] = None
    preferences: ReportPreferences = Field(default_factory=ReportPreferences)
    picks: list[Pick] = Field(default_factory=list)
    candidates: int = 0
    failed: list[str] = Field(default_factory=list)
