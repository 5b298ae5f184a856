"""
Trader Hub Schema Contracts

All structures exchanged between pipeline stages.
These are the authoritative interfaces - all modules must conform to these schemas.
"""

from traderhub.schemas.market import Bar, NewsRecord
from traderhub.schemas.technicals import (
    CandlePattern,
    CandlePatternType,
    Direction,
    DivergenceType,
    FVG,
    Fibonacci,
    Gap,
    GapDirection,
    GapStatus,
    KeyLevels,
    LevelPoint,
    LiquiditySweep,
    MASnapshot,
    MASweep,
    OrderBlock,
    RSIDivergence,
    SweepKind,
    Technicals,
    TrendState,
)
from traderhub.schemas.signals import Severity, Signal, SignalCategory
from traderhub.schemas.report import (
    AnalysisReport,
    AnalysisRequest,
    Bias,
    LiquidityGrade,
    NewsContext,
    Outlook,
    Pick,
    ReportPreferences,
    ScreenerRequest,
    ScreenerResult,
)

__all__ = [
    # Market
    "Bar",
    "NewsRecord",
    # Technicals
    "CandlePattern",
    "CandlePatternType",
    "Direction",
    "DivergenceType",
    "FVG",
    "Fibonacci",
    "Gap",
    "GapDirection",
    "GapStatus",
    "KeyLevels",
    "LevelPoint",
    "LiquiditySweep",
    "MASnapshot",
    "MASweep",
    "OrderBlock",
    "RSIDivergence",
    "SweepKind",
    "Technicals",
    "TrendState",
    # Signals
    "Severity",
    "Signal",
    "SignalCategory",
    # Report
    "AnalysisReport",
    "AnalysisRequest",
    "Bias",
    "LiquidityGrade",
    "NewsContext",
    "Outlook",
    "Pick",
    "ReportPreferences",
    "ScreenerRequest",
    "ScreenerResult",
]
