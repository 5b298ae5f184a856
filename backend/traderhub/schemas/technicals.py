"""
CONTRACT 2: Technicals

Raw detector outputs bundled for display and consumed by the signal
synthesizer and the outlook aggregator.
All lists are in bar order (most recent last).
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================


class Direction(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"


class GapDirection(str, Enum):
    GAP_UP = "gap_up"
    GAP_DOWN = "gap_down"


class GapStatus(str, Enum):
    UNFILLED = "unfilled"
    PARTIAL = "partial"
    FILLED = "filled"


class CandlePatternType(str, Enum):
    DOJI = "doji"
    HAMMER = "hammer"
    SHOOTING_STAR = "shooting_star"
    BULLISH_ENGULFING = "bullish_engulfing"
    BEARISH_ENGULFING = "bearish_engulfing"
    INSIDE_BAR = "inside_bar"
    OUTSIDE_BAR = "outside_bar"


class DivergenceType(str, Enum):
    NONE = "none"
    BULLISH = "bullish"
    BEARISH = "bearish"


class SweepKind(str, Enum):
    SWEEP_HIGH = "sweep_high"
    SWEEP_LOW = "sweep_low"
    FAILED_RECLAIM = "failed_reclaim"


class TrendState(str, Enum):
    UPTREND = "uptrend"
    DOWNTREND = "downtrend"
    RANGE = "range"
    UNKNOWN = "unknown"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# =============================================================================
# DETECTOR OUTPUTS
# =============================================================================


class Gap(_Frozen):
    """Opening gap and its fill state within the lookahead window."""

    date: str
    direction: GapDirection
    prev_close: float
    open: float
    zone_low: float
    zone_high: float
    size_pct: float = Field(..., ge=0, description="|open - prev_close| / prev_close")
    status: GapStatus


class CandlePattern(_Frozen):
    date: str
    pattern: CandlePatternType


class MASweep(_Frozen):
    date: str
    ma_name: str
    direction: Direction


class RSIDivergence(_Frozen):
    type: DivergenceType = DivergenceType.NONE
    strength: int = Field(default=0, ge=0)
    pivot_dates: list[str] = Field(default_factory=list)


class FVG(_Frozen):
    """Three-bar fair value gap."""

    creation_date: str
    index: int = Field(..., ge=0, description="Bar index of the third candle")
    direction: Direction
    zone_low: float
    zone_high: float
    rebalanced: bool


class OrderBlock(_Frozen):
    creation_date: str
    direction: Direction
    zone_low: float
    zone_high: float
    tapped: bool


class LiquiditySweep(_Frozen):
    date: str
    kind: SweepKind
    level: Optional[float] = None
    swing_date: Optional[str] = None


class FibAnchor(_Frozen):
    from_price: float
    to_price: float
    from_date: str
    to_date: str


class FibLevel(_Frozen):
    level: float
    price: float


class FibConfluence(_Frozen):
    price: float
    reasons: list[str]


class Fibonacci(_Frozen):
    anchor: Optional[FibAnchor] = None
    retracements: list[FibLevel] = Field(default_factory=list)
    extensions: list[FibLevel] = Field(default_factory=list)
    confluences: list[FibConfluence] = Field(default_factory=list)


class LevelPoint(_Frozen):
    price: float
    date: Optional[str] = None


class KeyLevels(_Frozen):
    """Support/resistance levels (oldest first)."""

    support: list[LevelPoint] = Field(default_factory=list)
    resistance: list[LevelPoint] = Field(default_factory=list)


class MASnapshot(_Frozen):
    """Latest and prior-period SMA readings used for cross detection."""

    sma20: Optional[float] = None
    sma50: Optional[float] = None
    sma200: Optional[float] = None
    prev_sma20: Optional[float] = None
    prev_sma50: Optional[float] = None
    prev_sma200: Optional[float] = None


# =============================================================================
# OUTPUT: Technicals bundle
# =============================================================================


class Technicals(_Frozen):
    key_levels: KeyLevels = Field(default_factory=KeyLevels)
    gaps: list[Gap] = Field(default_factory=list)
    candles: list[CandlePattern] = Field(default_factory=list)
    ma_sweeps: list[MASweep] = Field(default_factory=list)
    rsi_divergence: RSIDivergence = Field(default_factory=RSIDivergence)
    fair_value_gaps: list[FVG] = Field(default_factory=list)
    order_blocks: list[OrderBlock] = Field(default_factory=list)
    liquidity_sweeps: list[LiquiditySweep] = Field(default_factory=list)
    fibonacci: Fibonacci = Field(default_factory=Fibonacci)
