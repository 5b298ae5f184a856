"""
CONTRACT 3: Signals

The uniform, decision-ready unit produced by the signal synthesizer.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict


class Severity(str, Enum):
    HIGH = "high"
    MED = "med"
    LOW = "low"
    INFO = "info"


SEVERITY_RANK = {
    Severity.HIGH: 4,
    Severity.MED: 3,
    Severity.LOW: 2,
    Severity.INFO: 1,
}


class SignalCategory(str, Enum):
    CANDLES = "candles"
    MOMENTUM = "momentum"
    STRUCTURE = "structure"
    LIQUIDITY = "liquidity"
    TREND = "trend"


class Signal(BaseModel):
    """
    Decision-ready signal.

    id is "category:type" (or "category:type_suffix" for per-zone signals)
    so identical detections collapse under deduplication.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    category: SignalCategory
    type: str
    timeframe: str = "D"
    severity: Severity
    title: str
    trigger: str
    action: str
    invalidation: Optional[str] = None
    levels: Optional[list[float]] = None
    meta: Optional[dict[str, Any]] = None

    @property
    def rank(self) -> int:
        return SEVERITY_RANK[self.severity]

    @property
    def dedupe_key(self) -> tuple[str, str, str]:
        return (self.category.value, self.type, self.title)


def signal_id(category: SignalCategory, key: str) -> str:
    """Deterministic signal id."""
    return f"{category.value}:{key}"
