"""
Pivot (swing high / swing low) detection.

A pivot at index i must be strictly more extreme than every other bar in
[i - lookback, i + lookback]; ties disqualify it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from traderhub.schemas.market import Bar
from traderhub.schemas.technicals import KeyLevels, LevelPoint


class PivotKind(str, Enum):
    SWING_HIGH = "swing_high"
    SWING_LOW = "swing_low"


@dataclass(frozen=True)
class Pivot:
    """A confirmed swing point."""
    index: int
    date: str
    price: float
    kind: PivotKind


@dataclass(frozen=True)
class PivotSet:
    """Swing lows and highs, each in bar order."""
    lows: list[Pivot] = field(default_factory=list)
    highs: list[Pivot] = field(default_factory=list)


def pivots(bars: Sequence[Bar], lookback: int = 3) -> PivotSet:
    """
    Find swing lows/highs for every index with `lookback` bars on both sides.

    Pure and stateless: rerun on the full window for every request.
    """
    lows: list[Pivot] = []
    highs: list[Pivot] = []
    if lookback < 1:
        return PivotSet(lows, highs)

    for i in range(lookback, len(bars) - lookback):
        lo = bars[i].low
        hi = bars[i].high
        is_low = True
        is_high = True

        for k in range(i - lookback, i + lookback + 1):
            if k == i:
                continue
            if bars[k].low <= lo:
                is_low = False
            if bars[k].high >= hi:
                is_high = False
            if not is_low and not is_high:
                break

        if is_low:
            lows.append(Pivot(i, bars[i].date, lo, PivotKind.SWING_LOW))
        if is_high:
            highs.append(Pivot(i, bars[i].date, hi, PivotKind.SWING_HIGH))

    return PivotSet(lows, highs)


def key_levels_from_pivots(pivot_set: PivotSet, count: int = 3) -> KeyLevels:
    """Most recent `count` swing lows as support and swing highs as resistance."""
    if count <= 0:
        return KeyLevels()
    return KeyLevels(
        support=[LevelPoint(date=p.date, price=p.price) for p in pivot_set.lows[-count:]],
        resistance=[LevelPoint(date=p.date, price=p.price) for p in pivot_set.highs[-count:]],
    )
