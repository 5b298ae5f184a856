"""
Shared bar factories for the signals engine tests.
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Optional

import pytest

from traderhub.core.config import AnalysisConfig
from traderhub.schemas.market import Bar

START = date(2024, 1, 1)


def day(i: int) -> str:
    return (START + timedelta(days=i)).isoformat()


def make_bar(
    i: int,
    open: float,
    high: float,
    low: float,
    close: float,
    volume: float = 1_000_000,
) -> Bar:
    return Bar(date=day(i), open=open, high=high, low=low, close=close, volume=volume)


def bars_from_closes(closes: list[float], spread: float = 1.0, volume: float = 1_000_000) -> list[Bar]:
    """
    Bars opening halfway between the prior close and their own close, with
    wicks `spread` beyond the body. Local extremes in closes become strict pivots.
    """
    out = []
    prev = closes[0]
    for i, c in enumerate(closes):
        o = (prev + c) / 2
        out.append(make_bar(i, o, max(o, c) + spread, min(o, c) - spread, c, volume))
        prev = c
    return out


def flat_bars(n: int, price: float = 100.0, spread: float = 1.0) -> list[Bar]:
    """Identical bars: no pivots or gaps; every bar tags doji, inside and outside."""
    return [make_bar(i, price, price + spread, price - spread, price) for i in range(n)]


def wave_bars(
    n: int,
    base: float = 100.0,
    amplitude: float = 10.0,
    period: int = 20,
    drift: float = 0.0,
    volume: float = 2_000_000,
) -> list[Bar]:
    """Sine-wave closes with optional drift; produces regular swing highs and lows."""
    closes = [base + drift * i + amplitude * math.sin(2 * math.pi * i / period) for i in range(n)]
    return bars_from_closes(closes, spread=0.5, volume=volume)


def raw_bar(i: int, close: float, spread: float = 1.0, volume: Optional[float] = 1_000_000) -> dict:
    row = {"t": day(i), "o": close, "h": close + spread, "l": close - spread, "c": close}
    if volume is not None:
        row["v"] = volume
    return row


@pytest.fixture
def config() -> AnalysisConfig:
    return AnalysisConfig()


@pytest.fixture
def uptrend_bars() -> list[Bar]:
    return wave_bars(260, base=50.0, amplitude=3.0, drift=0.25)


@pytest.fixture
def downtrend_bars() -> list[Bar]:
    return wave_bars(260, base=150.0, amplitude=3.0, drift=-0.25)
