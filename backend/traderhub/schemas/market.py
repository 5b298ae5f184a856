"""
CONTRACT 1: Market Inputs

Normalized shapes produced once by the ingestion adapter
(services.data_ingestion.normalizer). Detectors only ever see these.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class Bar(BaseModel):
    """Single daily candlestick."""

    model_config = ConfigDict(frozen=True)

    date: str = Field(..., min_length=1, description="Calendar date, ISO ordered (YYYY-MM-DD)")
    open: float = Field(..., gt=0, allow_inf_nan=False)
    high: float = Field(..., gt=0, allow_inf_nan=False)
    low: float = Field(..., gt=0, allow_inf_nan=False)
    close: float = Field(..., gt=0, allow_inf_nan=False)
    volume: float = Field(default=0.0, ge=0, allow_inf_nan=False)

    @model_validator(mode="after")
    def _check_range(self) -> "Bar":
        if self.high < self.low:
            raise ValueError(f"high {self.high} below low {self.low} on {self.date}")
        return self

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def range_size(self) -> float:
        return self.high - self.low

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open


class NewsRecord(BaseModel):
    """
    A scored headline supplied by the news collaborator.

    score/tags come from services.news.scoring when the caller does not
    provide them.
    """

    model_config = ConfigDict(frozen=True)

    headline: str
    summary: Optional[str] = None
    url: Optional[str] = None
    source: Optional[str] = None
    symbol: Optional[str] = None
    created_at: datetime
    tags: tuple[str, ...] = ()
    score: float = Field(default=0.0, ge=0, le=100)
