"""
Application Configuration

All settings loaded from environment variables.
Analysis thresholds are grouped in AnalysisConfig so detectors and tests
can override them without touching detector logic.
"""

from functools import lru_cache
from typing import Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalysisConfig(BaseModel):
    """Thresholds and windows used across the analysis pipeline."""

    # Indicator periods
    rsi_period: int = Field(default=14, ge=1)
    atr_period: int = Field(default=14, ge=1)
    sma_fast: int = Field(default=20, ge=1)
    sma_mid: int = Field(default=50, ge=1)
    sma_slow: int = Field(default=200, ge=1)
    volume_average_period: int = Field(default=20, ge=1)

    # Pivots
    pivot_lookback: int = Field(default=3, ge=1, description="Key levels and divergence")
    fib_pivot_lookback: int = Field(default=5, ge=1)
    sweep_pivot_lookback: int = Field(default=2, ge=1)
    sweep_window: int = Field(default=30, ge=3, description="Bars searched for the sweep swing")
    sweep_min_bars: int = 10
    key_level_count: int = 3

    # Gaps
    gap_lookahead: int = 40
    gap_max_results: int = 10

    # Candles
    doji_body_ratio: float = 0.12
    pin_body_ratio: float = 0.35
    pin_wick_ratio: float = 0.55
    pin_opposite_wick_ratio: float = 0.2
    candle_max_results: int = 12

    # MA sweeps
    ma_sweep_max_results: int = 10

    # Fair value gaps
    fvg_lookahead: int = 40
    fvg_max_results: int = 12

    # Order blocks
    order_block_start_index: int = 21
    order_block_range_mult: float = 1.5
    order_block_volume_mult: float = 1.5
    order_block_lookahead: int = 40
    order_block_max_results: int = 10

    # Divergence policy table
    divergence_rsi_delta: float = 5.0
    divergence_recent_bars: int = 20

    # Fibonacci
    fib_retracements: tuple[float, ...] = (0.382, 0.5, 0.618)
    fib_extensions: tuple[float, ...] = (1.272, 1.618)
    fib_confluence_atr_mult: float = 0.5

    # Signals
    timeframe: str = "D"
    rsi_oversold: float = 35.0
    rsi_overbought: float = 65.0
    rsi_weak: float = 45.0
    rsi_positive: float = 55.0
    divergence_high_strength: int = 3
    level_proximity_pct: float = 1.0
    fvg_signal_count: int = 3
    max_signals: int = 12
    derive_previous_ma: bool = True

    # Outlook
    trend_slope_lookback: int = 10
    weight_sma_mid: int = 15
    weight_sma_slow: int = 10
    weight_rsi: int = 10
    weight_divergence: int = 5
    weight_ma_sweep: int = 5
    ma_sweeps_scored: int = 3
    weight_fib_confluence: int = 5
    penalty_liquidity_c: int = 10
    bullish_threshold: int = 20
    bearish_threshold: int = -20
    confidence_neutral: int = 3
    confidence_grade_a: int = 4
    confidence_default: int = 3

    # Expected range
    atr_high_vol_pct: float = 0.08
    atr_low_vol_pct: float = 0.02
    atr_high_vol_mult: float = 0.8
    atr_low_vol_mult: float = 1.2

    # Liquidity grade table
    liquidity_window: int = 20
    grade_a_dollar_volume: float = 50_000_000
    grade_b_dollar_volume: float = 20_000_000
    grade_min_atr_pct: float = 0.01
    grade_a_max_atr_pct: float = 0.08
    grade_b_max_atr_pct: float = 0.12

    # News
    news_window_days: int = 7
    news_max_items: int = 20
    news_scored_items: int = 10
    news_score_divisor: float = 50.0
    news_max_contribution: int = 20
    news_top_tags: int = 6

    # Screener
    screener_max_candidates: int = 60
    screener_max_picks: int = 10
    screener_high_vol_pct: float = 0.12


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TRADERHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Trader Hub Signals"
    app_version: str = "0.1.0"
    environment: str = "development"

    # Logging
    log_level: str = "INFO"
    log_format: Optional[str] = None

    # Analysis
    default_timeframe: str = "D"
    min_recommended_bars: int = 60
    analysis: AnalysisConfig = AnalysisConfig()


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def get_analysis_config() -> AnalysisConfig:
    """Analysis thresholds from the cached settings."""
    return get_settings().analysis
