"""
Outlook Aggregator Service

CONTRACT:
    Input:  OutlookInputs (latest indicator readings, detector results,
            liquidity grade, news nudge, key levels, preferences)
    Output: Outlook
"""

from traderhub.services.outlook.aggregator import (
    OutlookInputs,
    bias_label,
    bias_score,
    build_options_lens,
    build_outlook,
    build_scenarios,
    classify_trend,
    confidence,
    expected_range,
    liquidity_grade,
    liquidity_profile,
)
from traderhub.services.outlook.preferences import parse_preferences

__all__ = [
    "OutlookInputs",
    "bias_label",
    "bias_score",
    "build_options_lens",
    "build_outlook",
    "build_scenarios",
    "classify_trend",
    "confidence",
    "expected_range",
    "liquidity_grade",
    "liquidity_profile",
    "parse_preferences",
]
