"""
Screener Service

CONTRACT:
    Input:  ScreenerRequest (symbol -> raw bars, headlines, asof, preferences)
    Output: ScreenerResult (top picks by screener score)
"""

from traderhub.services.screener.service import (
    ScreenerService,
    get_screener_service,
    pick_score,
)

__all__ = ["ScreenerService", "get_screener_service", "pick_score"]
