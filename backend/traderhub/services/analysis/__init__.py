"""
Analysis Service

CONTRACT:
    Input:  AnalysisRequest
    Output: AnalysisReport
"""

from traderhub.services.analysis.interface import AnalysisServiceInterface
from traderhub.services.analysis.service import AnalysisService, get_analysis_service

__all__ = ["AnalysisService", "AnalysisServiceInterface", "get_analysis_service"]
