"""
Analysis Service Interface

Defines the contract for the single-symbol analysis pipeline.
"""

from abc import abstractmethod

from traderhub.services.base import BaseService
from traderhub.schemas.report import AnalysisReport, AnalysisRequest


class AnalysisServiceInterface(BaseService[AnalysisRequest, AnalysisReport]):
    """
    Analysis Service Contract.

    INPUT: AnalysisRequest
        - symbol, raw bars, optional news / key levels / previous MA snapshot
        - optional asof date and free-text prompt

    OUTPUT: AnalysisReport
        - signals (severity-sorted, deduplicated, capped)
        - outlook, technicals, liquidity, trend, momentum, news context
    """

    @property
    def name(self) -> str:
        return "AnalysisService"

    @abstractmethod
    async def execute(self, input_data: AnalysisRequest) -> AnalysisReport:
        """Run the full pipeline for one symbol."""
        pass

    @abstractmethod
    def analyze(self, request: AnalysisRequest) -> AnalysisReport:
        """
        Synchronous pipeline entry point.

        Args:
            request: raw collaborator inputs for one symbol

        Returns:
            Complete report; detectors lacking history contribute empty results
        """
        pass
