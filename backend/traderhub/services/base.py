"""
Service Base

Shared contract for the pipeline services (analysis, screener) and the
detector isolation helper they run every stage through.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Generic, Optional, TypeVar

RequestT = TypeVar("RequestT")
ReportT = TypeVar("ReportT")
ResultT = TypeVar("ResultT")

logger = logging.getLogger(__name__)


class BaseService(ABC, Generic[RequestT, ReportT]):
    """
    A pipeline service turns one validated request model into one report model.

    Subclasses name themselves for logs, implement `execute` and report
    readiness through `health_check`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Name used in log lines and errors."""

    @abstractmethod
    async def execute(self, input_data: RequestT) -> ReportT:
        """
        Run the service for one request.

        Raises:
            ServiceError: the request cannot be interpreted at all
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """True when the service can take requests."""

    async def validate_input(self, input_data: RequestT) -> RequestT:
        """Hook for checks beyond the pydantic model; no-op by default."""
        return input_data


def run_isolated(
    stage: str,
    detector: Callable[[], ResultT],
    fallback: Callable[[], ResultT],
    errors: Optional[list[str]] = None,
) -> ResultT:
    """
    Run one detector so its failure cannot abort the rest of the pipeline.

    A raised exception is logged with traceback and replaced by fallback().
    """
    try:
        return detector()
    except Exception:
        logger.exception(f"Detector '{stage}' failed; using empty result")
        if errors is not None:
            errors.append(stage)
        return fallback()


class ServiceError(Exception):
    """A request the named service could not process."""

    def __init__(self, service_name: str, message: str, details: Optional[dict] = None):
        self.service_name = service_name
        self.message = message
        self.details = details or {}
        super().__init__(f"[{service_name}] {message}")


class ValidationError(ServiceError):
    """Payload shape is unusable (e.g. bars that are not a list)."""
