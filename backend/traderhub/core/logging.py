"""
Logging setup for the signals engine.
"""

import logging
import sys
from typing import Optional

from traderhub.core.config import get_settings

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Configure root logging.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (defaults to settings)
        log_format: logging format string (defaults to settings, then DEFAULT_FORMAT)
    """
    settings = get_settings()
    level = (log_level or settings.log_level).upper()
    numeric_level = getattr(logging, level, logging.INFO)

    logging.basicConfig(
        format=log_format or settings.log_format or DEFAULT_FORMAT,
        stream=sys.stdout,
        level=numeric_level,
        force=True,
    )
    logging.getLogger(__name__).debug(f"Logging configured at {level}")
