"""
Trader Hub Services

Pipeline stages of the signals engine.
Services with a defined contract inherit from BaseService; detector modules
are plain pure functions.
"""

from traderhub.services.base import BaseService

__all__ = ["BaseService"]
