"""
Trader Hub signals engine.

Daily OHLCV bars in; ranked trade signals, technicals and an outlook out.
"""

__version__ = "0.1.0"
