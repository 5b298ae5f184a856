"""
Data Ingestion

CONTRACT:
    Input:  raw bar / news / key-level payloads from collaborators
    Output: normalized Bar, NewsRecord and KeyLevels
"""

from traderhub.services.data_ingestion.normalizer import (
    BarSeries,
    normalize_bars,
    normalize_date,
    normalize_key_levels,
    normalize_news,
)

__all__ = [
    "BarSeries",
    "normalize_bars",
    "normalize_date",
    "normalize_key_levels",
    "normalize_news",
]
