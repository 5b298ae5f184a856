"""
News Scoring Service

CONTRACT:
    Input:  headlines / NewsRecords supplied by the news collaborator
    Output: NewsContext (top tags, notable items, bounded bias nudge)
"""

from traderhub.services.news.scoring import (
    build_news_context,
    extract_symbol,
    news_score_contribution,
    score_and_tags,
)

__all__ = [
    "build_news_context",
    "extract_symbol",
    "news_score_contribution",
    "score_and_tags",
]
