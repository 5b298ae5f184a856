"""
News Scoring

Keyword tagging and importance scoring for headlines, plus the news
context section of the report and its bounded nudge to the bias score.
"""

import logging
import math
import re
from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional, Union

from traderhub.core.config import AnalysisConfig, get_analysis_config
from traderhub.schemas.market import NewsRecord
from traderhub.schemas.report import NewsContext

logger = logging.getLogger(__name__)


# Tag -> keywords (substring match on lowercased headline + summary)
TAG_RULES: list[tuple[str, list[str]]] = [
    ("earnings", ["earnings", "eps", "guidance"]),
    ("merger", ["acquire", "acquisition", "merger", "buyout"]),
    ("offering", ["offering", "dilution", "secondary", "atm program"]),
    ("analyst", ["upgrade", "downgrade", "price target", "pt raised", "pt cut"]),
    ("regulatory", ["sec", "doj", "ftc", "investigation", "lawsuit", "settlement"]),
    ("macro", ["cpi", "jobs report", "fed", "rates", "inflation"]),
    ("energy", ["oil", "opec", "crude"]),
    ("geopolitics", ["sanction", "tariff", "war", "missile", "china", "taiwan"]),
    ("options_flow_proxy", ["options activity", "sweep", "unusual options"]),
]

TAG_WEIGHTS = {
    "earnings": 30,
    "merger": 40,
    "offering": 25,
    "regulatory": 20,
    "macro": 15,
    "options_flow_proxy": 20,
}

BREAKING_WEIGHT = 20
MAX_SCORE = 100

_PAREN_SYMBOL = re.compile(r"\(([A-Z]{1,5})\)")
_COLON_SYMBOL = re.compile(r"\b([A-Z]{1,5}):")


def score_and_tags(headline: str, summary: Optional[str] = None) -> tuple[int, list[str]]:
    """
    Tag a headline and score its importance (0-100).

    Returns (score, tags) with tags in rule order.
    """
    text = f"{headline} {summary or ''}".lower()
    tags = [tag for tag, words in TAG_RULES if any(w in text for w in words)]

    score = sum(TAG_WEIGHTS.get(tag, 0) for tag in tags)
    if "breaking" in text:
        score += BREAKING_WEIGHT

    return min(MAX_SCORE, score), tags


def extract_symbol(headline: str) -> Optional[str]:
    """Ticker from "Company (ABC) ..." or "ABC: ..." headlines."""
    m = _PAREN_SYMBOL.search(headline or "")
    if m:
        return m.group(1)
    m = _COLON_SYMBOL.search(headline or "")
    if m:
        return m.group(1)
    return None


def _naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _as_datetime(asof: Union[str, date, datetime]) -> datetime:
    if isinstance(asof, datetime):
        return _naive_utc(asof)
    if isinstance(asof, date):
        return datetime.combine(asof, time.min)
    return datetime.combine(date.fromisoformat(str(asof)[:10]), time.min)


def _record_symbol(record: NewsRecord) -> Optional[str]:
    sym = record.symbol or extract_symbol(record.headline)
    return sym.upper() if sym else None


def news_score_contribution(
    records: Iterable[NewsRecord],
    config: Optional[AnalysisConfig] = None,
) -> int:
    """
    Bias nudge from news: sum of the first N scores / divisor, rounded half up,
    clamped to +/- news_max_contribution.
    """
    cfg = config or get_analysis_config()
    scored = list(records)[:cfg.news_scored_items]
    if not scored or cfg.news_score_divisor <= 0:
        return 0

    raw = sum(r.score for r in scored) / cfg.news_score_divisor
    nudge = math.floor(raw + 0.5)
    bound = cfg.news_max_contribution
    return max(-bound, min(bound, nudge))


def build_news_context(
    records: Iterable[NewsRecord],
    symbol: Optional[str] = None,
    asof: Optional[Union[str, date, datetime]] = None,
    config: Optional[AnalysisConfig] = None,
) -> NewsContext:
    """
    Headlines for `symbol` in the window ending on `asof`, newest first.

    Records naming a different ticker are dropped; records with no
    recognisable ticker are kept since the caller supplied them for this
    symbol. Without `asof` no date window is applied.
    """
    cfg = config or get_analysis_config()
    wanted = symbol.upper() if symbol else None

    items = list(records)
    if wanted:
        items = [r for r in items if _record_symbol(r) in (None, wanted)]

    if asof is not None:
        day = _as_datetime(asof).replace(hour=0, minute=0, second=0, microsecond=0)
        start = day - timedelta(days=cfg.news_window_days)
        end = day + timedelta(days=1)
        items = [r for r in items if start <= _naive_utc(r.created_at) < end]

    items.sort(key=lambda r: _naive_utc(r.created_at), reverse=True)
    items = items[:cfg.news_max_items]

    tag_counts = Counter(tag for r in items for tag in r.tags)
    top_tags = [tag for tag, _ in tag_counts.most_common(cfg.news_top_tags)]

    contribution = news_score_contribution(items, cfg)
    if items:
        logger.debug(f"News context for {wanted}: {len(items)} headlines, nudge {contribution}")

    return NewsContext(
        headline_count=len(items),
        top_tags=top_tags,
        notable_items=items,
        score_contribution=contribution,
    )
