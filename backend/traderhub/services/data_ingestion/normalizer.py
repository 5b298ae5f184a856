"""
Ingestion Normalizer

The single adapter between collaborator payloads and the normalized shapes
(Bar, NewsRecord, KeyLevels) the detectors consume. Field-name guessing
happens here and nowhere else.

Bars:
    - aliases: t/time/timestamp/date, o/open, h/high, l/low, c/close, v/vol/volume
    - invalid or non-finite rows are skipped and counted
    - sorted ascending by date; duplicate dates keep the last occurrence
    - bars dated after `asof` are dropped
"""

import json
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from traderhub.schemas.market import Bar, NewsRecord
from traderhub.schemas.technicals import KeyLevels, LevelPoint
from traderhub.services.base import ValidationError
from traderhub.services.news.scoring import extract_symbol, score_and_tags

logger = logging.getLogger(__name__)

SERVICE_NAME = "normalizer"

BAR_ALIASES: dict[str, tuple[str, ...]] = {
    "date": ("date", "t", "time", "timestamp", "datetime"),
    "open": ("open", "o"),
    "high": ("high", "h"),
    "low": ("low", "l"),
    "close": ("close", "c"),
    "volume": ("volume", "v", "vol"),
}

NEWS_ALIASES: dict[str, tuple[str, ...]] = {
    "headline": ("headline", "title"),
    "summary": ("summary", "description"),
    "url": ("url", "link"),
    "source": ("source",),
    "symbol": ("symbol", "ticker"),
    "created_at": ("created_at", "published_at", "pubDate", "date"),
    "tags": ("tags",),
    "score": ("score",),
}

SUPPORT_ALIASES = ("support", "supports", "S", "s", "demand")
RESISTANCE_ALIASES = ("resistance", "resistances", "R", "r", "supply")
PRICE_ALIASES = ("price", "level", "value")

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")


@dataclass
class BarSeries:
    """Normalized bars plus bookkeeping for the report."""
    bars: list[Bar] = field(default_factory=list)
    dropped: int = 0
    duplicates: int = 0
    after_asof: int = 0


def _pick(raw: Mapping[str, Any], aliases: Iterable[str]) -> Any:
    for key in aliases:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def normalize_date(value: Any) -> Optional[str]:
    """Calendar date string (YYYY-MM-DD) from a date, datetime or ISO-like string."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    if _ISO_DATE.match(text):
        return text[:10]
    return text or None


# =============================================================================
# BARS
# =============================================================================


def _coerce_bar(raw: Any) -> Bar:
    if isinstance(raw, Bar):
        return raw
    if not isinstance(raw, Mapping):
        raise TypeError(f"unsupported bar payload {type(raw).__name__}")

    fields = {name: _pick(raw, aliases) for name, aliases in BAR_ALIASES.items()}
    fields["date"] = normalize_date(fields["date"])
    if fields["volume"] is None:
        fields.pop("volume")
    return Bar(**fields)


def normalize_bars(raw_bars: Any, asof: Optional[str] = None) -> BarSeries:
    """
    Validate and order a raw bar payload.

    Raises ValidationError only when the payload is not a sequence at all.
    """
    if raw_bars is None:
        return BarSeries()
    if isinstance(raw_bars, (str, bytes, Mapping)) or not isinstance(raw_bars, Iterable):
        raise ValidationError(SERVICE_NAME, "bars must be a list of bar records")

    by_date: dict[str, Bar] = {}
    total = 0
    dropped = 0
    for item in raw_bars:
        total += 1
        try:
            bar = _coerce_bar(item)
        except (PydanticValidationError, TypeError, ValueError) as e:
            dropped += 1
            logger.debug(f"Skipping invalid bar {item!r}: {e}")
            continue
        by_date[bar.date] = bar

    duplicates = total - dropped - len(by_date)
    bars = [by_date[d] for d in sorted(by_date)]

    after_asof = 0
    cutoff = normalize_date(asof)
    if cutoff:
        kept = [b for b in bars if b.date <= cutoff]
        after_asof = len(bars) - len(kept)
        bars = kept

    if dropped:
        logger.warning(f"Dropped {dropped} invalid bars out of {total}")
    if duplicates:
        logger.info(f"Collapsed {duplicates} duplicate bar dates")

    return BarSeries(bars=bars, dropped=dropped, duplicates=duplicates, after_asof=after_asof)


# =============================================================================
# NEWS
# =============================================================================


def _coerce_tags(value: Any) -> Optional[tuple[str, ...]]:
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                value = json.loads(text)
            except json.JSONDecodeError:
                return None
        else:
            value = [t for t in (p.strip() for p in text.split(",")) if t]
    return tuple(str(t) for t in value)


def _coerce_news(raw: Any) -> NewsRecord:
    if isinstance(raw, NewsRecord):
        return raw
    if not isinstance(raw, Mapping):
        raise TypeError(f"unsupported news payload {type(raw).__name__}")

    fields = {name: _pick(raw, aliases) for name, aliases in NEWS_ALIASES.items()}
    headline = str(fields["headline"] or "").strip()
    if not headline:
        raise ValueError("headline missing")
    fields["headline"] = headline

    tags = _coerce_tags(fields.pop("tags"))
    score = fields.pop("score")
    if tags is None or score is None:
        computed_score, computed_tags = score_and_tags(headline, fields["summary"])
        tags = tags if tags is not None else tuple(computed_tags)
        score = score if score is not None else computed_score

    if not fields["symbol"]:
        fields["symbol"] = extract_symbol(headline)

    clean = {k: v for k, v in fields.items() if v is not None}
    return NewsRecord(**clean, tags=tags, score=score)


def normalize_news(raw_news: Any) -> list[NewsRecord]:
    """Scored NewsRecords; unusable items are skipped with a warning."""
    if not raw_news:
        return []
    if isinstance(raw_news, (str, bytes, Mapping)) or not isinstance(raw_news, Iterable):
        raise ValidationError(SERVICE_NAME, "news must be a list of headline records")

    records: list[NewsRecord] = []
    skipped = 0
    for item in raw_news:
        try:
            records.append(_coerce_news(item))
        except (PydanticValidationError, TypeError, ValueError) as e:
            skipped += 1
            logger.debug(f"Skipping invalid news item {item!r}: {e}")

    if skipped:
        logger.warning(f"Skipped {skipped} invalid news items")
    return records


# =============================================================================
# KEY LEVELS
# =============================================================================


def _level_point(value: Any) -> Optional[LevelPoint]:
    if isinstance(value, LevelPoint):
        return value
    price: Any = value
    level_date = None
    if isinstance(value, Mapping):
        price = _pick(value, PRICE_ALIASES)
        level_date = normalize_date(_pick(value, ("date", "t", "time")))
    try:
        price = float(price)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return LevelPoint(price=price, date=level_date)


def _level_list(value: Any) -> list[LevelPoint]:
    if value is None:
        return []
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        value = [value]
    points = (_level_point(v) for v in value)
    return [p for p in points if p is not None]


def normalize_key_levels(raw: Any) -> Optional[KeyLevels]:
    """
    KeyLevels from an override payload.

    Accepts support/supports/S/demand and resistance/resistances/R/supply,
    each as a number, a list of numbers, or a list of {price|level|value, date}.
    """
    if raw is None:
        return None
    if isinstance(raw, KeyLevels):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError(SERVICE_NAME, "key_levels must be a mapping")

    return KeyLevels(
        support=_level_list(_pick(raw, SUPPORT_ALIASES)),
        resistance=_level_list(_pick(raw, RESISTANCE_ALIASES)),
    )
