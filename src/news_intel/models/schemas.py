import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

COMPANY_TYPES = {"competitor", "publisher", "platform"}
SOURCE_TYPES = {"rss", "scrape", "api"}
CATEGORIES = {"competitor", "partnership", "market", "global"}
SENTIMENTS = {"positive", "negative", "neutral"}
ALERT_TYPES = {"info", "warning", "error", "success"}
TREND_PERIODS = {"24h", "7d", "30d"}

DEFAULT_LANGUAGE = "ja"


@dataclass
class Company:
    company_id: str
    name: str
    type: str
    website: str | None = None
    description: str | None = None
    is_active: bool = True


@dataclass
class NewsSource:
    source_id: str
    name: str
    url: str
    type: str
    language: str = DEFAULT_LANGUAGE
    is_active: bool = True
    last_fetched: datetime | None = None


@dataclass
class Article:
    article_id: str
    title: str
    url: str
    published_at: datetime
    category: str
    content: str | None = None
    summary: str | None = None
    image_url: str | None = None
    source_id: str | None = None
    company_id: str | None = None
    sentiment: str | None = None
    sentiment_score: int | None = None
    language: str = DEFAULT_LANGUAGE
    keywords: set[str] = field(default_factory=set)
    is_breaking: bool = False
    importance: int = 1

    @property
    def is_scored(self) -> bool:
        return self.sentiment is not None and self.sentiment_score is not None


@dataclass
class Alert:
    alert_id: str
    title: str
    message: str
    type: str
    created_at: datetime
    priority: int = 1
    company_id: str | None = None
    article_id: str | None = None
    is_read: bool = False


@dataclass
class Trend:
    trend_id: str
    keyword: str
    updated_at: datetime
    mentions: int = 0
    sentiment: str | None = None
    change_percentage: int = 0
    period: str = "24h"


@dataclass
class MarketSentiment:
    sentiment: str
    percentage: int


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class InvalidRawItem(ValueError):
    """Raised when a source payload cannot become a raw item."""


@dataclass
class RawItem:
    """A news item as delivered by a source, before normalization."""

    title: str
    url: str
    published_at: datetime
    content: str | None = None
    summary: str | None = None
    image_url: str | None = None
    language: str | None = None
    company_id: str | None = None
    is_breaking: bool = False


@dataclass
class RssRawItem(RawItem):
    guid: str = ""


@dataclass
class ScrapeRawItem(RawItem):
    page_url: str = ""


@dataclass
class ApiRawItem(RawItem):
    external_id: str = ""


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO timestamp or datetime into an aware UTC datetime.

    Empty values fall back to the current time, matching feeds that omit a
    publish date.
    """
    if value is None or value == "":
        return datetime.now(timezone.utc)
    if isinstance(value, datetime):
        parsed = value
    else:
        cleaned = str(value).strip()
        if cleaned.endswith("Z"):
            cleaned = cleaned[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(cleaned)
        except ValueError as exc:
            raise InvalidRawItem(f"Invalid published_at: {value}") from exc

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _optional_text(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def _parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}


def raw_item_from_mapping(source_type: str, payload: dict[str, Any]) -> RawItem:
    """Validate an untyped payload and build the raw item for its source type."""
    if not isinstance(payload, dict):
        raise InvalidRawItem("Raw item payload must be an object")

    title = _optional_text(payload, "title")
    url = _optional_text(payload, "url") or _optional_text(payload, "link")
    if not title:
        raise InvalidRawItem("Raw item is missing a title")
    if not url:
        raise InvalidRawItem(f"Raw item '{title}' is missing a url")

    common = dict(
        title=title,
        url=url,
        published_at=parse_timestamp(payload.get("published_at")),
        content=_optional_text(payload, "content"),
        summary=_optional_text(payload, "summary"),
        image_url=_optional_text(payload, "image_url"),
        language=_optional_text(payload, "language"),
        company_id=_optional_text(payload, "company_id"),
        is_breaking=_parse_flag(payload.get("is_breaking")),
    )

    if source_type == "rss":
        return RssRawItem(guid=_optional_text(payload, "guid") or url, **common)
    if source_type == "scrape":
        return ScrapeRawItem(
            page_url=_optional_text(payload, "page_url") or url, **common
        )
    if source_type == "api":
        return ApiRawItem(
            external_id=_optional_text(payload, "id") or url, **common
        )
    raise InvalidRawItem(f"Unsupported source type: {source_type}")
