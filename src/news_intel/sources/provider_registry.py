import calendar
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import feedparser

from news_intel.models.schemas import (
    InvalidRawItem,
    NewsSource,
    RawItem,
    raw_item_from_mapping,
)

logger = logging.getLogger(__name__)

Fetcher = Callable[[NewsSource], list[RawItem]]


class SourceFetchError(Exception):
    """Raised when a fetch strategy cannot read its source."""


def default_fetchers() -> dict[str, Fetcher]:
    return {
        "rss": fetch_rss,
        "scrape": fetch_scrape,
        "api": fetch_api,
    }


def _snapshot_path(url: str) -> Path:
    if url.startswith("file://"):
        return Path(url.replace("file://", "", 1))
    if "://" in url:
        raise SourceFetchError(
            f"Remote fetching is not supported, use a local snapshot: {url}"
        )
    return Path(url)


def fetch_rss(source: NewsSource) -> list[RawItem]:
    """Parse a local RSS/Atom snapshot into raw items."""
    path = _snapshot_path(source.url)
    feed = feedparser.parse(path.read_bytes())
    entries = getattr(feed, "entries", []) or []
    if not entries and getattr(feed, "bozo", False):
        bozo_exc = getattr(feed, "bozo_exception", None)
        reason = str(bozo_exc).strip() if bozo_exc else "malformed feed"
        raise SourceFetchError(f"Unreadable feed {path}: {reason}")

    items = _entries_to_items(source, entries)
    logger.info("RSS %s: fetched %d items", source.name, len(items))
    return items


def fetch_api(source: NewsSource) -> list[RawItem]:
    """Load a local JSON snapshot (a list of objects) into raw items."""
    path = _snapshot_path(source.url)
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise SourceFetchError(f"Snapshot JSON must be a list of items: {path}")

    items: list[RawItem] = []
    for index, record in enumerate(payload):
        try:
            items.append(raw_item_from_mapping("api", record))
        except InvalidRawItem as exc:
            logger.warning(
                "API %s: skipping record %d: %s", source.name, index + 1, exc
            )
    logger.info("API %s: fetched %d items", source.name, len(items))
    return items


def fetch_scrape(source: NewsSource) -> list[RawItem]:
    """Page scraping is not bundled; the attempt yields no items."""
    logger.info(
        "Scrape %s: no scraper configured for %s, fetched 0 items",
        source.name,
        source.url,
    )
    return []


def _entries_to_items(
    source: NewsSource,
    entries: list[feedparser.FeedParserDict],
) -> list[RawItem]:
    items: list[RawItem] = []
    for index, entry in enumerate(entries):
        payload = {
            "title": entry.get("title"),
            "url": entry.get("link"),
            "published_at": _published_at(entry),
            "summary": entry.get("summary") or entry.get("description"),
            "content": _entry_content(entry),
            "image_url": _entry_image(entry),
            "guid": entry.get("id") or entry.get("guid"),
        }
        try:
            items.append(raw_item_from_mapping("rss", payload))
        except InvalidRawItem as exc:
            logger.warning("RSS %s: skipping entry %d: %s", source.name, index + 1, exc)
    return items


def _published_at(entry: feedparser.FeedParserDict) -> datetime | None:
    published = entry.get("published_parsed") or entry.get("updated_parsed")
    if published:
        timestamp = calendar.timegm(published)
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return None


def _entry_content(entry: feedparser.FeedParserDict) -> str | None:
    blocks: list[dict[str, Any]] = entry.get("content") or []
    values = [block.get("value", "") for block in blocks if block.get("value")]
    return "\n".join(values) if values else None


def _entry_image(entry: feedparser.FeedParserDict) -> str | None:
    for key in ("media_thumbnail", "media_content"):
        media = entry.get(key) or []
        for item in media:
            url = item.get("url")
            if url:
                return url
    return None
