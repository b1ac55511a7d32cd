import logging
from pathlib import Path

from news_intel.models.schemas import Company, NewsSource
from news_intel.storage.csv_store import optional_cell, parse_bool, read_csv
from news_intel.storage.memory_store import MemoryStore

logger = logging.getLogger(__name__)


def seed_companies(store: MemoryStore, path: Path) -> list[Company]:
    """Register the tracked companies listed in a CSV file."""
    companies: list[Company] = []
    for line, row in enumerate(read_csv(path), start=2):
        name = row.get("name", "")
        if not name:
            logger.warning("Skipping company row %d in %s: missing name", line, path)
            continue
        try:
            company = store.create_company(
                name=name,
                type=row.get("type", "") or "competitor",
                website=optional_cell(row, "website"),
                description=optional_cell(row, "description"),
                is_active=parse_bool(row.get("is_active", ""), True),
            )
        except ValueError as exc:
            logger.warning("Skipping company row %d in %s: %s", line, path, exc)
            continue
        companies.append(company)
    logger.info("Loaded %d companies from %s", len(companies), path)
    return companies


def seed_sources(store: MemoryStore, path: Path) -> list[NewsSource]:
    """Register the news sources listed in a CSV file."""
    sources: list[NewsSource] = []
    for line, row in enumerate(read_csv(path), start=2):
        name = row.get("name", "")
        url = row.get("url", "")
        if not name or not url:
            logger.warning(
                "Skipping source row %d in %s: missing name or url", line, path
            )
            continue
        try:
            source = store.create_news_source(
                name=name,
                url=url,
                type=row.get("type", ""),
                language=optional_cell(row, "language"),
                is_active=parse_bool(row.get("is_active", ""), True),
            )
        except ValueError as exc:
            logger.warning("Skipping source row %d in %s: %s", line, path, exc)
            continue
        sources.append(source)
    logger.info("Loaded %d news sources from %s", len(sources), path)
    return sources
