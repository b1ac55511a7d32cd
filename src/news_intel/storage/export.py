from pathlib import Path

from news_intel.storage.csv_store import write_csv
from news_intel.storage.memory_store import MemoryStore

ARTICLE_FIELDNAMES = [
    "title",
    "url",
    "published_at",
    "category",
    "sentiment",
    "company",
]


def export_articles_csv(
    store: MemoryStore,
    path: Path,
    *,
    category: str | None = None,
    company_id: str | None = None,
) -> int:
    """Write the newest-first article listing to CSV and return the row count."""
    rows = []
    for article in store.list_articles(category=category, company_id=company_id):
        company = store.get_company(article.company_id) if article.company_id else None
        rows.append(
            {
                "title": article.title,
                "url": article.url,
                "published_at": article.published_at.isoformat(),
                "category": article.category,
                "sentiment": article.sentiment or "",
                "company": company.name if company else "",
            }
        )
    return write_csv(path, rows, ARTICLE_FIELDNAMES)
